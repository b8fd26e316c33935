"""
Landmark index tables and geometry helpers for hand and face landmarks.

All helpers are total for landmark arrays of the expected length: degenerate
geometry (zero widths, coincident points) produces finite values instead of
raising.
"""
import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .types import FaceObservation, HandObservation, LandmarkPoint

HAND_LANDMARK_COUNT = 21
FACE_LANDMARK_COUNT = 478

# Hand landmark indices
WRIST = 0
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_TIP = 8
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20
FINGERTIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)

# Face mesh indices
UPPER_LIP_TOP = 13
LOWER_LIP_BOTTOM = 14
LEFT_MOUTH_CORNER = 61
RIGHT_MOUTH_CORNER = 291

LEFT_EYE_UPPER = 159
LEFT_EYE_LOWER = 145
LEFT_EYE_OUTER = 33
LEFT_EYE_INNER = 133

RIGHT_EYE_UPPER = 386
RIGHT_EYE_LOWER = 374
RIGHT_EYE_OUTER = 263
RIGHT_EYE_INNER = 362

LEFT_BROW_CENTER = 105
RIGHT_BROW_CENTER = 334

NOSE_TIP = 1
FOREHEAD_CENTER = 10
CHIN_CENTER = 152
LEFT_CHEEK = 234
RIGHT_CHEEK = 454


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def distance(a: LandmarkPoint, b: LandmarkPoint) -> float:
    """Euclidean distance in normalized 3D space."""
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


def midpoint(a: LandmarkPoint, b: LandmarkPoint) -> LandmarkPoint:
    return LandmarkPoint((a.x + b.x) / 2, (a.y + b.y) / 2, (a.z + b.z) / 2)


def palm_center(landmarks: Sequence[LandmarkPoint]) -> LandmarkPoint:
    """
    Calculate the center of the palm as the wrist / index-MCP midpoint.

    Args:
        landmarks: List of 21 hand landmarks

    Returns:
        Palm center in normalized coordinates
    """
    return midpoint(landmarks[WRIST], landmarks[INDEX_MCP])


def pinch_distance(landmarks: Sequence[LandmarkPoint]) -> float:
    """Thumb tip to index tip distance."""
    return distance(landmarks[THUMB_TIP], landmarks[INDEX_TIP])


def finger_spread(landmarks: Sequence[LandmarkPoint]) -> float:
    """Average distance between neighbouring fingertips (thumb through pinky)."""
    tips = [landmarks[i] for i in FINGERTIPS]
    total = sum(distance(tips[i], tips[i + 1]) for i in range(len(tips) - 1))
    return total / 4


def is_pointing(landmarks: Sequence[LandmarkPoint], margin: float = 0.05) -> bool:
    """
    Check if only the index finger is extended.

    Args:
        landmarks: List of 21 hand landmarks
        margin: Minimum vertical separation in normalized units

    Returns:
        True if the index tip is well above its MCP and the other tips are curled below it
    """
    index_tip = landmarks[INDEX_TIP]
    index_extended = index_tip.y < landmarks[INDEX_MCP].y - margin
    others_curled = all(
        landmarks[tip].y > index_tip.y + margin
        for tip in (MIDDLE_TIP, RING_TIP, PINKY_TIP)
    )
    return index_extended and others_curled


def logical_handedness(label: str) -> str:
    """Undo the front-camera mirroring of a feed handedness label."""
    label = (label or "").lower()
    if label == "left":
        return "right"
    if label == "right":
        return "left"
    return "unknown"


# ---------- face geometry ----------

def eye_openness(landmarks: Sequence[LandmarkPoint], upper: int, lower: int,
                 outer: int, inner: int,
                 ratio_min: float = 0.15, ratio_max: float = 0.35) -> float:
    """Lid gap over eye width, rescaled so ratio_min -> 0 and ratio_max -> 1."""
    eye_height = abs(landmarks[upper].y - landmarks[lower].y)
    eye_width = abs(landmarks[outer].x - landmarks[inner].x)
    if eye_width == 0:
        return 1.0
    ratio = eye_height / eye_width
    return clamp((ratio - ratio_min) / (ratio_max - ratio_min), 0.0, 1.0)


def brow_height(landmarks: Sequence[LandmarkPoint], brow: int, eye_upper: int,
                eye_lower: int, baseline: float = 0.045, span: float = 0.02) -> float:
    """Brow lift relative to the eye center; positive = raised."""
    eye_center_y = (landmarks[eye_upper].y + landmarks[eye_lower].y) / 2
    brow_dist = eye_center_y - landmarks[brow].y
    return clamp((brow_dist - baseline) / span, -1.0, 1.0)


def head_pose(landmarks: Sequence[LandmarkPoint]) -> Tuple[float, float, float]:
    """Approximate yaw / pitch / roll in degrees, each clamped to +-30."""
    nose = landmarks[NOSE_TIP]
    cheek_center_x = (landmarks[LEFT_CHEEK].x + landmarks[RIGHT_CHEEK].x) / 2
    angle_x = (nose.x - cheek_center_x) * 100

    face_center_y = (landmarks[FOREHEAD_CENTER].y + landmarks[CHIN_CENTER].y) / 2
    angle_y = (nose.y - face_center_y) * 150

    left_eye = landmarks[LEFT_EYE_OUTER]
    right_eye = landmarks[RIGHT_EYE_OUTER]
    angle_z = math.degrees(math.atan2(left_eye.y - right_eye.y, right_eye.x - left_eye.x))

    return (clamp(angle_x, -30.0, 30.0),
            clamp(angle_y, -30.0, 30.0),
            clamp(angle_z, -30.0, 30.0))


def mouth_ratio(landmarks: Sequence[LandmarkPoint]) -> float:
    """Lip gap over mouth width; the bare gap when the width collapses to zero."""
    mouth_height = abs(landmarks[LOWER_LIP_BOTTOM].y - landmarks[UPPER_LIP_TOP].y)
    mouth_width = abs(landmarks[RIGHT_MOUTH_CORNER].x - landmarks[LEFT_MOUTH_CORNER].x)
    return mouth_height / mouth_width if mouth_width > 0 else mouth_height


def mouth_shape(landmarks: Sequence[LandmarkPoint]) -> Tuple[float, float]:
    """Return (openness 0..1, smile -1..1)."""
    openness = min(1.0, mouth_ratio(landmarks) * 3)

    lip_center_y = (landmarks[UPPER_LIP_TOP].y + landmarks[LOWER_LIP_BOTTOM].y) / 2
    left_lift = lip_center_y - landmarks[LEFT_MOUTH_CORNER].y
    right_lift = lip_center_y - landmarks[RIGHT_MOUTH_CORNER].y
    smile = clamp((left_lift + right_lift) / 2 * 30, -1.0, 1.0)

    return openness, smile


# ---------- observation parsing ----------

def _to_point(raw: Any) -> Optional[LandmarkPoint]:
    if isinstance(raw, LandmarkPoint):
        point = raw
    elif hasattr(raw, "x") and hasattr(raw, "y"):
        point = LandmarkPoint(float(raw.x), float(raw.y), float(getattr(raw, "z", 0.0) or 0.0))
    else:
        try:
            values = [float(v) for v in raw]
        except (TypeError, ValueError):
            return None
        if len(values) == 2:
            values.append(0.0)
        if len(values) != 3:
            return None
        point = LandmarkPoint(*values)
    if not all(math.isfinite(v) for v in (point.x, point.y, point.z)):
        return None
    return point


def to_points(raw: Any, expected: int) -> Optional[List[LandmarkPoint]]:
    """
    Convert a raw landmark array to LandmarkPoints.

    Accepts LandmarkPoints, objects with x/y/z attributes (MediaPipe results),
    (x, y[, z]) tuples or an (N, 2|3) NumPy array.

    Returns:
        List of points, or None if the array is empty or malformed
    """
    if raw is None:
        return None
    if isinstance(raw, np.ndarray):
        if raw.ndim != 2 or raw.shape[0] != expected or raw.shape[1] not in (2, 3):
            return None
        raw = raw.tolist()
    try:
        items = list(raw)
    except TypeError:
        return None
    if len(items) != expected:
        return None
    points = []
    for item in items:
        point = _to_point(item)
        if point is None:
            return None
        points.append(point)
    return points


def valid_hand(hand: Optional[HandObservation]) -> Optional[List[LandmarkPoint]]:
    """Landmarks of a well-formed hand observation, else None."""
    if hand is None:
        return None
    return to_points(getattr(hand, "landmarks", None), HAND_LANDMARK_COUNT)


def valid_face(face: Optional[FaceObservation]) -> Optional[List[LandmarkPoint]]:
    """Landmarks of a well-formed face observation, else None."""
    if face is None:
        return None
    return to_points(getattr(face, "landmarks", None), FACE_LANDMARK_COUNT)


def hands_from_arrays(arrays: Iterable[Any], labels: Iterable[str]) -> List[HandObservation]:
    """Build HandObservations from parallel landmark arrays and feed labels."""
    hands = []
    for raw, label in zip(arrays, labels):
        points = to_points(raw, HAND_LANDMARK_COUNT)
        if points is None:
            continue
        label = (label or "").lower()
        hands.append(HandObservation(
            landmarks=tuple(points),
            handedness=label if label in ("left", "right") else "unknown",
        ))
    return hands
