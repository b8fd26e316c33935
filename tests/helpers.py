"""
Synthetic landmark builders for tests.
"""
from typing import List, Optional, Tuple

from gesture_engine.landmarks import (
    CHIN_CENTER,
    FACE_LANDMARK_COUNT,
    FOREHEAD_CENTER,
    HAND_LANDMARK_COUNT,
    INDEX_MCP,
    INDEX_TIP,
    LEFT_BROW_CENTER,
    LEFT_CHEEK,
    LEFT_EYE_INNER,
    LEFT_EYE_LOWER,
    LEFT_EYE_OUTER,
    LEFT_EYE_UPPER,
    LEFT_MOUTH_CORNER,
    LOWER_LIP_BOTTOM,
    MIDDLE_TIP,
    NOSE_TIP,
    PINKY_TIP,
    RIGHT_BROW_CENTER,
    RIGHT_CHEEK,
    RIGHT_EYE_INNER,
    RIGHT_EYE_LOWER,
    RIGHT_EYE_OUTER,
    RIGHT_EYE_UPPER,
    RIGHT_MOUTH_CORNER,
    RING_TIP,
    THUMB_TIP,
    UPPER_LIP_TOP,
    WRIST,
)
from gesture_engine.types import FaceObservation, HandObservation, LandmarkPoint


def make_hand(palm: Tuple[float, float] = (0.5, 0.5), pose: str = "rest",
              pinch_gap: float = 0.06, index_z: float = 0.0,
              handedness: str = "right") -> HandObservation:
    """
    Build a 21-point hand whose palm center (wrist / index-MCP midpoint) is ``palm``.

    Poses:
        rest      - fingers loosely together, no gesture
        pinch     - thumb tip ``pinch_gap`` away from the index tip
        open_palm - fingertips spread wide
        point     - index extended, other fingers curled
    """
    cx, cy = palm
    points = [(cx, cy)] * HAND_LANDMARK_COUNT
    points[WRIST] = (cx, cy + 0.05)
    points[INDEX_MCP] = (cx, cy - 0.05)

    if pose in ("rest", "pinch"):
        points[INDEX_TIP] = (cx, cy - 0.02)
        points[THUMB_TIP] = (cx - pinch_gap, cy - 0.02)
        points[MIDDLE_TIP] = (cx + 0.02, cy - 0.02)
        points[RING_TIP] = (cx + 0.04, cy - 0.02)
        points[PINKY_TIP] = (cx + 0.06, cy - 0.02)
    elif pose == "open_palm":
        points[THUMB_TIP] = (cx - 0.25, cy)
        points[INDEX_TIP] = (cx - 0.1, cy - 0.2)
        points[MIDDLE_TIP] = (cx, cy - 0.25)
        points[RING_TIP] = (cx + 0.1, cy - 0.2)
        points[PINKY_TIP] = (cx + 0.25, cy)
    elif pose == "point":
        points[THUMB_TIP] = (cx - 0.06, cy)
        points[INDEX_TIP] = (cx, cy - 0.2)
        points[MIDDLE_TIP] = (cx + 0.02, cy)
        points[RING_TIP] = (cx + 0.04, cy)
        points[PINKY_TIP] = (cx + 0.06, cy)
    else:
        raise ValueError(f"unknown pose {pose}")

    landmarks = [LandmarkPoint(x, y, index_z if i == INDEX_TIP else 0.0)
                 for i, (x, y) in enumerate(points)]
    return HandObservation(landmarks=tuple(landmarks), handedness=handedness)


def make_face(mouth_gap: float = 0.0, eye_gap: float = 0.03, brow_y: float = 0.37,
              nose: Tuple[float, float] = (0.5, 0.5),
              fill: Optional[Tuple[float, float]] = None) -> FaceObservation:
    """
    Build a 478-point frontal face with a 0.1-wide mouth and 0.1-wide eyes.

    With the defaults the head pose is level, brows are at their baseline and
    the mouth is closed. ``fill`` collapses every point onto one position.
    """
    base = fill or (0.5, 0.5)
    points: List[Tuple[float, float]] = [base] * FACE_LANDMARK_COUNT
    if fill is not None:
        return FaceObservation(landmarks=tuple(LandmarkPoint(x, y) for x, y in points))

    points[LEFT_EYE_UPPER] = (0.4, 0.40)
    points[LEFT_EYE_LOWER] = (0.4, 0.40 + eye_gap)
    points[LEFT_EYE_OUTER] = (0.35, 0.41)
    points[LEFT_EYE_INNER] = (0.45, 0.41)
    points[RIGHT_EYE_UPPER] = (0.6, 0.40)
    points[RIGHT_EYE_LOWER] = (0.6, 0.40 + eye_gap)
    points[RIGHT_EYE_OUTER] = (0.65, 0.41)
    points[RIGHT_EYE_INNER] = (0.55, 0.41)

    points[LEFT_BROW_CENTER] = (0.4, brow_y)
    points[RIGHT_BROW_CENTER] = (0.6, brow_y)

    points[NOSE_TIP] = nose
    points[LEFT_CHEEK] = (0.3, 0.5)
    points[RIGHT_CHEEK] = (0.7, 0.5)
    points[FOREHEAD_CENTER] = (0.5, 0.3)
    points[CHIN_CENTER] = (0.5, 0.7)

    points[UPPER_LIP_TOP] = (0.5, 0.6)
    points[LOWER_LIP_BOTTOM] = (0.5, 0.6 + mouth_gap)
    points[LEFT_MOUTH_CORNER] = (0.45, 0.6 + mouth_gap / 2)
    points[RIGHT_MOUTH_CORNER] = (0.55, 0.6 + mouth_gap / 2)

    return FaceObservation(landmarks=tuple(LandmarkPoint(x, y) for x, y in points))


class EventLog:
    """Collects callback invocations as (name, args) tuples."""

    def __init__(self):
        self.events: List[Tuple[str, tuple]] = []

    def recorder(self, name: str):
        def record(*args):
            self.events.append((name, args))
        return record

    def callbacks(self, *names: str) -> dict:
        return {name: self.recorder(name) for name in names}

    def named(self, name: str) -> List[tuple]:
        return [args for event, args in self.events if event == name]

    def names(self) -> List[str]:
        return [event for event, _ in self.events]

    def clear(self) -> None:
        self.events.clear()
