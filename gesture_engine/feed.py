"""
Landmark feed backed by MediaPipe Hands and Face Mesh.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from .config import MediaPipeConfig
from .landmarks import FACE_LANDMARK_COUNT, hands_from_arrays, to_points
from .types import FaceObservation, HandObservation

logger = logging.getLogger(__name__)


@dataclass
class FeedResult:
    """Landmarks observed in one video frame."""
    timestamp: float
    hands: List[HandObservation] = field(default_factory=list)
    face: Optional[FaceObservation] = None


class LandmarkFeed:
    """Hand and face landmark tracker using MediaPipe solutions."""

    def __init__(self, cfg: Optional[MediaPipeConfig] = None):
        """
        Create the feed; MediaPipe graphs are built in initialize().

        Args:
            cfg: Detection limits and confidence thresholds
        """
        self.cfg = cfg or MediaPipeConfig()
        self.hands = None
        self.face_mesh = None

    @property
    def ready(self) -> bool:
        return self.hands is not None and self.face_mesh is not None

    def initialize(self) -> bool:
        """
        Build the MediaPipe hand and face-mesh graphs.

        Returns:
            True on success, False if MediaPipe is unavailable or fails to start
        """
        if self.ready:
            return True
        try:
            import mediapipe as mp

            self.hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                max_num_hands=self.cfg.max_num_hands,
                min_detection_confidence=self.cfg.min_detection_confidence,
                min_tracking_confidence=self.cfg.min_tracking_confidence,
            )
            # refine_landmarks adds the iris points for the full 478-point mesh
            self.face_mesh = mp.solutions.face_mesh.FaceMesh(
                static_image_mode=False,
                max_num_faces=self.cfg.max_num_faces,
                refine_landmarks=True,
                min_detection_confidence=self.cfg.min_detection_confidence,
                min_tracking_confidence=self.cfg.min_tracking_confidence,
            )
        except Exception:
            logger.error("Failed to initialize MediaPipe landmark feed", exc_info=True)
            self.close()
            return False
        logger.info("MediaPipe landmark feed initialized")
        return True

    def process(self, frame_bgr: np.ndarray, timestamp: float) -> FeedResult:
        """
        Detect hands and face in a frame.

        Args:
            frame_bgr: Input frame in BGR format
            timestamp: Timestamp to tag the result with

        Returns:
            FeedResult with 0..max_num_hands hands and at most one face
        """
        result = FeedResult(timestamp=timestamp)
        if not self.ready:
            return result

        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        hand_results = self.hands.process(frame_rgb)
        if hand_results.multi_hand_landmarks:
            labels = []
            for i in range(len(hand_results.multi_hand_landmarks)):
                label = "unknown"
                if hand_results.multi_handedness and i < len(hand_results.multi_handedness):
                    label = hand_results.multi_handedness[i].classification[0].label
                labels.append(label)
            result.hands = hands_from_arrays(
                [hand.landmark for hand in hand_results.multi_hand_landmarks], labels)

        face_results = self.face_mesh.process(frame_rgb)
        if face_results.multi_face_landmarks:
            points = to_points(face_results.multi_face_landmarks[0].landmark, FACE_LANDMARK_COUNT)
            if points is not None:
                result.face = FaceObservation(landmarks=tuple(points))

        return result

    def draw_landmarks(self, frame: np.ndarray, result: FeedResult) -> np.ndarray:
        """
        Draw hand landmarks and a sparse face outline on the frame.

        Args:
            frame: Input frame
            result: Feed result for the same frame

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]

        for hand in result.hands:
            for i, point in enumerate(hand.landmarks):
                px = int(point.x * width)
                py = int(point.y * height)
                cv2.circle(frame, (px, py), 3, (0, 255, 0), -1)
                cv2.putText(frame, str(i), (px + 5, py - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)

        if result.face is not None:
            for point in result.face.landmarks[::8]:
                cv2.circle(frame, (int(point.x * width), int(point.y * height)), 1, (255, 200, 0), -1)

        return frame

    def close(self) -> None:
        """Release MediaPipe graphs; safe to call repeatedly."""
        for graph in (self.hands, self.face_mesh):
            if graph is not None:
                graph.close()
        self.hands = None
        self.face_mesh = None
