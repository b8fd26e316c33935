"""
Facial expression extraction and speaking detection from face-mesh landmarks.
"""
import logging
import time
from dataclasses import fields, replace
from typing import Optional

from .callbacks import FaceCallbacks
from .config import FaceConfig
from .landmarks import (
    LEFT_BROW_CENTER,
    LEFT_EYE_INNER,
    LEFT_EYE_LOWER,
    LEFT_EYE_OUTER,
    LEFT_EYE_UPPER,
    NOSE_TIP,
    RIGHT_BROW_CENTER,
    RIGHT_EYE_INNER,
    RIGHT_EYE_LOWER,
    RIGHT_EYE_OUTER,
    RIGHT_EYE_UPPER,
    brow_height,
    eye_openness,
    head_pose,
    mouth_ratio,
    mouth_shape,
    valid_face,
)
from .types import ExpressionVector, FaceObservation, SpeakingState

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = tuple(f.name for f in fields(ExpressionVector) if f.name != "face_detected")


class FaceExpressionExtractor:
    """
    Turns face-mesh landmarks into a smoothed ExpressionVector and a
    debounced speaking on/off signal.

    Features:
    - Eye openness, brow height, head pose, mouth openness/smile, face position
    - Per-field exponential smoothing of the expression vector
    - Speaking hysteresis on a separately smoothed mouth ratio
      (N consecutive open frames to start, M closed frames to stop)
    - Neutral vector and a single speaking_end when the face is lost
    """

    def __init__(self, cfg: Optional[FaceConfig] = None, active: bool = True):
        """Initialize the extractor with smoothing and hysteresis settings."""
        self.cfg = cfg or FaceConfig()
        self.callbacks = FaceCallbacks()
        self.active = active

        self.last_timestamp: Optional[float] = None
        self.expression = ExpressionVector()
        self.speaking = SpeakingState()
        self.last_speaking_duration: Optional[float] = None

    def register_callbacks(self, **callbacks) -> None:
        """Register or replace event listeners (see FaceCallbacks for names)."""
        self.callbacks = self.callbacks.merged(**callbacks)

    @property
    def current_expression(self) -> ExpressionVector:
        return self.expression

    @property
    def is_speaking(self) -> bool:
        return self.speaking.is_speaking

    def process_frame(self, face: Optional[FaceObservation], timestamp: float,
                      t_now: Optional[float] = None) -> bool:
        """
        Process the face observation of one video frame.

        Args:
            face: Face observation (None if no face was detected)
            timestamp: Feed timestamp of the frame; a repeat of the last one is ignored
            t_now: Wall-clock time in seconds used for speaking durations

        Returns:
            True if the frame was processed, False if it was a duplicate or the
            extractor is inactive
        """
        if not self.active:
            return False
        if self.last_timestamp is not None and timestamp == self.last_timestamp:
            return False
        self.last_timestamp = timestamp
        if t_now is None:
            t_now = time.monotonic()

        landmarks = valid_face(face)
        if landmarks is None:
            self._handle_no_face(t_now)
            return True

        self.callbacks.emit("face_detected", True)
        self.callbacks.emit("landmarks_update", landmarks)

        raw = self._extract(landmarks)
        self.expression = self._smooth(self.expression, raw)
        self.callbacks.emit("expression_update", self.expression)

        self._update_speaking(mouth_ratio(landmarks), t_now)
        return True

    def reset(self) -> None:
        """Return to the neutral expression and a silent speaking state; forget the last timestamp."""
        self._clear()
        self.last_timestamp = None

    def _clear(self) -> None:
        self.expression = ExpressionVector()
        self.speaking = SpeakingState()

    def _handle_no_face(self, t_now: float) -> None:
        self.callbacks.emit("face_detected", False)
        if self.speaking.is_speaking:
            self._stop_speaking(t_now)
        self._clear()
        self.callbacks.emit("expression_update", self.expression)

    def _extract(self, landmarks) -> ExpressionVector:
        cfg = self.cfg
        angle_x, angle_y, angle_z = head_pose(landmarks)
        openness, smile = mouth_shape(landmarks)
        nose = landmarks[NOSE_TIP]
        return ExpressionVector(
            left_eye_openness=eye_openness(landmarks, LEFT_EYE_UPPER, LEFT_EYE_LOWER,
                                           LEFT_EYE_OUTER, LEFT_EYE_INNER,
                                           cfg.eye_ratio_min, cfg.eye_ratio_max),
            right_eye_openness=eye_openness(landmarks, RIGHT_EYE_UPPER, RIGHT_EYE_LOWER,
                                            RIGHT_EYE_OUTER, RIGHT_EYE_INNER,
                                            cfg.eye_ratio_min, cfg.eye_ratio_max),
            left_brow_y=brow_height(landmarks, LEFT_BROW_CENTER, LEFT_EYE_UPPER, LEFT_EYE_LOWER,
                                    cfg.brow_baseline, cfg.brow_range),
            right_brow_y=brow_height(landmarks, RIGHT_BROW_CENTER, RIGHT_EYE_UPPER, RIGHT_EYE_LOWER,
                                     cfg.brow_baseline, cfg.brow_range),
            head_angle_x=angle_x,
            head_angle_y=angle_y,
            head_angle_z=angle_z,
            mouth_openness=openness,
            mouth_smile=smile,
            face_x=nose.x,
            face_y=nose.y,
            face_detected=True,
        )

    def _smooth(self, prev: ExpressionVector, raw: ExpressionVector) -> ExpressionVector:
        """Lerp every numeric field toward the raw value; face_detected is copied."""
        alpha = self.cfg.expression_smoothing
        values = {
            name: getattr(prev, name) + (getattr(raw, name) - getattr(prev, name)) * alpha
            for name in _NUMERIC_FIELDS
        }
        return replace(raw, **values)

    def _update_speaking(self, ratio: float, t_now: float) -> None:
        cfg = self.cfg
        state = self.speaking

        weight = cfg.mouth_smoothing
        state.smoothed_openness = state.smoothed_openness * (1 - weight) + ratio * weight
        self.callbacks.emit("mouth_openness_change", state.smoothed_openness)

        if state.smoothed_openness > cfg.mouth_open_threshold:
            state.consecutive_open_frames += 1
            state.consecutive_closed_frames = 0
            if (not state.is_speaking
                    and state.consecutive_open_frames >= cfg.speaking_start_frames):
                state.is_speaking = True
                state.speaking_start_time = t_now
                logger.info("Speaking started")
                self.callbacks.emit("speaking_start")
        else:
            state.consecutive_closed_frames += 1
            state.consecutive_open_frames = 0
            if state.is_speaking and state.consecutive_closed_frames >= cfg.speaking_stop_frames:
                self._stop_speaking(t_now)

    def _stop_speaking(self, t_now: float) -> None:
        state = self.speaking
        start = state.speaking_start_time if state.speaking_start_time is not None else t_now
        self.last_speaking_duration = max(0.0, t_now - start)
        state.is_speaking = False
        state.speaking_start_time = None
        logger.info("Speaking stopped after %.2fs", self.last_speaking_duration)
        self.callbacks.emit("speaking_end")
