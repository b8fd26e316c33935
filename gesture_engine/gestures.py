"""
Hand gesture recognition: converts hand landmarks into gesture events.
"""
import logging
import time
from collections import deque
from typing import Optional, Sequence

from .callbacks import HandCallbacks
from .config import HandConfig, ViewportConfig
from .landmarks import (
    INDEX_TIP,
    finger_spread,
    is_pointing,
    logical_handedness,
    palm_center,
    pinch_distance,
    valid_hand,
)
from .types import GestureState, GestureType, HandObservation, LandmarkPoint

logger = logging.getLogger(__name__)

# Floor for the pinch distance used as a zoom divisor.
_MIN_PINCH_DISTANCE = 1e-6


class HandGestureRecognizer:
    """
    Converts the primary hand's landmark geometry into gesture events.

    Detected conditions (evaluated independently every frame):
    - Pinch (thumb/index tips close) with drag deltas and pinch-zoom scale
    - Air click (forward index-finger poke) with a click cooldown
    - Horizontal swipes
    - Open palm (spread fingertips)
    - Point (index extended, other fingers curled)

    Events are delivered through registered callbacks in a fixed per-frame
    order: hand_detected, landmarks_update, hand_position, gesture changes,
    then click / drag / zoom events.
    """

    def __init__(self, cfg: Optional[HandConfig] = None,
                 viewport: Optional[ViewportConfig] = None,
                 active: bool = True):
        """Initialize the recognizer with thresholds and screen size."""
        self.cfg = cfg or HandConfig()
        self.viewport = viewport or ViewportConfig()
        self.callbacks = HandCallbacks()
        self.state = self._fresh_state()
        self.active = active

        self.last_timestamp: Optional[float] = None
        self.hands_present = False
        self.is_left_hand_detected = False
        self.is_right_hand_detected = False

    def register_callbacks(self, **callbacks) -> None:
        """Register or replace event listeners (see HandCallbacks for names)."""
        self.callbacks = self.callbacks.merged(**callbacks)

    @property
    def current_gesture(self) -> GestureType:
        return self.state.current_gesture

    def process_frame(self, hands: Optional[Sequence[HandObservation]],
                      timestamp: float, t_now: Optional[float] = None) -> bool:
        """
        Process the hand observations of one video frame.

        Args:
            hands: Hand observations for the frame (empty or None if no hand)
            timestamp: Feed timestamp of the frame; a repeat of the last one is ignored
            t_now: Wall-clock time in seconds for cooldowns (defaults to time.monotonic())

        Returns:
            True if the frame was processed, False if it was a duplicate or the
            recognizer is inactive
        """
        if not self.active:
            return False
        if self.last_timestamp is not None and timestamp == self.last_timestamp:
            return False
        self.last_timestamp = timestamp
        if t_now is None:
            t_now = time.monotonic()

        hands = list(hands or [])
        parsed = [(hand, valid_hand(hand)) for hand in hands]
        parsed = [(hand, points) for hand, points in parsed if points is not None]

        self._update_handedness(hand for hand, _ in parsed)
        self.callbacks.emit("hand_detected", self.is_left_hand_detected, self.is_right_hand_detected)

        if not parsed:
            self._handle_no_hands()
            return True

        self.callbacks.emit("landmarks_update", [points for _, points in parsed],
                            [hand.handedness for hand, _ in parsed])
        self.hands_present = True

        # Only the primary (first) hand drives gesture classification
        self._detect_gestures(parsed[0][1], t_now)
        return True

    def reset(self) -> None:
        """Forget all frame history, including the last timestamp and hand presence."""
        self.state = self._fresh_state()
        self.last_timestamp = None
        self.hands_present = False
        self.is_left_hand_detected = False
        self.is_right_hand_detected = False

    def _fresh_state(self) -> GestureState:
        return GestureState(gesture_history=deque(maxlen=max(1, self.cfg.history_size)))

    def _update_handedness(self, hands) -> None:
        is_left = is_right = False
        for hand in hands:
            side = logical_handedness(hand.handedness)
            if side == "left":
                is_left = True
            elif side == "right":
                is_right = True
        self.is_left_hand_detected = is_left
        self.is_right_hand_detected = is_right

    def _handle_no_hands(self) -> None:
        self.state = self._fresh_state()
        if self.hands_present:
            self.hands_present = False
            logger.debug("Hands lost, returning to idle")
            self._change_gesture(GestureType.IDLE)

    def _change_gesture(self, gesture: GestureType) -> None:
        self.state.current_gesture = gesture
        self.state.gesture_history.append(gesture)
        self.callbacks.emit("gesture_change", gesture)

    def _detect_gestures(self, landmarks: Sequence[LandmarkPoint], t_now: float) -> None:
        cfg = self.cfg
        state = self.state

        palm = palm_center(landmarks)
        self.callbacks.emit("hand_position", palm.x, palm.y, palm.z)

        distance = pinch_distance(landmarks)
        is_pinching = distance < cfg.pinch_threshold

        # ---- Pinch / drag / zoom ----
        if is_pinching:
            if not state.is_pinching:
                state.is_pinching = True
                state.last_pinch_distance = distance
                state.pinch_start_position = (palm.x, palm.y)
                self._change_gesture(GestureType.PINCH)
            else:
                if state.last_position is not None:
                    dx = palm.x - state.last_position[0]
                    dy = palm.y - state.last_position[1]
                    if abs(dx) > cfg.drag_threshold or abs(dy) > cfg.drag_threshold:
                        state.is_dragging = True
                        self._change_gesture(GestureType.DRAG)
                        self.callbacks.emit("air_drag", dx * cfg.drag_scale, dy * cfg.drag_scale)

                scale = state.last_pinch_distance / max(distance, _MIN_PINCH_DISTANCE)
                if abs(scale - 1) > cfg.zoom_min_change:
                    self.callbacks.emit("pinch_zoom", scale)
                state.last_pinch_distance = distance
        elif state.is_pinching:
            state.is_pinching = False
            state.is_dragging = False
            state.pinch_start_position = None

        # ---- Air click (forward poke along z) ----
        if not is_pinching and not state.click_cooldown(t_now):
            index_tip = landmarks[INDEX_TIP]
            current_z = index_tip.z
            if state.last_z_depth is not None:
                z_delta = state.last_z_depth - current_z  # forward motion decreases z
                if z_delta > cfg.click_z_threshold:
                    screen_x = index_tip.x * self.viewport.width
                    screen_y = index_tip.y * self.viewport.height
                    self._change_gesture(GestureType.CLICK)
                    self.callbacks.emit("air_click", screen_x, screen_y)
                    state.click_cooldown_until = t_now + cfg.click_cooldown_ms / 1000.0
                    logger.debug("Air click at (%.0f, %.0f)", screen_x, screen_y)
            state.last_z_depth = current_z

        if not is_pinching:
            # ---- Swipe ----
            if state.last_position is not None:
                dx = palm.x - state.last_position[0]
                if dx > cfg.swipe_threshold:
                    self._change_gesture(GestureType.SWIPE_RIGHT)
                elif dx < -cfg.swipe_threshold:
                    self._change_gesture(GestureType.SWIPE_LEFT)

            # ---- Open palm ----
            if finger_spread(landmarks) > cfg.open_palm_spread:
                self._change_gesture(GestureType.OPEN_PALM)

            # ---- Point ----
            if is_pointing(landmarks, cfg.point_margin):
                self._change_gesture(GestureType.POINT)

        state.last_position = (palm.x, palm.y)
