"""
Parameter mapping: turns gesture events, expression vectors and mouth
openness into avatar control values.
"""
import logging
import math
import time
from typing import Callable, Dict, Optional, Tuple

from .avatar import NEUTRAL_PARAMS, AvatarDriver, ParameterTable
from .config import Cfg, ExpressionMapperConfig, GestureMapperConfig, LipSyncConfig, ViewportConfig
from .cooldowns import CooldownRegistry, TimerQueue
from .landmarks import clamp
from .types import (
    AvatarRendererProto,
    ExpressionVector,
    GestureType,
    ParameterModelProto,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Gesture -> cooldown key. Both swipe directions share one lock.
COOLDOWN_KEYS: Dict[GestureType, str] = {
    GestureType.CLICK: "click",
    GestureType.PINCH: "pinch",
    GestureType.SWIPE_LEFT: "swipe",
    GestureType.SWIPE_RIGHT: "swipe",
    GestureType.OPEN_PALM: "palm",
}

TAP_MOTION = ("Tap", 0, 3)
FLICK_MOTION = ("Flick", 0, 3)
IDLE_MOTION = ("Idle", 0, 1)

SWIPE_BODY_ANGLE = 20.0
DRAG_TILT_X = 0.5
DRAG_TILT_Y = 0.3
DRAG_MAX_TILT_X = 30.0
DRAG_MAX_TILT_Y = 15.0


class GestureMapper:
    """
    Maps hand gesture events to avatar reactions.

    Features:
    - One reaction per gesture change, skipped while the gesture's cooldown runs
    - Focus / body tilt tracking of the palm position
    - Body tilt from drag deltas, expression changes from pinch zoom
    - Timed return to neutral after swipes (driven by the owner's timer queue)
    """

    def __init__(self, driver: AvatarDriver, cooldowns: CooldownRegistry, timers: TimerQueue,
                 cfg: Optional[GestureMapperConfig] = None,
                 viewport: Optional[ViewportConfig] = None,
                 clock: Clock = time.monotonic):
        self.driver = driver
        self.cooldowns = cooldowns
        self.timers = timers
        self.cfg = cfg or GestureMapperConfig()
        self.viewport = viewport or ViewportConfig()
        self.clock = clock

        self.is_listening = True
        self.last_gesture = GestureType.IDLE
        self.last_hand_position: Optional[Tuple[float, float]] = None

    # ---------- control ----------

    def pause(self) -> None:
        self.is_listening = False

    def resume(self) -> None:
        self.is_listening = True

    def reset(self) -> None:
        self.last_gesture = GestureType.IDLE
        self.last_hand_position = None

    @property
    def _active(self) -> bool:
        return self.cfg.enabled and self.is_listening

    @property
    def _reactions_active(self) -> bool:
        return self._active and self.cfg.gesture_reactions_enabled

    # ---------- recognizer events ----------

    def on_hand_detected(self, is_left: bool, is_right: bool) -> None:
        if not self._active:
            return
        if not is_left and not is_right:
            self.driver.set_focus(0.0, 0.0)
            self.last_hand_position = None

    def on_hand_position(self, x: float, y: float, z: float = 0.0) -> None:
        if not self._active or not self.cfg.focus_tracking_enabled:
            return
        focus_x, focus_y = self._focus_from_hand(x, y)
        self.driver.set_focus(focus_x, focus_y)
        tilt = self.cfg.body_tilt_sensitivity
        self.driver.set_body_angle(focus_x * tilt, focus_y * tilt * 0.5)
        self.last_hand_position = (x, y)

    def on_gesture_change(self, gesture: GestureType) -> None:
        """Run the reaction for ``gesture`` unless it repeats or is cooling down."""
        if not self._reactions_active:
            return
        gesture = GestureType(gesture)
        if gesture == self.last_gesture:
            return
        t_now = self.clock()
        key = COOLDOWN_KEYS.get(gesture)
        if key is not None and self.cooldowns.is_active(key, t_now):
            return

        handler = {
            GestureType.CLICK: self._react_click,
            GestureType.PINCH: self._react_pinch,
            GestureType.DRAG: self._react_drag,
            GestureType.SWIPE_LEFT: lambda t: self._react_swipe(-1, t),
            GestureType.SWIPE_RIGHT: lambda t: self._react_swipe(1, t),
            GestureType.POINT: self._react_point,
            GestureType.OPEN_PALM: self._react_open_palm,
            GestureType.IDLE: self._react_idle,
        }[gesture]
        handler(t_now)
        self.last_gesture = gesture

    def on_air_click(self, x: float, y: float) -> None:
        """Snap gaze to the click point."""
        if not self._reactions_active:
            return
        focus_x = x / self.viewport.width * 2 - 1
        focus_y = -(y / self.viewport.height * 2 - 1)
        self.driver.set_focus(focus_x, focus_y)

    def on_air_drag(self, dx: float, dy: float) -> None:
        if not self._active:
            return
        tilt_x = clamp(dx * DRAG_TILT_X, -DRAG_MAX_TILT_X, DRAG_MAX_TILT_X)
        tilt_y = clamp(-dy * DRAG_TILT_Y, -DRAG_MAX_TILT_Y, DRAG_MAX_TILT_Y)
        self.driver.set_body_angle(tilt_x, tilt_y)

    def on_pinch_zoom(self, scale: float) -> None:
        if not self._reactions_active:
            return
        if scale > self.cfg.zoom_surprise_scale:
            self.driver.set_expression("surprised")
            self.cooldowns.set("pinch", self.cfg.pinch_cooldown_ms / 1000.0, self.clock())
        elif scale < self.cfg.zoom_calm_scale:
            self.driver.set_expression("default")

    # ---------- reactions ----------

    def _react_click(self, t_now: float) -> None:
        self.driver.play_motion(*TAP_MOTION)
        self.cooldowns.set("click", self.cfg.click_cooldown_ms / 1000.0, t_now)
        logger.info("Click -> tap reaction")

    def _react_pinch(self, t_now: float) -> None:
        self.driver.set_expression("surprised")
        logger.info("Pinch -> surprised expression")

    def _react_drag(self, t_now: float) -> None:
        # Body tilt follows the drag deltas in on_air_drag
        logger.debug("Drag detected")

    def _react_swipe(self, direction: int, t_now: float) -> None:
        self.driver.set_focus(float(direction), 0.0)
        self.driver.set_body_angle(direction * SWIPE_BODY_ANGLE, 0.0)
        self.timers.cancel("swipe_return")
        self.timers.schedule(t_now + self.cfg.swipe_hold_ms / 1000.0, self._return_to_center,
                             name="swipe_return")
        self.cooldowns.set("swipe", self.cfg.swipe_cooldown_ms / 1000.0, t_now)
        side = "right" if direction > 0 else "left"
        logger.info("Swipe %s -> look %s", side, side)

    def _react_point(self, t_now: float) -> None:
        if self.last_hand_position is not None:
            self.driver.set_focus(*self._focus_from_hand(*self.last_hand_position))
        logger.debug("Point -> track finger")

    def _react_open_palm(self, t_now: float) -> None:
        self.driver.play_motion(*FLICK_MOTION)
        self.cooldowns.set("palm", self.cfg.palm_cooldown_ms / 1000.0, t_now)
        logger.info("Open palm -> wave reaction")

    def _react_idle(self, t_now: float) -> None:
        self.driver.set_focus(0.0, 0.0)
        self.driver.set_body_angle(0.0, 0.0, 0.0)
        self.driver.set_expression("default")

    def _return_to_center(self) -> None:
        self.driver.set_focus(0.0, 0.0)
        self.driver.set_body_angle(0.0, 0.0)

    @staticmethod
    def _focus_from_hand(x: float, y: float) -> Tuple[float, float]:
        return (x - 0.5) * 2, (0.5 - y) * 2


class ExpressionMapper:
    """
    Writes the expression vector to named avatar model parameters.

    Parameter names are negotiated once in bind_model(); channels the model
    lacks are skipped. Each written value is smoothed per channel, and the
    avatar's tracking mode follows face presence.
    """

    def __init__(self, driver: AvatarDriver, cfg: Optional[ExpressionMapperConfig] = None):
        self.driver = driver
        self.cfg = cfg or ExpressionMapperConfig()
        self.table = ParameterTable()
        self.cache: Dict[str, float] = {}
        self.face_present = False
        self.last_expression: Optional[ExpressionVector] = None

    def bind_model(self, model: Optional[ParameterModelProto]) -> None:
        """Negotiate parameter names with a (new) avatar model."""
        self.cache.clear()
        if model is None:
            self.table.unbind()
        else:
            self.table.bind(model)

    def update(self, expression: ExpressionVector) -> None:
        if not self.cfg.enabled:
            return

        if expression.face_detected != self.face_present:
            self.face_present = expression.face_detected
            self.driver.set_tracking_mode(self.face_present)
            if self.face_present:
                logger.info("Face tracked, idle motion suppressed")
            else:
                logger.info("Face lost, idle motion restored")
                self.reset()
                return

        if not expression.face_detected:
            return

        cfg = self.cfg
        if cfg.eye_tracking_enabled:
            self._write("eye_l_open", expression.left_eye_openness * cfg.eye_sensitivity)
            self._write("eye_r_open", expression.right_eye_openness * cfg.eye_sensitivity)

        if cfg.brow_tracking_enabled:
            self._write("brow_l_y", expression.left_brow_y * cfg.brow_sensitivity)
            self._write("brow_r_y", expression.right_brow_y * cfg.brow_sensitivity)

        if cfg.head_tracking_enabled:
            angle_x = expression.head_angle_x * cfg.head_sensitivity
            angle_y = expression.head_angle_y * cfg.head_sensitivity
            angle_z = expression.head_angle_z * cfg.head_sensitivity
            self._write("angle_x", angle_x)
            self._write("angle_y", angle_y)
            self._write("angle_z", angle_z)
            self._write("body_angle_x", angle_x * cfg.body_follow_factor)
            self._write("body_angle_z", angle_z * cfg.body_follow_factor)

        if cfg.mouth_tracking_enabled:
            self._write("mouth_open_y", min(1.0, expression.mouth_openness * cfg.mouth_sensitivity))
            self._write("mouth_form", expression.mouth_smile)

        if cfg.gaze_tracking_enabled:
            gaze_x = (expression.face_x - 0.5) * 2
            gaze_y = (expression.face_y - 0.5) * -2
            self._write("eye_ball_x", gaze_x * 0.5)
            self._write("eye_ball_y", gaze_y * 0.5)

        self.last_expression = expression

    def reset(self) -> None:
        """
        Clear smoothing state and write neutral values to every bound channel.

        A tracked face is treated as lost, so the avatar returns to idle motion.
        """
        if self.face_present:
            self.face_present = False
            self.driver.set_tracking_mode(False)
        self.cache.clear()
        self.last_expression = None
        for channel, value in NEUTRAL_PARAMS.items():
            self._write(channel, value)

    def smoothed(self, channel: str, value: float) -> float:
        """Exponential smoothing per channel; the first value passes through."""
        factor = self.cfg.smoothing_factor
        cached = self.cache.get(channel, value)
        result = cached + (value - cached) * (1 - factor)
        self.cache[channel] = result
        return result

    def _write(self, channel: str, value: float) -> None:
        if not self.table.supports(channel):
            return
        self.table.write(channel, self.smoothed(channel, value))


class LipSyncMapper:
    """
    Drives avatar mouth openness from the extractor's mouth channel and
    switches the avatar into a listening pose while the user speaks.
    """

    def __init__(self, driver: AvatarDriver, cfg: Optional[LipSyncConfig] = None):
        self.driver = driver
        self.cfg = cfg or LipSyncConfig()
        self.is_speaking = False
        self.smoothed_openness = 0.0
        self.current_openness = 0.0
        self.speaking_started_at: Optional[float] = None

    def on_speaking_start(self, t_now: Optional[float] = None) -> None:
        if not self.cfg.enabled:
            return
        self.is_speaking = True
        self.speaking_started_at = time.monotonic() if t_now is None else t_now
        logger.info("Speaking started, entering listening pose")
        if self.cfg.attentive_pose_enabled:
            self.driver.set_focus(0.0, 0.0)
            self.driver.set_body_angle(0.0, 0.0, self.cfg.attentive_body_angle_z)

    def on_speaking_end(self) -> None:
        if not self.cfg.enabled:
            return
        self.is_speaking = False
        self.speaking_started_at = None
        self.current_openness = 0.0
        logger.info("Speaking ended, releasing listening pose")
        self.driver.set_mouth_openness(0.0)
        if self.cfg.attentive_pose_enabled:
            self.driver.set_body_angle(0.0, 0.0, 0.0)
            self.driver.play_motion(*IDLE_MOTION)

    def on_mouth_openness(self, raw: float) -> float:
        """
        Gate, scale, clamp and smooth a raw mouth openness value.

        Returns:
            The smoothed openness (written to the avatar only while speaking)
        """
        if not self.cfg.enabled:
            return self.current_openness
        if raw < self.cfg.min_openness:
            raw = 0.0
        openness = min(raw * self.cfg.sensitivity, self.cfg.max_openness)
        weight = self.cfg.smoothing
        self.smoothed_openness = self.smoothed_openness * (1 - weight) + openness * weight
        if self.is_speaking:
            self.current_openness = self.smoothed_openness
            self.driver.set_mouth_openness(self.current_openness)
        return self.smoothed_openness

    def simulate_speaking(self, t_now: float, intensity: float = 0.5) -> Optional[float]:
        """Oscillating mouth movement for when no mouth measurement is available."""
        if not self.cfg.enabled or not self.is_speaking:
            return None
        phase = t_now * 10
        wave = (math.sin(phase * 1.5) * 0.3
                + math.sin(phase * 2.7) * 0.2
                + math.sin(phase * 4.1) * 0.1)
        openness = clamp((wave + 0.6) * intensity, 0.0, 1.0)
        self.driver.set_mouth_openness(openness)
        return openness

    def set_sensitivity(self, sensitivity: float) -> None:
        self.cfg.sensitivity = clamp(sensitivity, 0.1, 5.0)

    def set_smoothing(self, smoothing: float) -> None:
        self.cfg.smoothing = clamp(smoothing, 0.0, 1.0)

    def reset(self) -> None:
        self.is_speaking = False
        self.smoothed_openness = 0.0
        self.current_openness = 0.0
        self.speaking_started_at = None


class ParameterMapper:
    """
    Facade over the gesture, expression and lip-sync mappers.

    All three write through one AvatarDriver. update(t_now) must be called
    once per frame: it advances the mapper clock and runs due timed reverts.
    """

    def __init__(self, cfg: Optional[Cfg] = None,
                 renderer: Optional[AvatarRendererProto] = None,
                 model: Optional[ParameterModelProto] = None):
        cfg = cfg or Cfg()
        self.now: Optional[float] = None
        self.driver = AvatarDriver(renderer)
        self.cooldowns = CooldownRegistry()
        self.timers = TimerQueue()
        self.gestures = GestureMapper(self.driver, self.cooldowns, self.timers,
                                      cfg.gesture_mapper, cfg.viewport, clock=self._clock)
        self.expressions = ExpressionMapper(self.driver, cfg.expression_mapper)
        self.lip_sync = LipSyncMapper(self.driver, cfg.lip_sync)
        if model is not None:
            self.expressions.bind_model(model)

    @property
    def params(self):
        return self.driver.params

    def attach_renderer(self, renderer: Optional[AvatarRendererProto]) -> None:
        self.driver.attach(renderer)

    def bind_model(self, model: Optional[ParameterModelProto]) -> None:
        self.expressions.bind_model(model)

    def update(self, t_now: Optional[float] = None) -> int:
        """
        Advance the mapper clock and run timed reverts that are due.

        Returns:
            Number of deferred actions executed
        """
        self.now = time.monotonic() if t_now is None else t_now
        return self.timers.run_due(self.now)

    def reset(self) -> None:
        self.cooldowns.clear()
        self.timers.clear()
        self.gestures.reset()
        self.expressions.reset()
        self.lip_sync.reset()
        self.driver.reset()

    def _clock(self) -> float:
        return self.now if self.now is not None else time.monotonic()
