"""
Composition root: wires recognizer, extractor, mapper and interaction
controller together and drives them once per frame.
"""
import logging
import time
from typing import Optional, Sequence

from .callbacks import FaceCallbacks, HandCallbacks
from .config import Cfg, default_config, validate_config
from .expressions import FaceExpressionExtractor
from .gestures import HandGestureRecognizer
from .interaction import InteractionController
from .mapper import ParameterMapper
from .types import (
    AvatarRendererProto,
    FaceObservation,
    HandObservation,
    ParameterModelProto,
    SceneRendererProto,
)

logger = logging.getLogger(__name__)


class GestureEngine:
    """
    Per-frame pipeline: landmark feed -> {recognizer, extractor} ->
    parameter mapper -> {avatar renderer, interaction controller}.

    Recognizer and extractor stay inert (every frame is a no-op) until
    initialize() succeeds, unless constructed with ready=True.
    """

    def __init__(self, cfg: Optional[Cfg] = None,
                 avatar: Optional[AvatarRendererProto] = None,
                 model: Optional[ParameterModelProto] = None,
                 scene: Optional[SceneRendererProto] = None,
                 ready: bool = False):
        self.cfg = cfg or default_config()
        validate_config(self.cfg)

        self.recognizer = HandGestureRecognizer(self.cfg.hand, self.cfg.viewport, active=ready)
        self.extractor = FaceExpressionExtractor(self.cfg.face, active=ready)
        self.mapper = ParameterMapper(self.cfg, renderer=avatar, model=model)
        self.interaction = InteractionController(self.cfg.interaction, self.cfg.viewport, scene=scene)

        self.hand_listeners = HandCallbacks()
        self.face_listeners = FaceCallbacks()
        self.feed = None
        self.last_timestamp: Optional[float] = None
        self.last_t_now: Optional[float] = None
        self.disposed = False

        self._wire()

    @property
    def ready(self) -> bool:
        return self.recognizer.active and self.extractor.active

    # ---------- lifecycle ----------

    def initialize(self, feed=None) -> bool:
        """
        Initialize the landmark feed (if any) and activate the pipeline.

        Args:
            feed: Object with initialize() -> bool and close(), e.g. LandmarkFeed

        Returns:
            True if the pipeline is active, False if the feed failed to start
        """
        ok = True
        if feed is not None:
            self.feed = feed
            try:
                ok = bool(feed.initialize())
            except Exception:
                logger.exception("Landmark feed initialization raised")
                ok = False
        if not ok:
            logger.error("Landmark feed failed to initialize; engine stays inert")
        self.recognizer.active = ok
        self.extractor.active = ok
        self.disposed = False
        if ok:
            logger.info("Gesture engine initialized")
        return ok

    def dispose(self) -> None:
        """Release the feed and reset every component; safe to call repeatedly."""
        if self.disposed:
            return
        if self.feed is not None:
            try:
                self.feed.close()
            except Exception:
                logger.exception("Closing landmark feed failed")
            self.feed = None
        self.recognizer.active = False
        self.extractor.active = False
        self.recognizer.reset()
        self.extractor.reset()
        self.mapper.reset()
        self.interaction.reset()
        self.last_timestamp = None
        self.last_t_now = None
        self.disposed = True
        logger.info("Gesture engine disposed")

    # ---------- collaborators ----------

    def attach_avatar(self, avatar: Optional[AvatarRendererProto]) -> None:
        self.mapper.attach_renderer(avatar)

    def bind_model(self, model: Optional[ParameterModelProto]) -> None:
        self.mapper.bind_model(model)

    def attach_scene(self, scene: Optional[SceneRendererProto]) -> None:
        self.interaction.set_scene(scene)

    def register_hand_callbacks(self, **callbacks) -> None:
        """Add application listeners for hand events (called after internal consumers)."""
        self.hand_listeners = self.hand_listeners.merged(**callbacks)

    def register_face_callbacks(self, **callbacks) -> None:
        """Add application listeners for face events (called after internal consumers)."""
        self.face_listeners = self.face_listeners.merged(**callbacks)

    # ---------- per-frame ----------

    def process_frame(self, hands: Optional[Sequence[HandObservation]],
                      face: Optional[FaceObservation], timestamp: float,
                      t_now: Optional[float] = None) -> bool:
        """
        Run one frame through the pipeline.

        Args:
            hands: Hand observations (0-2)
            face: Face observation or None
            timestamp: Feed timestamp; repeating the previous one is a no-op
            t_now: Wall-clock seconds for cooldowns and timers (defaults to time.monotonic())

        Returns:
            True if either the hand or the face part of the frame was processed
        """
        if t_now is None:
            t_now = time.monotonic()
        if not self.ready:
            return False
        if self.last_timestamp is not None and timestamp == self.last_timestamp:
            return False
        self.last_timestamp = timestamp

        self.mapper.update(t_now)
        hands_done = self.recognizer.process_frame(hands, timestamp, t_now)
        face_done = self.extractor.process_frame(face, timestamp, t_now)
        if not (hands_done or face_done):
            return False

        dt = 0.0 if self.last_t_now is None else max(0.0, t_now - self.last_t_now)
        self.last_t_now = t_now
        self.interaction.update(dt)
        return True

    def process_result(self, result, t_now: Optional[float] = None) -> bool:
        """Run a FeedResult (hands, face, timestamp) through the pipeline."""
        return self.process_frame(result.hands, result.face, result.timestamp, t_now)

    # ---------- wiring ----------

    def _wire(self) -> None:
        self.recognizer.register_callbacks(
            hand_detected=self._on_hand_detected,
            gesture_change=self._on_gesture_change,
            air_click=self._on_air_click,
            air_drag=self._on_air_drag,
            pinch_zoom=self._on_pinch_zoom,
            hand_position=self._on_hand_position,
            landmarks_update=lambda *args: self.hand_listeners.emit("landmarks_update", *args),
        )
        self.extractor.register_callbacks(
            speaking_start=self._on_speaking_start,
            speaking_end=self._on_speaking_end,
            mouth_openness_change=self._on_mouth_openness,
            expression_update=self._on_expression,
            face_detected=lambda present: self.face_listeners.emit("face_detected", present),
            landmarks_update=lambda *args: self.face_listeners.emit("landmarks_update", *args),
        )

    def _on_hand_detected(self, is_left: bool, is_right: bool) -> None:
        self.mapper.gestures.on_hand_detected(is_left, is_right)
        self.hand_listeners.emit("hand_detected", is_left, is_right)

    def _on_gesture_change(self, gesture) -> None:
        self.mapper.gestures.on_gesture_change(gesture)
        self.interaction.on_gesture_change(gesture)
        self.hand_listeners.emit("gesture_change", gesture)

    def _on_air_click(self, x: float, y: float) -> None:
        self.mapper.gestures.on_air_click(x, y)
        self.interaction.on_air_click(x, y)
        self.hand_listeners.emit("air_click", x, y)

    def _on_air_drag(self, dx: float, dy: float) -> None:
        self.mapper.gestures.on_air_drag(dx, dy)
        self.interaction.on_air_drag(dx, dy)
        self.hand_listeners.emit("air_drag", dx, dy)

    def _on_pinch_zoom(self, scale: float) -> None:
        self.mapper.gestures.on_pinch_zoom(scale)
        self.interaction.on_pinch_zoom(scale)
        self.hand_listeners.emit("pinch_zoom", scale)

    def _on_hand_position(self, x: float, y: float, z: float) -> None:
        self.mapper.gestures.on_hand_position(x, y, z)
        self.hand_listeners.emit("hand_position", x, y, z)

    def _on_speaking_start(self) -> None:
        self.mapper.lip_sync.on_speaking_start(self.mapper.now)
        self.interaction.on_speaking_start()
        self.face_listeners.emit("speaking_start")

    def _on_speaking_end(self) -> None:
        self.mapper.lip_sync.on_speaking_end()
        self.interaction.on_speaking_end()
        self.face_listeners.emit("speaking_end")

    def _on_mouth_openness(self, value: float) -> None:
        self.mapper.lip_sync.on_mouth_openness(value)
        self.face_listeners.emit("mouth_openness_change", value)

    def _on_expression(self, expression) -> None:
        self.mapper.expressions.update(expression)
        self.face_listeners.emit("expression_update", expression)


_engine: Optional[GestureEngine] = None


def get_engine(cfg: Optional[Cfg] = None, **kwargs) -> GestureEngine:
    """
    Return the process-wide engine, creating it on first use.

    Arguments are only used when a new engine is created.
    """
    global _engine
    if _engine is None:
        _engine = GestureEngine(cfg, **kwargs)
        logger.debug("Created shared gesture engine")
    return _engine


def dispose_engine() -> None:
    """Dispose the shared engine; the next get_engine() builds a fresh one."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
