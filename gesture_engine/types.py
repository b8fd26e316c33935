"""
Type definitions for the gesture and expression engine.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Literal, Optional, Protocol, Sequence, Tuple, runtime_checkable


class GestureType(str, Enum):
    """Gesture classes reported by the hand recognizer."""
    IDLE = "idle"
    PINCH = "pinch"
    DRAG = "drag"
    CLICK = "click"
    SWIPE_LEFT = "swipe_left"
    SWIPE_RIGHT = "swipe_right"
    POINT = "point"
    OPEN_PALM = "open_palm"


@dataclass(frozen=True)
class LandmarkPoint:
    """Normalized landmark position; z is depth relative to the wrist/face plane."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class HandObservation:
    """21 hand landmarks plus the handedness label exactly as the feed reported it."""
    landmarks: Sequence[LandmarkPoint]
    handedness: Literal["left", "right", "unknown"] = "unknown"


@dataclass(frozen=True)
class FaceObservation:
    """478 face-mesh landmarks."""
    landmarks: Sequence[LandmarkPoint]


@dataclass
class GestureState:
    """Mutable per-recognizer gesture state, reset whenever no hand is seen."""
    current_gesture: GestureType = GestureType.IDLE
    is_pinching: bool = False
    is_dragging: bool = False
    last_pinch_distance: float = 0.0
    last_position: Optional[Tuple[float, float]] = None
    pinch_start_position: Optional[Tuple[float, float]] = None
    click_cooldown_until: float = 0.0
    last_z_depth: Optional[float] = None
    gesture_history: Deque[GestureType] = field(default_factory=lambda: deque(maxlen=16))

    def click_cooldown(self, t_now: float) -> bool:
        return t_now < self.click_cooldown_until


@dataclass(frozen=True)
class ExpressionVector:
    """Smoothed facial expression features for one frame."""
    left_eye_openness: float = 1.0   # 0 closed .. 1 wide open
    right_eye_openness: float = 1.0
    left_brow_y: float = 0.0         # -1 lowered .. 1 raised
    right_brow_y: float = 0.0
    head_angle_x: float = 0.0        # degrees, -30 .. 30
    head_angle_y: float = 0.0
    head_angle_z: float = 0.0
    mouth_openness: float = 0.0      # 0 .. 1
    mouth_smile: float = 0.0         # -1 frown .. 1 smile
    face_x: float = 0.5
    face_y: float = 0.5
    face_detected: bool = False


@dataclass
class SpeakingState:
    """Debounce state of the legacy mouth-openness channel."""
    is_speaking: bool = False
    smoothed_openness: float = 0.0
    consecutive_open_frames: int = 0
    consecutive_closed_frames: int = 0
    speaking_start_time: Optional[float] = None


@dataclass
class MotionTrigger:
    """Named motion request for the avatar renderer."""
    group: str
    index: int = 0
    priority: int = 2


@dataclass
class AvatarParameterSet:
    """Latest desired avatar control values."""
    focus_x: float = 0.0
    focus_y: float = 0.0
    body_angle_x: float = 0.0
    body_angle_y: float = 0.0
    body_angle_z: float = 0.0
    mouth_openness: float = 0.0
    expression: Optional[str] = None
    motion: Optional[MotionTrigger] = None
    tracking_mode: bool = False


@runtime_checkable
class AvatarRendererProto(Protocol):
    """Operations the engine issues to the avatar renderer (fire-and-forget)."""

    def set_focus(self, x: float, y: float) -> None:
        ...

    def set_body_angle(self, x: float, y: float, z: float = 0.0) -> None:
        ...

    def play_motion(self, group: str, index: int = 0, priority: int = 2) -> None:
        ...

    def set_expression(self, expression_id: str) -> None:
        ...

    def set_mouth_openness(self, value: float) -> None:
        ...

    def set_tracking_mode(self, enabled: bool) -> None:
        ...


@runtime_checkable
class ParameterModelProto(Protocol):
    """Narrow view of an avatar model's named control parameters."""

    def resolve_parameter(self, name: str) -> Optional[Any]:
        """Return an opaque handle for ``name`` or None if the model lacks it."""
        ...

    def set_parameter(self, handle: Any, value: float) -> None:
        ...


@runtime_checkable
class SceneRendererProto(Protocol):
    """Operations the interaction controller issues to the particle scene."""

    def trigger_explosion(self, origin: Tuple[float, float, float]) -> None:
        ...

    def set_dragging(self, active: bool, dx: float = 0.0, dy: float = 0.0) -> None:
        ...

    def set_scale(self, value: float) -> None:
        ...

    def set_pulsing(self, active: bool) -> None:
        ...
