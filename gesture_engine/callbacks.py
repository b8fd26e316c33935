"""
Callback registries for recognizer and extractor events.
"""
import logging
from dataclasses import dataclass, fields, replace
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class _Registry:
    """Single-listener registry; a failing listener is logged, never propagated."""

    def merged(self, **callbacks: Optional[Callable]):
        """Return a copy with the given callbacks replacing existing ones."""
        known = {f.name for f in fields(self)}
        unknown = set(callbacks) - known
        if unknown:
            raise ValueError(f"Unknown callbacks: {sorted(unknown)}")
        return replace(self, **callbacks)

    def emit(self, name: str, *args) -> None:
        callback = getattr(self, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Callback %s failed", name)


@dataclass
class HandCallbacks(_Registry):
    """Listeners for hand recognizer events."""
    hand_detected: Optional[Callable[[bool, bool], None]] = None
    gesture_change: Optional[Callable] = None
    air_click: Optional[Callable[[float, float], None]] = None
    air_drag: Optional[Callable[[float, float], None]] = None
    pinch_zoom: Optional[Callable[[float], None]] = None
    hand_position: Optional[Callable[[float, float, float], None]] = None
    landmarks_update: Optional[Callable] = None


@dataclass
class FaceCallbacks(_Registry):
    """Listeners for face extractor events."""
    speaking_start: Optional[Callable[[], None]] = None
    speaking_end: Optional[Callable[[], None]] = None
    mouth_openness_change: Optional[Callable[[float], None]] = None
    expression_update: Optional[Callable] = None
    face_detected: Optional[Callable[[bool], None]] = None
    landmarks_update: Optional[Callable] = None
