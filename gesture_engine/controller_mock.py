"""
Mock renderers that log and record commands instead of drawing anything.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class MockAvatarRenderer:
    """Mock avatar renderer that records every command it receives."""

    def __init__(self):
        """Initialize the mock renderer."""
        self.calls: List[Tuple[str, tuple]] = []

    def set_focus(self, x: float, y: float) -> None:
        self._record("set_focus", x, y)

    def set_body_angle(self, x: float, y: float, z: float = 0.0) -> None:
        self._record("set_body_angle", x, y, z)

    def play_motion(self, group: str, index: int = 0, priority: int = 2) -> None:
        self._record("play_motion", group, index, priority)

    def set_expression(self, expression_id: str) -> None:
        self._record("set_expression", expression_id)

    def set_mouth_openness(self, value: float) -> None:
        self._record("set_mouth_openness", value)

    def set_tracking_mode(self, enabled: bool) -> None:
        self._record("set_tracking_mode", enabled)

    def calls_to(self, method: str) -> List[tuple]:
        """Arguments of every recorded call to ``method``, oldest first."""
        return [args for name, args in self.calls if name == method]

    def last(self, method: str) -> Optional[tuple]:
        matching = self.calls_to(method)
        return matching[-1] if matching else None

    def reset_counters(self) -> None:
        """Reset recorded calls for testing."""
        self.calls.clear()

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, args))
        logger.debug("[MockAvatarRenderer] %s%s", method, args)


class MockParameterModel:
    """
    In-memory avatar model exposing a fixed set of named parameters.

    Handles are the parameter indices, as in Cubism-style models.
    """

    def __init__(self, names: Sequence[str]):
        self.names = list(names)
        self.values: Dict[str, float] = {name: 0.0 for name in self.names}
        self.writes: List[Tuple[str, float]] = []

    def resolve_parameter(self, name: str) -> Optional[Any]:
        try:
            return self.names.index(name)
        except ValueError:
            return None

    def set_parameter(self, handle: Any, value: float) -> None:
        name = self.names[handle]
        self.values[name] = value
        self.writes.append((name, value))

    def writes_to(self, name: str) -> List[float]:
        return [value for written, value in self.writes if written == name]


class MockSceneRenderer:
    """Mock particle scene that records explosions, drags, scale and pulsing."""

    def __init__(self):
        self.explosions: List[Tuple[float, float, float]] = []
        self.drag_events: List[Tuple[bool, float, float]] = []
        self.scales: List[float] = []
        self.pulsing = False
        self.pulse_events: List[bool] = []

    def trigger_explosion(self, origin: Tuple[float, float, float]) -> None:
        self.explosions.append(origin)
        logger.debug("[MockSceneRenderer] Explosion at %s", origin)

    def set_dragging(self, active: bool, dx: float = 0.0, dy: float = 0.0) -> None:
        self.drag_events.append((active, dx, dy))

    def set_scale(self, value: float) -> None:
        self.scales.append(value)

    def set_pulsing(self, active: bool) -> None:
        self.pulsing = active
        self.pulse_events.append(active)

    def reset_counters(self) -> None:
        self.explosions.clear()
        self.drag_events.clear()
        self.scales.clear()
        self.pulse_events.clear()
