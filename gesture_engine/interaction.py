"""
Scene interaction: screen -> world conversion and particle scene control from
gesture and speaking events.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .config import InteractionConfig, ViewportConfig
from .landmarks import clamp
from .types import GestureType, SceneRendererProto

logger = logging.getLogger(__name__)

# Drag offset magnitude below which the scene is considered at rest.
_DRAG_REST_EPSILON = 1e-3


class PerspectiveCamera:
    """Pinhole camera used for casting rays from normalized device coordinates."""

    def __init__(self, fov_deg: float = 75.0, aspect: float = 16 / 9,
                 position=(0.0, 0.0, 50.0), target=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0)):
        self.fov_deg = fov_deg
        self.aspect = aspect
        self.position = np.asarray(position, dtype=float)
        self.target = np.asarray(target, dtype=float)
        self.up = np.asarray(up, dtype=float)

    def basis(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (right, up, forward) unit vectors in world space."""
        forward = self.target - self.position
        forward = forward / np.linalg.norm(forward)
        right = np.cross(forward, self.up)
        right = right / np.linalg.norm(right)
        true_up = np.cross(right, forward)
        return right, true_up, forward

    def ray(self, ndc_x: float, ndc_y: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Cast a ray through a point in normalized device coordinates.

        Args:
            ndc_x: Horizontal NDC in [-1, 1] (left to right)
            ndc_y: Vertical NDC in [-1, 1] (bottom to top)

        Returns:
            (origin, unit direction) in world space
        """
        half_height = np.tan(np.radians(self.fov_deg) / 2)
        half_width = half_height * self.aspect
        right, up, forward = self.basis()
        direction = right * (ndc_x * half_width) + up * (ndc_y * half_height) + forward
        return self.position.copy(), direction / np.linalg.norm(direction)

    def point_at(self, ndc_x: float, ndc_y: float, depth: float) -> np.ndarray:
        origin, direction = self.ray(ndc_x, ndc_y)
        return origin + direction * depth


@dataclass
class InteractionState:
    """Snapshot of the controller's combined gesture/speech state."""
    is_pointing: bool = False
    is_speaking_and_pointing: bool = False
    selected_region: Optional[Tuple[float, float, float]] = None


class InteractionController:
    """
    Consumes gesture and speaking events and drives the particle scene.

    Features:
    - Air click -> explosion at a fixed depth along the camera ray
    - Air drag -> scene drag with decay back to rest
    - Pinch zoom -> smoothed, clamped scene scale
    - Speaking -> pulsing; speaking while pointing -> region selection
    """

    def __init__(self, cfg: Optional[InteractionConfig] = None,
                 viewport: Optional[ViewportConfig] = None,
                 scene: Optional[SceneRendererProto] = None,
                 camera: Optional[PerspectiveCamera] = None):
        self.cfg = cfg or InteractionConfig()
        self.viewport = viewport or ViewportConfig()
        self.scene = scene
        self.camera = camera or PerspectiveCamera(
            fov_deg=self.cfg.camera_fov,
            aspect=self.viewport.width / self.viewport.height,
            position=(0.0, 0.0, self.cfg.camera_z),
        )
        self.on_region_selected: Optional[Callable[[Tuple[float, float, float]], None]] = None
        self.reset()

    def set_scene(self, scene: Optional[SceneRendererProto]) -> None:
        self.scene = scene

    def set_camera(self, camera: Optional[PerspectiveCamera]) -> None:
        self.camera = camera

    # ---------- coordinate conversion ----------

    def screen_to_ndc(self, x: float, y: float) -> Tuple[float, float]:
        return (x / self.viewport.width) * 2 - 1, -(y / self.viewport.height) * 2 + 1

    def world_from_screen(self, x: float, y: float,
                          depth: Optional[float] = None) -> Tuple[float, float, float]:
        """World position ``depth`` units along the camera ray through a screen pixel."""
        if self.camera is None:
            return (0.0, 0.0, 0.0)
        depth = self.cfg.explosion_depth if depth is None else depth
        return _as_tuple(self.camera.point_at(*self.screen_to_ndc(x, y), depth))

    # ---------- gesture events ----------

    def on_gesture_change(self, gesture: GestureType) -> None:
        self.current_gesture = GestureType(gesture)
        self.state.is_pointing = self.current_gesture == GestureType.POINT
        self._update_speaking_and_pointing()

    def on_air_click(self, x: float, y: float) -> None:
        self.pointer = self.screen_to_ndc(x, y)
        if self.scene is None or self.camera is None:
            return
        origin = _as_tuple(self.camera.point_at(*self.pointer, self.cfg.explosion_depth))
        self._scene_call("trigger_explosion", origin)
        logger.debug("Air click at (%.0f, %.0f) -> explosion at %s", x, y, origin)

    def on_air_drag(self, dx: float, dy: float) -> None:
        step = self.cfg.drag_sensitivity
        self.pointer = (clamp(self.pointer[0] + dx * step, -1.0, 1.0),
                        clamp(self.pointer[1] + dy * step, -1.0, 1.0))
        self.drag_offset = (self.drag_offset[0] + dx * step, self.drag_offset[1] + dy * step)
        self.is_dragging = True
        self._scene_call("set_dragging", True, dx, dy)

    def on_pinch_zoom(self, scale: float) -> None:
        self.target_scale = clamp(self.target_scale * scale, self.cfg.min_scale, self.cfg.max_scale)

    # ---------- speaking events ----------

    def on_speaking_start(self) -> None:
        self.is_speaking = True
        self._scene_call("set_pulsing", True)
        self._update_speaking_and_pointing()
        logger.info("Speaking started, scene pulsing")

    def on_speaking_end(self) -> None:
        self.is_speaking = False
        self._scene_call("set_pulsing", False)
        self._update_speaking_and_pointing()
        logger.info("Speaking ended, scene calm")

    # ---------- per-frame ----------

    def update(self, dt: float = 0.0) -> float:
        """
        Advance scale smoothing and drag decay by one frame.

        Returns:
            The current scene scale
        """
        self.current_scale += (self.target_scale - self.current_scale) * self.cfg.zoom_smoothing
        self._scene_call("set_scale", self.current_scale)

        if self.is_dragging:
            decay = self.cfg.drag_decay
            self.drag_offset = (self.drag_offset[0] * decay, self.drag_offset[1] * decay)
            if max(abs(self.drag_offset[0]), abs(self.drag_offset[1])) < _DRAG_REST_EPSILON:
                self.drag_offset = (0.0, 0.0)
                self.is_dragging = False
                self._scene_call("set_dragging", False, 0.0, 0.0)
        return self.current_scale

    def get_state(self) -> InteractionState:
        return InteractionState(
            is_pointing=self.state.is_pointing,
            is_speaking_and_pointing=self.state.is_speaking_and_pointing,
            selected_region=self.state.selected_region,
        )

    def reset(self) -> None:
        self.current_gesture = GestureType.IDLE
        self.is_speaking = False
        self.is_dragging = False
        self.pointer: Tuple[float, float] = (0.0, 0.0)
        self.drag_offset: Tuple[float, float] = (0.0, 0.0)
        self.current_scale = 1.0
        self.target_scale = 1.0
        self.state = InteractionState()

    def dispose(self) -> None:
        self.scene = None
        self.camera = None
        self.on_region_selected = None
        self.reset()

    # ---------- internals ----------

    def _update_speaking_and_pointing(self) -> None:
        was_active = self.state.is_speaking_and_pointing
        self.state.is_speaking_and_pointing = self.is_speaking and self.state.is_pointing
        if self.state.is_speaking_and_pointing and not was_active:
            self._select_region_at_pointer()

    def _select_region_at_pointer(self) -> None:
        if self.camera is None:
            return
        region = _as_tuple(self.camera.point_at(*self.pointer, self.cfg.explosion_depth))
        self.state.selected_region = region
        logger.info("Region selected at (%.2f, %.2f, %.2f)", *region)
        if self.on_region_selected is not None:
            try:
                self.on_region_selected(region)
            except Exception:
                logger.exception("Region selection callback failed")

    def _scene_call(self, method: str, *args) -> None:
        if self.scene is None:
            return
        try:
            getattr(self.scene, method)(*args)
        except Exception:
            logger.exception("Scene renderer %s failed", method)


def _as_tuple(vector: np.ndarray) -> Tuple[float, float, float]:
    return (float(vector[0]), float(vector[1]), float(vector[2]))
