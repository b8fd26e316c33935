"""
Avatar-facing side of the mapper: parameter negotiation and the driver that
owns the desired AvatarParameterSet.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from .landmarks import clamp
from .types import AvatarParameterSet, AvatarRendererProto, MotionTrigger, ParameterModelProto

logger = logging.getLogger(__name__)

# Candidate parameter names per control channel, tried in order. Different
# avatar models (Cubism 2 / Cubism 4 / custom rigs) name the same control
# differently.
PARAM_ALIASES: Dict[str, Tuple[str, ...]] = {
    "eye_l_open": ("ParamEyeLOpen", "PARAM_EYE_L_OPEN", "EyeLOpen"),
    "eye_r_open": ("ParamEyeROpen", "PARAM_EYE_R_OPEN", "EyeROpen"),
    "brow_l_y": ("ParamBrowLY", "PARAM_BROW_L_Y", "BrowLY"),
    "brow_r_y": ("ParamBrowRY", "PARAM_BROW_R_Y", "BrowRY"),
    "angle_x": ("ParamAngleX", "PARAM_ANGLE_X", "AngleX"),
    "angle_y": ("ParamAngleY", "PARAM_ANGLE_Y", "AngleY"),
    "angle_z": ("ParamAngleZ", "PARAM_ANGLE_Z", "AngleZ"),
    "body_angle_x": ("ParamBodyAngleX", "PARAM_BODY_ANGLE_X", "BodyAngleX"),
    "body_angle_y": ("ParamBodyAngleY", "PARAM_BODY_ANGLE_Y", "BodyAngleY"),
    "body_angle_z": ("ParamBodyAngleZ", "PARAM_BODY_ANGLE_Z", "BodyAngleZ"),
    "mouth_open_y": ("ParamMouthOpenY", "PARAM_MOUTH_OPEN_Y", "MouthOpenY"),
    "mouth_form": ("ParamMouthForm", "PARAM_MOUTH_FORM", "MouthForm"),
    "eye_ball_x": ("ParamEyeBallX", "PARAM_EYE_BALL_X", "EyeBallX"),
    "eye_ball_y": ("ParamEyeBallY", "PARAM_EYE_BALL_Y", "EyeBallY"),
}

# Values written when tracking stops.
NEUTRAL_PARAMS: Dict[str, float] = {
    "eye_l_open": 1.0,
    "eye_r_open": 1.0,
    "brow_l_y": 0.0,
    "brow_r_y": 0.0,
    "angle_x": 0.0,
    "angle_y": 0.0,
    "angle_z": 0.0,
    "body_angle_x": 0.0,
    "body_angle_z": 0.0,
    "mouth_open_y": 0.0,
    "mouth_form": 0.0,
}


class ParameterTable:
    """
    Channel -> model parameter handle table, resolved once per model.

    Channels the model does not expose are left out and every later write to
    them is a silent no-op.
    """

    def __init__(self, model: Optional[ParameterModelProto] = None):
        self.model: Optional[ParameterModelProto] = None
        self.handles: Dict[str, Any] = {}
        self.names: Dict[str, str] = {}
        if model is not None:
            self.bind(model)

    def bind(self, model: ParameterModelProto) -> None:
        """Resolve every channel's alias list against ``model``."""
        self.model = model
        self.handles.clear()
        self.names.clear()
        for channel, aliases in PARAM_ALIASES.items():
            for name in aliases:
                try:
                    handle = model.resolve_parameter(name)
                except Exception:
                    logger.debug("Resolving parameter %s raised", name, exc_info=True)
                    handle = None
                if handle is not None:
                    self.handles[channel] = handle
                    self.names[channel] = name
                    break
            else:
                logger.debug("Model has no parameter for channel %s", channel)
        logger.info("Bound %d/%d avatar parameter channels", len(self.handles), len(PARAM_ALIASES))

    def unbind(self) -> None:
        self.model = None
        self.handles.clear()
        self.names.clear()

    def supports(self, channel: str) -> bool:
        return channel in self.handles

    def write(self, channel: str, value: float) -> bool:
        """Write ``value`` to the channel; returns False when it is unresolved."""
        handle = self.handles.get(channel)
        if handle is None or self.model is None:
            return False
        try:
            self.model.set_parameter(handle, value)
        except Exception:
            logger.exception("Setting parameter %s failed", self.names.get(channel, channel))
            return False
        return True


class AvatarDriver:
    """
    Owns the latest desired AvatarParameterSet and forwards changes to the
    avatar renderer.

    Focus is clamped to [-1, 1] and mouth openness to [0, 1]. Expressions are
    forwarded only when they differ from the active one. Without a renderer
    the parameter set is still maintained.
    """

    def __init__(self, renderer: Optional[AvatarRendererProto] = None):
        self.renderer = renderer
        self.params = AvatarParameterSet()

    def attach(self, renderer: Optional[AvatarRendererProto]) -> None:
        self.renderer = renderer

    def set_focus(self, x: float, y: float) -> None:
        self.params.focus_x = clamp(x, -1.0, 1.0)
        self.params.focus_y = clamp(y, -1.0, 1.0)
        self._call("set_focus", self.params.focus_x, self.params.focus_y)

    def set_body_angle(self, x: float, y: float, z: float = 0.0) -> None:
        self.params.body_angle_x = x
        self.params.body_angle_y = y
        self.params.body_angle_z = z
        self._call("set_body_angle", x, y, z)

    def play_motion(self, group: str, index: int = 0, priority: int = 2) -> None:
        self.params.motion = MotionTrigger(group, index, priority)
        logger.debug("Motion %s[%d] priority %d", group, index, priority)
        self._call("play_motion", group, index, priority)

    def set_expression(self, expression_id: str) -> bool:
        """Forward the expression unless it is already active."""
        if self.params.expression == expression_id:
            return False
        self.params.expression = expression_id
        logger.debug("Expression -> %s", expression_id)
        self._call("set_expression", expression_id)
        return True

    def set_mouth_openness(self, value: float) -> None:
        self.params.mouth_openness = clamp(value, 0.0, 1.0)
        self._call("set_mouth_openness", self.params.mouth_openness)

    def set_tracking_mode(self, enabled: bool) -> None:
        self.params.tracking_mode = enabled
        self._call("set_tracking_mode", enabled)

    def reset(self) -> None:
        self.params = AvatarParameterSet()

    def _call(self, method: str, *args) -> None:
        if self.renderer is None:
            return
        try:
            getattr(self.renderer, method)(*args)
        except Exception:
            logger.exception("Avatar renderer %s failed", method)
