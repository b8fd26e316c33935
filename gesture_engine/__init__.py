"""
Gesture & Expression Engine

Turns per-frame hand and face landmarks from a camera feed into debounced
gesture/speech events, a smoothed facial expression vector, and avatar and
particle-scene control values.
"""

__version__ = "0.1.0"

from .types import (
    GestureType,
    LandmarkPoint,
    HandObservation,
    FaceObservation,
    ExpressionVector,
    AvatarParameterSet,
    AvatarRendererProto,
    ParameterModelProto,
    SceneRendererProto,
)
from .config import load_config, default_config, Cfg
from .gestures import HandGestureRecognizer
from .expressions import FaceExpressionExtractor
from .mapper import ParameterMapper, GestureMapper, ExpressionMapper, LipSyncMapper
from .interaction import InteractionController, PerspectiveCamera
from .engine import GestureEngine, get_engine, dispose_engine
from .controller_mock import MockAvatarRenderer, MockParameterModel, MockSceneRenderer

__all__ = [
    "GestureType",
    "LandmarkPoint",
    "HandObservation",
    "FaceObservation",
    "ExpressionVector",
    "AvatarParameterSet",
    "AvatarRendererProto",
    "ParameterModelProto",
    "SceneRendererProto",
    "load_config",
    "default_config",
    "Cfg",
    "HandGestureRecognizer",
    "FaceExpressionExtractor",
    "ParameterMapper",
    "GestureMapper",
    "ExpressionMapper",
    "LipSyncMapper",
    "InteractionController",
    "PerspectiveCamera",
    "GestureEngine",
    "get_engine",
    "dispose_engine",
    "MockAvatarRenderer",
    "MockParameterModel",
    "MockSceneRenderer",
]
