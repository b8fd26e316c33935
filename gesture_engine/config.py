"""
Configuration management for the gesture & expression engine.
"""
import yaml
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30


@dataclass
class MediaPipeConfig:
    """MediaPipe hands / face mesh configuration settings."""
    max_num_hands: int = 2
    max_num_faces: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass
class ViewportConfig:
    """Screen size used for pixel-space gesture coordinates."""
    width: int = 1920
    height: int = 1080


@dataclass
class HandConfig:
    """Hand gesture recognizer thresholds (normalized landmark units)."""
    pinch_threshold: float = 0.05
    drag_threshold: float = 0.02
    drag_scale: float = 100.0
    zoom_min_change: float = 0.05
    click_z_threshold: float = 0.03
    click_cooldown_ms: int = 300
    swipe_threshold: float = 0.15
    open_palm_spread: float = 0.15
    point_margin: float = 0.05
    history_size: int = 16


@dataclass
class FaceConfig:
    """Face expression extractor settings."""
    expression_smoothing: float = 0.4
    mouth_smoothing: float = 0.3
    mouth_open_threshold: float = 0.02
    speaking_start_frames: int = 3
    speaking_stop_frames: int = 6
    eye_ratio_min: float = 0.15
    eye_ratio_max: float = 0.35
    brow_baseline: float = 0.045
    brow_range: float = 0.02


@dataclass
class GestureMapperConfig:
    """Gesture to avatar reaction mapping."""
    enabled: bool = True
    focus_tracking_enabled: bool = True
    gesture_reactions_enabled: bool = True
    body_tilt_sensitivity: float = 15.0
    click_cooldown_ms: int = 500
    pinch_cooldown_ms: int = 1000
    swipe_cooldown_ms: int = 800
    swipe_hold_ms: int = 500
    palm_cooldown_ms: int = 1000
    zoom_surprise_scale: float = 1.2
    zoom_calm_scale: float = 0.8


@dataclass
class ExpressionMapperConfig:
    """Expression vector to avatar parameter mapping."""
    enabled: bool = True
    eye_tracking_enabled: bool = True
    brow_tracking_enabled: bool = True
    head_tracking_enabled: bool = True
    mouth_tracking_enabled: bool = True
    gaze_tracking_enabled: bool = True
    eye_sensitivity: float = 1.0
    brow_sensitivity: float = 1.0
    head_sensitivity: float = 0.8
    mouth_sensitivity: float = 1.5
    body_follow_factor: float = 0.3
    smoothing_factor: float = 0.3  # 0-1, higher = more smoothing


@dataclass
class LipSyncConfig:
    """Lip-sync channel settings."""
    enabled: bool = True
    sensitivity: float = 2.0
    smoothing: float = 0.3
    min_openness: float = 0.01
    max_openness: float = 1.0
    attentive_pose_enabled: bool = True
    attentive_body_angle_z: float = 5.0


@dataclass
class InteractionConfig:
    """Scene interaction settings."""
    explosion_depth: float = 30.0
    drag_sensitivity: float = 0.01
    drag_decay: float = 0.95
    zoom_smoothing: float = 0.2
    min_scale: float = 0.3
    max_scale: float = 2.5
    camera_fov: float = 75.0
    camera_z: float = 50.0


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool = True
    show_expression: bool = True
    window_name: str = "Gesture Engine"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    hand: HandConfig = field(default_factory=HandConfig)
    face: FaceConfig = field(default_factory=FaceConfig)
    gesture_mapper: GestureMapperConfig = field(default_factory=GestureMapperConfig)
    expression_mapper: ExpressionMapperConfig = field(default_factory=ExpressionMapperConfig)
    lip_sync: LipSyncConfig = field(default_factory=LipSyncConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


T = TypeVar("T")


def default_config() -> Cfg:
    """Return the built-in defaults without reading any file."""
    return Cfg()


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return _dict_to_config(data)


def _section(cls: Type[T], data: Dict[str, Any], key: str) -> T:
    """Build one config section; missing keys keep their defaults."""
    section_data = data.get(key) or {}
    if not isinstance(section_data, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(section_data) - known
    if unknown:
        raise ValueError(f"Unknown keys in config section '{key}': {sorted(unknown)}")
    return cls(**section_data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    cfg = Cfg(
        camera=_section(CameraConfig, data, 'camera'),
        mediapipe=_section(MediaPipeConfig, data, 'mediapipe'),
        viewport=_section(ViewportConfig, data, 'viewport'),
        hand=_section(HandConfig, data, 'hand'),
        face=_section(FaceConfig, data, 'face'),
        gesture_mapper=_section(GestureMapperConfig, data, 'gesture_mapper'),
        expression_mapper=_section(ExpressionMapperConfig, data, 'expression_mapper'),
        lip_sync=_section(LipSyncConfig, data, 'lip_sync'),
        interaction=_section(InteractionConfig, data, 'interaction'),
        display=_section(DisplayConfig, data, 'display'),
        logging=_section(LoggingConfig, data, 'logging'),
    )
    validate_config(cfg)
    return cfg


def validate_config(cfg: Cfg) -> None:
    """Reject values that would make the recognizers meaningless."""
    if cfg.viewport.width <= 0 or cfg.viewport.height <= 0:
        raise ValueError("viewport width and height must be positive")
    if cfg.hand.pinch_threshold <= 0 or cfg.hand.swipe_threshold <= 0:
        raise ValueError("hand thresholds must be positive")
    if cfg.face.eye_ratio_max <= cfg.face.eye_ratio_min:
        raise ValueError("face.eye_ratio_max must exceed face.eye_ratio_min")
    if cfg.face.speaking_start_frames < 1 or cfg.face.speaking_stop_frames < 1:
        raise ValueError("speaking frame counts must be at least 1")
    for name, value in (
        ("face.expression_smoothing", cfg.face.expression_smoothing),
        ("face.mouth_smoothing", cfg.face.mouth_smoothing),
        ("expression_mapper.smoothing_factor", cfg.expression_mapper.smoothing_factor),
        ("lip_sync.smoothing", cfg.lip_sync.smoothing),
        ("interaction.zoom_smoothing", cfg.interaction.zoom_smoothing),
    ):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be within [0, 1], got {value}")
    if cfg.interaction.min_scale > cfg.interaction.max_scale:
        raise ValueError("interaction.min_scale must not exceed max_scale")
