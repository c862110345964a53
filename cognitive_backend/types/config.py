"""
Configuration type definitions for all system layers.
"""
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Optional, List, Dict, Any, Type, TypeVar, get_origin, get_args, Union
from enum import Enum
import yaml

from .cognitive_state import ClassifierMode

T = TypeVar("T")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _is_optional(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union and type(None) in get_args(tp)


def _strip_optional(tp: Any) -> Any:
    return next(t for t in get_args(tp) if t is not type(None))


def _coerce_value(value: Any, target_type: Any) -> Any:
    """Convert a YAML value into the target field type."""
    if value is None:
        return None

    if _is_optional(target_type):
        return _coerce_value(value, _strip_optional(target_type))

    if isinstance(target_type, type) and issubclass(target_type, Enum):
        return target_type(value)

    if isinstance(target_type, type) and is_dataclass(target_type):
        if not isinstance(value, dict):
            raise ValueError(f"Expected a mapping for {target_type.__name__}")
        return _dict_to_dataclass(value, target_type)

    # YAML writes 1.0 as 1; keep float fields floats
    if target_type is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)

    origin = get_origin(target_type)

    if origin in (list, List):
        (item_type,) = get_args(target_type)
        return [_coerce_value(v, item_type) for v in value]

    if origin in (dict, Dict):
        key_type, val_type = get_args(target_type)
        return {
            _coerce_value(k, key_type): _coerce_value(v, val_type)
            for k, v in value.items()
        }

    return value


def _dict_to_dataclass(data: Dict[str, Any], cls: Type[T]) -> T:
    """Create dataclass instance from dict (ignores unknown keys)."""
    field_map = {f.name: f for f in fields(cls)}
    kwargs = {}

    for key, value in data.items():
        if key not in field_map:
            continue
        kwargs[key] = _coerce_value(value, field_map[key].type)

    return cls(**kwargs)


def _dataclass_to_dict(obj: Any) -> Any:
    """Convert dataclass to YAML-safe dict."""
    if is_dataclass(obj):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _dataclass_to_dict(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_dataclass_to_dict(v) for v in obj]
    return obj


def _check_confidences(obj: Any) -> None:
    for f in fields(obj):
        if f.name.endswith("_confidence"):
            value = getattr(obj, f.name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(
                    f"{type(obj).__name__}.{f.name} must be within [0, 1], got {value}"
                )

#------------------------------------------------------------------
# Configuration Data Classes
#------------------------------------------------------------------


@dataclass
class FeatureSnapshotThresholds:
    """Rule table for the feature-snapshot strategy."""
    # Rule 1: tab switches above this -> distracted
    max_tab_switches: int = 5
    distracted_confidence: float = 0.8

    # Rule 2: typing speed below this (chars/min) -> fatigued
    fatigued_typing_speed: float = 20.0
    fatigued_confidence: float = 0.7

    # Rule 3: typing speed above this -> focused
    focused_typing_speed: float = 60.0
    focused_confidence: float = 0.9

    # Fallback -> receptive
    default_confidence: float = 0.6

    def __post_init__(self):
        _check_confidences(self)


@dataclass
class InteractionLogThresholds:
    """Rule table for the interaction-log strategy."""
    # Only the most recent events are inspected
    recent_event_limit: int = 10

    # Empty window -> idle
    idle_confidence: float = 0.8

    # Long gaps and little scrolling -> focused
    focused_min_gap_ms: float = 5000.0
    focused_max_scrolls: int = 2  # exclusive
    focused_confidence: float = 0.9

    # Many scrolls in quick succession -> distracted
    distracted_min_scrolls: int = 5  # exclusive
    distracted_max_gap_ms: float = 1000.0
    distracted_confidence: float = 0.8

    # Many clicks in quick succession -> stressed
    stressed_min_clicks: int = 8  # exclusive
    stressed_max_gap_ms: float = 2000.0
    stressed_confidence: float = 0.7

    # Fallback -> neutral
    neutral_confidence: float = 0.5

    def __post_init__(self):
        _check_confidences(self)
        if self.recent_event_limit < 1:
            raise ValueError("recent_event_limit must be at least 1")


@dataclass
class ClassifierConfig:
    """Configuration for the State Classifier and interaction tracking."""
    default_mode: ClassifierMode = ClassifierMode.FEATURE_SNAPSHOT
    feature_snapshot: FeatureSnapshotThresholds = field(default_factory=FeatureSnapshotThresholds)
    interaction_log: InteractionLogThresholds = field(default_factory=InteractionLogThresholds)

    # Per-client interaction buffer (streaming path)
    tracker_max_events: int = 50
    tracker_window_seconds: float = 60.0

    def __post_init__(self):
        if self.tracker_max_events < 1:
            raise ValueError("tracker_max_events must be at least 1")
        if self.tracker_window_seconds <= 0:
            raise ValueError("tracker_window_seconds must be positive")


@dataclass
class HistoryConfig:
    """Configuration for the in-memory state history."""
    max_records: int = 10000
    default_query_limit: int = 50

    def __post_init__(self):
        if self.max_records < 1:
            raise ValueError("max_records must be at least 1")
        if self.default_query_limit < 1:
            raise ValueError("default_query_limit must be at least 1")


@dataclass
class ControllerConfig:
    """Configuration for Runtime Controller and transports."""
    # WebSocket settings
    websocket_host: str = "localhost"
    websocket_port: int = 8765

    # API settings
    api_host: str = "localhost"
    api_port: int = 8080

    # Logging
    classification_log_level: str = "INFO"
    system_log_level: str = "INFO"
    log_export_dir: Optional[str] = None

    def __post_init__(self):
        for name in ("classification_log_level", "system_log_level"):
            level = getattr(self, name)
            if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
                raise ValueError(
                    f"ControllerConfig.{name} must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
                )


@dataclass
class SystemConfig:
    """Complete system configuration."""
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)

    @classmethod
    def from_file(cls, path: str) -> "SystemConfig":
        """Load configuration from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError("Top-level YAML must be a mapping")

        return _dict_to_dataclass(data, cls)

    def to_file(self, path: str) -> None:
        """Save configuration to YAML file."""
        data = _dataclass_to_dict(self)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                data,
                f,
                sort_keys=False,
                default_flow_style=False,
            )
