# Type definitions for the cognitive state backend
from .cognitive_state import (
    CognitiveState,
    ClassifierMode,
    CognitiveStateResult,
    StateRecord,
)
from .interaction import (
    InteractionSample,
    InteractionEvent,
    parse_interactions,
)
from .errors import MalformedRequestError
from .config import (
    FeatureSnapshotThresholds,
    InteractionLogThresholds,
    ClassifierConfig,
    HistoryConfig,
    ControllerConfig,
    SystemConfig,
)
from .messages import (
    MessageType,
    SystemStatus,
    WebSocketMessage,
    SystemStatusMessage,
)

__all__ = [
    # Classification types
    "CognitiveState",
    "ClassifierMode",
    "CognitiveStateResult",
    "StateRecord",
    # Telemetry types
    "InteractionSample",
    "InteractionEvent",
    "parse_interactions",
    # Errors
    "MalformedRequestError",
    # Config types
    "FeatureSnapshotThresholds",
    "InteractionLogThresholds",
    "ClassifierConfig",
    "HistoryConfig",
    "ControllerConfig",
    "SystemConfig",
    # Message types
    "MessageType",
    "SystemStatus",
    "WebSocketMessage",
    "SystemStatusMessage",
]
