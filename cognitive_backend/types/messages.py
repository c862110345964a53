"""
Type definitions for WebSocket and API messages.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum


class MessageType(Enum):
    """Types of WebSocket messages."""
    # From extension to Backend
    INTERACTION = "interaction"
    TELEMETRY_SAMPLE = "telemetry_sample"

    # From Backend to extension
    STATE_UPDATE = "state_update"
    STATUS_UPDATE = "status_update"
    ERROR = "error"

    # Bidirectional
    PING = "ping"
    PONG = "pong"


class SystemStatus(Enum):
    """System status states."""
    INITIALIZING = "initializing"
    READY = "ready"
    STOPPED = "stopped"


@dataclass
class WebSocketMessage:
    """Base WebSocket message structure."""
    type: MessageType
    timestamp: float
    payload: Dict[str, Any] = field(default_factory=dict)
    message_id: Optional[str] = None
    target_client_id: Optional[str] = None  # For targeted messages

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary for JSON serialization."""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "payload": self.payload,
            "message_id": self.message_id,
            "target_client_id": self.target_client_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebSocketMessage":
        """
        Create message from dictionary.

        Raises:
            ValueError: If the type is unknown or the payload is not a mapping.
        """
        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise ValueError("payload must be an object")
        return cls(
            type=MessageType(data.get("type")),
            timestamp=data.get("timestamp", 0),
            payload=payload,
            message_id=data.get("message_id"),
        )


@dataclass
class SystemStatusMessage:
    """System status snapshot."""
    status: SystemStatus
    timestamp: float
    uptime_seconds: float = 0.0

    # Statistics
    classifications: int = 0
    records_stored: int = 0
    tracked_clients: int = 0
    connected_clients: int = 0

    default_mode: str = "feature_snapshot"
