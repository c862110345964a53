"""
Domain-level event types for the RuntimeController.

These events are transport-agnostic and represent domain state changes
that external systems (e.g., WebSocket adapters) can subscribe to.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class DomainEventType(Enum):
    """Types of domain events emitted by the RuntimeController."""

    # A streaming client's state was re-evaluated
    STATE_CLASSIFIED = "state_classified"

    # A classification was stored in the history
    STATE_RECORDED = "state_recorded"


@dataclass
class DomainEvent:
    """
    A domain-level event emitted by the RuntimeController.

    Attributes:
        event_type: The type of domain event.
        timestamp: Unix timestamp when the event was created.
        payload: Event-specific domain object (e.g., CognitiveStateResult).
        metadata: Optional metadata such as "recipient_id".
    """
    event_type: DomainEventType
    timestamp: float = field(default_factory=lambda: datetime.now(timezone.utc).timestamp())
    payload: Any = None
    metadata: Optional[Dict[str, Any]] = None
