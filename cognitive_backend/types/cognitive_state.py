"""
Type definitions for cognitive state classification results.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from enum import Enum


class CognitiveState(Enum):
    """Closed set of labels a classifier can emit."""
    FOCUSED = "focused"
    FATIGUED = "fatigued"
    DISTRACTED = "distracted"
    RECEPTIVE = "receptive"
    # Emitted by the interaction-log strategy only
    STRESSED = "stressed"
    IDLE = "idle"
    NEUTRAL = "neutral"


class ClassifierMode(Enum):
    """Available classification strategies."""
    FEATURE_SNAPSHOT = "feature_snapshot"  # Aggregated telemetry counters
    INTERACTION_LOG = "interaction_log"  # Timestamped interaction events


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class CognitiveStateResult:
    """
    Outcome of a single classification.
    """
    state: CognitiveState
    confidence: float  # 0.0 to 1.0, fixed per rule
    timestamp: datetime  # Set at evaluation time
    mode: ClassifierMode = ClassifierMode.FEATURE_SNAPSHOT

    # Indicators of the rule that matched (for interpretability)
    factors: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "confidence": self.confidence,
            "timestamp": format_timestamp(self.timestamp),
            "mode": self.mode.value,
            "factors": list(self.factors),
        }


@dataclass
class StateRecord:
    """
    A classification result kept in the state history.
    """
    id: str
    result: CognitiveStateResult
    session_id: Optional[str] = None
    activity_id: Optional[str] = None
    duration_ms: Optional[float] = None

    # Raw telemetry that triggered the classification
    triggers: Dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> CognitiveState:
        return self.result.state

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id}
        data.update(self.result.to_dict())
        data.update({
            "sessionId": self.session_id,
            "activityId": self.activity_id,
            "duration": self.duration_ms,
            "triggers": self.triggers,
        })
        return data
