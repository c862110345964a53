"""
Type definitions for interaction telemetry.

Two input shapes are supported:
- InteractionSample: aggregated counters over an observation window
- InteractionEvent: a single timestamped UI event (scroll, click, ...)

Parsing from JSON is lenient per field: a value of the wrong type is
treated as absent. Only the overall shape (object vs. list) is enforced.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from .errors import MalformedRequestError


def as_number(value: Any) -> Optional[float]:
    """
    Return value as a finite float, or None if it is not a usable number.

    Integers too large for a float are treated like infinities.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _as_count(value: Any) -> Optional[float]:
    # Integral values become ints; fractional counts are kept as sent
    number = as_number(value)
    if number is None:
        return None
    return int(number) if number.is_integer() else number


def parse_event_timestamp(value: Any) -> Optional[float]:
    """
    Convert an event timestamp into epoch milliseconds.

    Accepts epoch milliseconds or an ISO-8601 string. Naive strings are
    read as UTC.

    Returns:
        Milliseconds since the epoch, or None if the value is unusable.
    """
    number = as_number(value)
    if number is not None:
        return number

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000.0


@dataclass
class InteractionSample:
    """
    Snapshot of interaction counters over an observation window.
    All fields are optional; None means "unknown".
    """
    typing_speed: Optional[float] = None  # chars/min
    mouse_movements: Optional[float] = None
    tab_switches: Optional[float] = None
    scroll_behavior: Optional[str] = None  # e.g. "rapid", "slow"
    time_window_ms: Optional[float] = None

    # Carried for history triggers, not used by the rules
    keystrokes: Optional[float] = None
    scroll_events: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> "InteractionSample":
        """
        Build a sample from a JSON object using the wire field names.

        Raises:
            MalformedRequestError: If data is not a mapping.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise MalformedRequestError("Expected a JSON object with telemetry fields")

        scroll_behavior = data.get("scrollBehavior")
        if not isinstance(scroll_behavior, str):
            scroll_behavior = None

        return cls(
            typing_speed=as_number(data.get("typingSpeed")),
            mouse_movements=_as_count(data.get("mouseMovements")),
            tab_switches=_as_count(data.get("tabSwitches")),
            scroll_behavior=scroll_behavior,
            time_window_ms=as_number(data.get("timeWindow", data.get("timeSpent"))),
            keystrokes=_as_count(data.get("keystrokes")),
            scroll_events=_as_count(data.get("scrollEvents")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, omitting unknown fields."""
        data = {
            "typingSpeed": self.typing_speed,
            "mouseMovements": self.mouse_movements,
            "tabSwitches": self.tab_switches,
            "scrollBehavior": self.scroll_behavior,
            "timeWindow": self.time_window_ms,
            "keystrokes": self.keystrokes,
            "scrollEvents": self.scroll_events,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class InteractionEvent:
    """A single UI interaction."""
    type: str
    timestamp_ms: Optional[float] = None  # None when the client sent no usable time

    @classmethod
    def from_dict(cls, data: Any) -> "InteractionEvent":
        if not isinstance(data, dict):
            raise MalformedRequestError("Each interaction must be a JSON object")
        event_type = data.get("type")
        return cls(
            type=event_type.strip().lower() if isinstance(event_type, str) else "",
            timestamp_ms=parse_event_timestamp(data.get("timestamp")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "timestamp": self.timestamp_ms}


def parse_interactions(data: Any) -> List[InteractionEvent]:
    """
    Parse the `interactions` array of a request body.

    A missing array is an empty log.

    Raises:
        MalformedRequestError: If the value is not a list of objects.
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedRequestError("'interactions' must be an array")
    return [InteractionEvent.from_dict(item) for item in data]
