"""
Interaction Tracker

Buffers interaction events streamed by a single client so the
interaction-log strategy can be re-evaluated after every event.
"""
import time
from collections import deque
from typing import Optional, List

from cognitive_backend.types import InteractionEvent


class InteractionTracker:
    """
    Bounded, time-windowed buffer of interaction events.
    """

    def __init__(self, max_events: int = 50, window_seconds: float = 60.0):
        """
        Initialize the tracker.

        Args:
            max_events: Oldest events are dropped beyond this count.
            window_seconds: Events older than this are ignored by recent().
        """
        self._events: deque[InteractionEvent] = deque(maxlen=max_events)
        self._window_seconds = window_seconds
        self._last_interaction_ms: Optional[float] = None

    def __len__(self) -> int:
        return len(self._events)

    def resize(self, max_events: int, window_seconds: float) -> None:
        """Change the limits, keeping the newest events."""
        self._events = deque(self._events, maxlen=max_events)
        self._window_seconds = window_seconds

    def record(self, event: InteractionEvent, now_ms: Optional[float] = None) -> InteractionEvent:
        """
        Add an event. Untimed events are stamped with the arrival time.

        Returns:
            The stored event.
        """
        arrival = now_ms if now_ms is not None else time.time() * 1000.0
        if event.timestamp_ms is None:
            event = InteractionEvent(type=event.type, timestamp_ms=arrival)
        self._events.append(event)
        self._last_interaction_ms = arrival
        return event

    def recent(self, now_ms: Optional[float] = None) -> List[InteractionEvent]:
        """Events inside the time window, in arrival order."""
        now_ms = now_ms if now_ms is not None else time.time() * 1000.0
        cutoff = now_ms - self._window_seconds * 1000.0
        return [e for e in self._events if e.timestamp_ms >= cutoff]

    def last_interaction_ms(self) -> Optional[float]:
        return self._last_interaction_ms

    def reset(self) -> None:
        """Drop all buffered events."""
        self._events.clear()
        self._last_interaction_ms = None
