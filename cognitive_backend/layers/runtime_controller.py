"""
Runtime Controller

Central orchestrator between the transports and the classification layer.

Responsibilities:
- Turning request envelopes into observations and classifying them
- Keeping one InteractionTracker per streaming client
- Recording results in the state history
- Publishing domain events for the WebSocket adapter
- Logging every classification
"""
from typing import Optional, Dict, Any, List, Callable
from datetime import datetime, timezone
import time

from cognitive_backend.layers.interaction_tracker import InteractionTracker
from cognitive_backend.layers.state_classifier import StateClassifier
from cognitive_backend.services.logger_service import get_logger
from cognitive_backend.services.state_history import StateHistory
from cognitive_backend.types import (
    ClassifierMode,
    CognitiveStateResult,
    InteractionEvent,
    InteractionSample,
    MalformedRequestError,
    StateRecord,
    SystemConfig,
    parse_interactions,
)
from cognitive_backend.types.interaction import as_number
from cognitive_backend.types.messages import SystemStatus, SystemStatusMessage
from cognitive_backend.types.domain_events import DomainEvent, DomainEventType


def _json_body(request: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Extract the JSON object body of a request envelope.

    An empty body is an empty object.

    Raises:
        MalformedRequestError: If the body is not a JSON object.
    """
    request = request or {}
    body = request.get("json")
    if body is None:
        if request.get("text"):
            raise MalformedRequestError("Request body must be valid JSON")
        return {}
    if not isinstance(body, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    return body


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class RuntimeController:
    """
    Central orchestrator for the cognitive state backend.
    """

    def __init__(self, config: Optional[SystemConfig] = None):
        """
        Initialize the Runtime Controller.

        Args:
            config: Complete system configuration.
        """
        self._config = config or SystemConfig()

        self._classifier = StateClassifier(self._config.classifier)
        self._history = StateHistory(self._config.history.max_records)
        self._trackers: Dict[str, InteractionTracker] = {}

        self._status: SystemStatus = SystemStatus.INITIALIZING
        self._started_at: Optional[float] = None
        self._stats: Dict[str, int] = {
            "classifications": 0,
            "records_stored": 0,
        }

        # Reported in status; set by the server
        self._connected_clients: Callable[[], int] = lambda: 0

        # Domain event handlers for external communication
        self._event_handlers: List[Callable[[DomainEvent], None]] = []

        self._logger = get_logger()
        self._logger.system(
            "runtime_controller_initialized",
            {"default_mode": self._classifier.default_mode.value},
            level="DEBUG",
        )

    async def initialize(self) -> bool:
        """Mark the controller ready to serve requests."""
        self._status = SystemStatus.READY
        self._started_at = time.monotonic()
        self._logger.system("runtime_controller_ready", {}, level="DEBUG")
        return True

    async def shutdown(self) -> None:
        """Drop per-client state and stop."""
        self._trackers.clear()
        self._status = SystemStatus.STOPPED
        self._logger.system("runtime_controller_stopped", {}, level="DEBUG")

    def configure(self, config: SystemConfig) -> None:
        """
        Apply a new configuration.

        History and tracked events are kept, trimmed to the new limits.

        Args:
            config: New configuration.
        """
        self._config = config
        self._classifier.configure(config.classifier)
        self._history.resize(config.history.max_records)
        for tracker in self._trackers.values():
            tracker.resize(
                config.classifier.tracker_max_events,
                config.classifier.tracker_window_seconds,
            )
        self._logger.system(
            "runtime_controller_configured",
            {"default_mode": config.classifier.default_mode.value},
        )

    def get_classifier(self) -> StateClassifier:
        return self._classifier

    def get_history(self) -> StateHistory:
        return self._history

    def set_client_counter(self, counter: Callable[[], int]) -> None:
        """Supply a callable returning the number of connected clients."""
        self._connected_clients = counter

    def register_event_handler(
        self, handler: Callable[[DomainEvent], None]
    ) -> None:
        """
        Register a handler for domain events.

        Args:
            handler: Function to call with domain events.
        """
        self._event_handlers.append(handler)

    # --- REST Operations ---

    def classify_sample(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Classify a telemetry snapshot (feature-snapshot strategy).

        Args:
            request: Envelope whose JSON body holds the telemetry fields.
        """
        sample = InteractionSample.from_dict(_json_body(request))
        result = self._classify(sample, ClassifierMode.FEATURE_SNAPSHOT, source="rest")
        return result.to_dict()

    def detect_from_interactions(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Classify a log of interactions (interaction-log strategy).

        Args:
            request: Envelope whose JSON body holds an `interactions` array.
        """
        events = parse_interactions(_json_body(request).get("interactions"))
        result = self._classify(events, ClassifierMode.INTERACTION_LOG, source="rest")
        return result.to_dict()

    def record_state(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Classify and store the result in the history.

        A body with an `interactions` array is classified with the
        interaction-log strategy, anything else as a telemetry sample.
        """
        body = _json_body(request)

        if "interactions" in body:
            events = parse_interactions(body.get("interactions"))
            result = self._classify(events, ClassifierMode.INTERACTION_LOG, source="record")
            triggers: Dict[str, Any] = {"interactions": [e.to_dict() for e in events]}
            duration = as_number(body.get("timeSpent", body.get("timeWindow")))
        else:
            sample = InteractionSample.from_dict(body)
            result = self._classify(sample, ClassifierMode.FEATURE_SNAPSHOT, source="record")
            triggers = sample.to_dict()
            duration = sample.time_window_ms

        entry = self._history.record(
            result,
            session_id=_optional_str(body.get("sessionId")),
            activity_id=_optional_str(body.get("activityId")),
            duration_ms=duration,
            triggers=triggers,
        )
        self._stats["records_stored"] += 1

        self._logger.classification(
            "state_recorded",
            {"id": entry.id, "state": result.state.value, "session_id": entry.session_id},
        )
        self._publish(DomainEvent(event_type=DomainEventType.STATE_RECORDED, payload=entry))
        return entry.to_dict()

    def list_states(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Query the history, newest first.

        Query params:
            sessionId: Restrict to one session.
            limit: Positive integer, defaults to the configured limit.
        """
        query = (request or {}).get("query") or {}
        session_id = query.get("sessionId") or None
        limit = self._parse_limit(query.get("limit"))

        records: List[StateRecord] = self._history.query(session_id=session_id, limit=limit)
        return {"states": [r.to_dict() for r in records], "count": len(records)}

    def get_state_statistics(self, request: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Per-state counts and mean confidence, optionally for one session."""
        query = (request or {}).get("query") or {}
        return self._history.get_statistics(session_id=query.get("sessionId") or None)

    def get_system_status(self) -> SystemStatusMessage:
        """Snapshot of controller state for /status."""
        uptime = time.monotonic() - self._started_at if self._started_at is not None else 0.0
        return SystemStatusMessage(
            status=self._status,
            timestamp=datetime.now(timezone.utc).timestamp(),
            uptime_seconds=uptime,
            classifications=self._stats["classifications"],
            records_stored=self._stats["records_stored"],
            tracked_clients=len(self._trackers),
            connected_clients=self._connected_clients(),
            default_mode=self._classifier.default_mode.value,
        )

    # --- Streaming Operations ---

    def handle_interaction(self, client_id: str, payload: Dict[str, Any]) -> CognitiveStateResult:
        """
        Record one interaction from a streaming client and re-evaluate its state.

        Raises:
            MalformedRequestError: If the payload is not an interaction object.
        """
        event = InteractionEvent.from_dict(payload)
        tracker = self._get_tracker(client_id)
        tracker.record(event)

        result = self._classify(tracker.recent(), ClassifierMode.INTERACTION_LOG, source="stream")
        self._publish(DomainEvent(
            event_type=DomainEventType.STATE_CLASSIFIED,
            payload=result,
            metadata={"recipient_id": client_id},
        ))
        return result

    def handle_sample(self, client_id: str, payload: Dict[str, Any]) -> CognitiveStateResult:
        """Classify a telemetry sample sent by a streaming client."""
        sample = InteractionSample.from_dict(payload)
        result = self._classify(sample, ClassifierMode.FEATURE_SNAPSHOT, source="stream")
        self._publish(DomainEvent(
            event_type=DomainEventType.STATE_CLASSIFIED,
            payload=result,
            metadata={"recipient_id": client_id},
        ))
        return result

    def release_client(self, client_id: str) -> None:
        """Forget a disconnected client's interaction buffer."""
        if self._trackers.pop(client_id, None) is not None:
            self._logger.system("tracker_released", {"client_id": client_id}, level="DEBUG")

    # --- Internal Methods ---

    def _get_tracker(self, client_id: str) -> InteractionTracker:
        tracker = self._trackers.get(client_id)
        if tracker is None:
            tracker = InteractionTracker(
                max_events=self._config.classifier.tracker_max_events,
                window_seconds=self._config.classifier.tracker_window_seconds,
            )
            self._trackers[client_id] = tracker
        return tracker

    def _parse_limit(self, raw: Any) -> int:
        if raw is None or raw == "":
            return self._config.history.default_query_limit
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            raise MalformedRequestError(f"limit must be a positive integer, got {raw!r}")
        if limit < 1:
            raise MalformedRequestError(f"limit must be a positive integer, got {raw!r}")
        return limit

    def _classify(self, observation, mode: ClassifierMode, source: str) -> CognitiveStateResult:
        result = self._classifier.classify(observation, mode)
        self._stats["classifications"] += 1

        self._logger.classification(
            "state_classified",
            {
                "source": source,
                "mode": mode.value,
                "state": result.state.value,
                "confidence": result.confidence,
                "factors": result.factors,
            },
        )
        return result

    def _publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event to all registered handlers.

        Args:
            event: Domain event to publish.
        """
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.system(
                    "event_handler_error",
                    {"error": str(e), "event_type": event.event_type.value},
                    level="ERROR",
                )
