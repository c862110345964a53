import pytest

from cognitive_backend.layers.runtime_controller import RuntimeController
from cognitive_backend.types import MalformedRequestError, SystemConfig
from cognitive_backend.types.domain_events import DomainEventType
from cognitive_backend.types.messages import SystemStatus


def _req(json=None, query=None, text=None):
    return {"json": json, "query": query or {}, "text": text}


@pytest.fixture
def controller():
    return RuntimeController(SystemConfig())


def test_classify_sample(controller, quiet_logger):
    payload = controller.classify_sample(_req({"tabSwitches": 8}))
    assert payload["state"] == "distracted"
    assert payload["confidence"] == 0.8
    assert payload["timestamp"].endswith("Z")

    logged = quiet_logger.get_logs("classification", event_type="state_classified")
    assert logged[-1].data["state"] == "distracted"


def test_classify_empty_body_is_receptive(controller):
    payload = controller.classify_sample(_req())
    assert (payload["state"], payload["confidence"]) == ("receptive", 0.6)


def test_non_json_body_is_malformed(controller):
    with pytest.raises(MalformedRequestError):
        controller.classify_sample(_req(text="typingSpeed=10"))


def test_non_object_body_is_malformed(controller):
    with pytest.raises(MalformedRequestError):
        controller.classify_sample(_req([1, 2]))


def test_detect_from_interactions(controller):
    interactions = [{"type": "scroll", "timestamp": i * 200} for i in range(7)]
    payload = controller.detect_from_interactions(_req({"interactions": interactions}))
    assert payload["state"] == "distracted"
    assert payload["mode"] == "interaction_log"


def test_detect_without_interactions_is_idle(controller):
    assert controller.detect_from_interactions(_req({}))["state"] == "idle"


def test_detect_rejects_non_list(controller):
    with pytest.raises(MalformedRequestError):
        controller.detect_from_interactions(_req({"interactions": "scroll"}))


def test_record_and_list_states(controller):
    events = []
    controller.register_event_handler(events.append)

    first = controller.record_state(_req({"typingSpeed": 15, "sessionId": "s1", "timeSpent": 4000}))
    controller.record_state(_req({"typingSpeed": 75, "sessionId": "s2"}))
    controller.record_state(_req({"interactions": [], "sessionId": "s1"}))

    assert first["state"] == "fatigued"
    assert first["duration"] == 4000.0
    assert first["triggers"] == {"typingSpeed": 15.0, "timeWindow": 4000.0}
    assert [e.event_type for e in events] == [DomainEventType.STATE_RECORDED] * 3

    listed = controller.list_states(_req(query={"sessionId": "s1"}))
    assert listed["count"] == 2
    assert [s["state"] for s in listed["states"]] == ["idle", "fatigued"]

    assert controller.list_states(_req(query={"limit": "1"}))["count"] == 1


@pytest.mark.parametrize("limit", ["0", "-3", "ten", "1.5"])
def test_list_states_rejects_bad_limit(controller, limit):
    with pytest.raises(MalformedRequestError):
        controller.list_states(_req(query={"limit": limit}))


def test_state_statistics(controller):
    controller.record_state(_req({"tabSwitches": 9}))
    controller.record_state(_req({"tabSwitches": 9}))
    stats = controller.get_state_statistics(_req())
    assert stats["by_state"] == {"distracted": 2}


@pytest.mark.asyncio
async def test_status_lifecycle(controller):
    assert controller.get_system_status().status == SystemStatus.INITIALIZING
    await controller.initialize()
    controller.classify_sample(_req({}))

    status = controller.get_system_status()
    assert status.status == SystemStatus.READY
    assert status.classifications == 1
    assert status.default_mode == "feature_snapshot"

    await controller.shutdown()
    assert controller.get_system_status().status == SystemStatus.STOPPED


def test_streaming_interactions_publish_to_the_client(controller):
    events = []
    controller.register_event_handler(events.append)

    result = None
    for _ in range(9):
        result = controller.handle_interaction("client-1", {"type": "click"})

    assert result.state.value == "stressed"
    assert events[-1].event_type == DomainEventType.STATE_CLASSIFIED
    assert events[-1].metadata == {"recipient_id": "client-1"}
    assert controller.get_system_status().tracked_clients == 1

    controller.release_client("client-1")
    assert controller.get_system_status().tracked_clients == 0


def test_streaming_clients_are_tracked_separately(controller):
    for _ in range(9):
        controller.handle_interaction("a", {"type": "click"})
    result = controller.handle_interaction("b", {"type": "click"})
    assert result.state.value == "neutral"


def test_streaming_sample(controller):
    result = controller.handle_sample("client-1", {"typingSpeed": 75})
    assert result.state.value == "focused"


def test_failing_event_handler_is_logged(controller, quiet_logger):
    def broken(event):
        raise RuntimeError("boom")

    controller.register_event_handler(broken)
    controller.record_state(_req({}))
    assert quiet_logger.get_logs("system", event_type="event_handler_error")


def test_configure_applies_history_and_tracker_limits(controller):
    for _ in range(3):
        controller.record_state(_req({"typingSpeed": 75}))
    for _ in range(9):
        controller.handle_interaction("client-1", {"type": "click"})

    config = SystemConfig()
    config.classifier.tracker_max_events = 2
    config.history.max_records = 1
    controller.configure(config)

    assert len(controller.get_history()) == 1
    result = controller.handle_interaction("client-1", {"type": "click"})
    assert result.state.value == "neutral"

    controller.record_state(_req({"typingSpeed": 75}))
    assert len(controller.get_history()) == 1
