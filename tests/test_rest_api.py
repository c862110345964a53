import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from cognitive_backend.api.rest_api import HttpMethod, RestAPI
from cognitive_backend.api.server import Server
from cognitive_backend.types import SystemConfig


@pytest_asyncio.fixture
async def client():
    server = Server(SystemConfig())
    server.wire_components()
    await server.get_controller().initialize()

    async with TestClient(TestServer(server.get_rest_api().build_app())) as test_client:
        yield test_client


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status == 200
    assert await resp.json() == {"status": "ok"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, state, confidence",
    [
        ({"tabSwitches": 8}, "distracted", 0.8),
        ({"typingSpeed": 15}, "fatigued", 0.7),
        ({"typingSpeed": 75}, "focused", 0.9),
        ({}, "receptive", 0.6),
    ],
)
async def test_classify_examples(client, body, state, confidence):
    resp = await client.post("/cognitive-state/classify", json=body)
    assert resp.status == 200
    data = await resp.json()
    assert data["state"] == state
    assert data["confidence"] == confidence
    assert data["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_classify_without_body(client):
    resp = await client.post("/cognitive-state/classify")
    assert resp.status == 200
    assert (await resp.json())["state"] == "receptive"


@pytest.mark.asyncio
async def test_malformed_body_is_400(client):
    resp = await client.post("/cognitive-state/classify", data="not json")
    assert resp.status == 400
    assert "error" in await resp.json()

    resp = await client.post("/cognitive-state/classify", json=[1, 2])
    assert resp.status == 400


@pytest.mark.asyncio
async def test_classify_with_number_beyond_float_range(client):
    body = '{"typingSpeed": 1' + "0" * 400 + "}"
    resp = await client.post(
        "/cognitive-state/classify", data=body, headers={"Content-Type": "application/json"}
    )
    assert resp.status == 200
    data = await resp.json()
    assert (data["state"], data["confidence"]) == ("receptive", 0.6)


@pytest.mark.asyncio
async def test_classify_with_fractional_tab_switches(client):
    resp = await client.post("/cognitive-state/classify", json={"tabSwitches": 5.5})
    assert (await resp.json())["state"] == "distracted"


@pytest.mark.asyncio
async def test_undecodable_bodies_are_400(client):
    resp = await client.post(
        "/cognitive-state/classify",
        data=b'{"typingSpeed": "\xff\xfe"}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status == 400
    assert "UTF-8" in (await resp.json())["error"]


@pytest.mark.asyncio
async def test_detect_endpoint(client):
    interactions = [
        {"type": "click", "timestamp": "2024-05-01T12:00:00.000Z"},
        {"type": "read", "timestamp": "2024-05-01T12:00:06.000Z"},
        {"type": "click", "timestamp": "2024-05-01T12:00:12.000Z"},
    ]
    resp = await client.post("/cognitive-state/detect", json={"interactions": interactions})
    assert resp.status == 200
    data = await resp.json()
    assert (data["state"], data["confidence"]) == ("focused", 0.9)

    resp = await client.post("/cognitive-state/detect", json={"interactions": {"type": "click"}})
    assert resp.status == 400


@pytest.mark.asyncio
async def test_record_then_query_history(client):
    resp = await client.post("/cognitive-states", json={"tabSwitches": 7, "sessionId": "abc"})
    assert resp.status == 200
    recorded = await resp.json()
    assert recorded["id"]
    assert recorded["sessionId"] == "abc"

    await client.post("/cognitive-states", json={"typingSpeed": 90, "sessionId": "other"})

    resp = await client.get("/cognitive-states", params={"sessionId": "abc"})
    data = await resp.json()
    assert data["count"] == 1
    assert data["states"][0]["id"] == recorded["id"]

    resp = await client.get("/cognitive-states/statistics")
    assert (await resp.json())["total"] == 2

    resp = await client.get("/cognitive-states", params={"limit": "zero"})
    assert resp.status == 400


@pytest.mark.asyncio
async def test_status_endpoint(client):
    resp = await client.get("/status")
    data = await resp.json()
    assert data["status"] == "ready"
    assert data["connected_clients"] == 0


@pytest.mark.asyncio
async def test_unexpected_handler_error_is_500():
    api = RestAPI()

    def explode():
        raise RuntimeError("kaput")

    api.register_route("/explode", HttpMethod.GET, explode)
    async with TestClient(TestServer(api.build_app())) as test_client:
        resp = await test_client.get("/explode")
        assert resp.status == 500
        assert "kaput" in (await resp.json())["error"]


def test_duplicate_route_is_rejected():
    api = RestAPI()
    api.register_route("/x", HttpMethod.GET, lambda: None)
    with pytest.raises(ValueError):
        api.register_route("x", HttpMethod.GET, lambda: None)
