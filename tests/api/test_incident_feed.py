"""WebSocket tests for the live incident feed."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketDisconnect

from warroom.api.websockets.events import incident_feed
from warroom.config import WarRoomConfig
from warroom.engine.broadcast_hub import BroadcastHub


def test_connect_receives_connected(client):
    with client.websocket_connect("/ws/incidents") as ws:
        message = ws.receive_json()
        assert message["type"] == "connected"
        assert "timestamp" in message


def test_created_incident_is_pushed(client, responder):
    with client.websocket_connect("/ws/incidents") as ws:
        assert ws.receive_json()["type"] == "connected"

        resp = client.post(
            "/api/incidents",
            json={"title": "Database outage", "source": "monitoring"},
            headers=responder,
        )
        created = resp.json()["data"]

        message = ws.receive_json()
        assert message["type"] == "incident:created"
        assert message["data"] == created
        assert "timeline" not in message["data"]


def test_update_is_pushed_with_new_state(client, create_incident, responder):
    created = create_incident()
    with client.websocket_connect("/ws/incidents") as ws:
        ws.receive_json()

        client.patch(f"/api/incidents/{created['id']}", json={"status": "resolved"}, headers=responder)

        message = ws.receive_json()
        assert message["type"] == "incident:updated"
        assert message["data"]["status"] == "resolved"
        assert message["data"]["resolved_at"] is not None


def test_no_replay_for_late_subscriber(client, create_incident):
    create_incident()
    with client.websocket_connect("/ws/incidents") as ws:
        assert ws.receive_json()["type"] == "connected"
        ws.send_json({"type": "ping"})
        # The first message after connecting is the pong, not the earlier incident
        assert ws.receive_json()["type"] == "pong"


def test_invalid_client_json_is_ignored(client):
    with client.websocket_connect("/ws/incidents") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_failed_write_is_not_pushed(client, responder):
    with client.websocket_connect("/ws/incidents") as ws:
        ws.receive_json()

        resp = client.post("/api/incidents", json={"title": "", "source": "monitoring"}, headers=responder)
        assert resp.status_code == 400

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_subscriber_limit_closes_new_connections(limited_client):
    with limited_client.websocket_connect("/ws/incidents") as first:
        first.receive_json()
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with limited_client.websocket_connect("/ws/incidents") as second:
                second.receive_json()
        assert exc_info.value.code == 1013


@pytest.mark.asyncio
async def test_disconnect_finishes_writer_before_unsubscribing():
    hub = BroadcastHub(max_subscribers=2)
    config = WarRoomConfig(_env_file=None)
    websocket = MagicMock()
    websocket.client = None
    websocket.accept = AsyncMock()
    websocket.send_text = AsyncMock()
    websocket.receive_text = AsyncMock(side_effect=['{"type": "ping"}', WebSocketDisconnect()])

    await incident_feed(websocket, hub=hub, config=config)

    sent = [json.loads(call.args[0])["type"] for call in websocket.send_text.await_args_list]
    assert sent == ["connected", "pong"]
    assert hub.subscriber_count == 0
    pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
    assert pending == []
