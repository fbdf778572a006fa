"""Real-time incident feed over WebSocket.

Each connection is one broadcast hub subscription. Messages look like::

    {"type": "incident:created" | "incident:updated", "data": {...}, "timestamp": "ISO 8601"}

plus ``connected``, ``heartbeat`` and ``pong`` control messages. Missed events
are never replayed; a reconnecting client re-fetches the incident list.
"""

import asyncio
import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ...config import WarRoomConfig
from ...dependencies import get_app_config, get_broadcast_hub
from ...engine.broadcast_hub import BroadcastHub, SubscriberLimitError, Subscription
from ...utils.logging import get_logger

logger = get_logger("websocket.events")

router = APIRouter()


def _control(message_type: str) -> str:
    return json.dumps({"type": message_type, "timestamp": datetime.now(timezone.utc).isoformat()})


async def _writer(websocket: WebSocket, subscription: Subscription, heartbeat_interval: float) -> None:
    """Per-connection writer coroutine that drains the subscription queue."""
    try:
        while True:
            try:
                message = await asyncio.wait_for(subscription.get(), timeout=heartbeat_interval)
                await websocket.send_text(json.dumps(message))
            except asyncio.TimeoutError:
                if subscription.closed:
                    # Dropped by the hub for falling behind
                    await websocket.close(code=1013)
                    return
                await websocket.send_text(_control("heartbeat"))
    except asyncio.CancelledError:
        return
    except Exception as e:
        logger.debug("ws_writer_error", subscriber_id=subscription.id, error=str(e))


@router.websocket("/ws/incidents")
async def incident_feed(
    websocket: WebSocket,
    hub: BroadcastHub = Depends(get_broadcast_hub),
    config: WarRoomConfig = Depends(get_app_config),
):
    """Stream incident:created / incident:updated events to the client."""
    client = websocket.client.host if websocket.client else None
    try:
        subscription = await hub.subscribe(label=client)
    except SubscriberLimitError:
        await websocket.close(code=1013)  # Try Again Later
        return

    await websocket.accept()
    writer_task = None
    try:
        await websocket.send_text(_control("connected"))
        writer_task = asyncio.create_task(
            _writer(websocket, subscription, config.ws_heartbeat_interval)
        )
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("ws_invalid_json_from_client", subscriber_id=subscription.id)
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await websocket.send_text(_control("pong"))
    except WebSocketDisconnect:
        logger.debug("ws_client_disconnected", subscriber_id=subscription.id)
    finally:
        if writer_task and not writer_task.done():
            writer_task.cancel()
            try:
                await writer_task
            except asyncio.CancelledError:
                pass
        await hub.unsubscribe(subscription)
