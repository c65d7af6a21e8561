"""WebSocket endpoint for location-sharing clients.

Frames in both directions are JSON objects ``{"event": ..., "data": ...}``:

  Client → Server:  register, location, status
  Server → Client:  devices, location, status

Mount via ``app.add_api_websocket_route("/ws", hub_ws_handler)`` with the
hub stored on ``app.state.hub``.
"""

from __future__ import annotations

import json
import logging
import uuid

from fastapi import WebSocket, WebSocketDisconnect

from locshare.hub.service import LocationHub

logger = logging.getLogger(__name__)


class WebSocketSubscriber:
    """Adapts a Starlette WebSocket to the broadcaster's ``send`` handle."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def send(self, message: dict) -> None:
        await self.websocket.send_json(message)


def _new_connection_id() -> str:
    return uuid.uuid4().hex


def _frame_text(message: dict) -> str | None:
    """Text payload of a received ASGI message; binary frames must be UTF-8."""
    if message.get("text") is not None:
        return message["text"]
    raw = message.get("bytes")
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _parse_frame(raw: str) -> tuple[str, object] | None:
    try:
        msg = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(msg, dict) or not isinstance(msg.get("event"), str):
        return None
    return msg["event"], msg.get("data")


async def hub_ws_handler(websocket: WebSocket) -> None:
    """Serve one client connection until it closes."""
    hub: LocationHub = websocket.app.state.hub
    await websocket.accept()
    connection_id = _new_connection_id()
    hub.connect(connection_id, WebSocketSubscriber(websocket))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = _frame_text(message)
            frame = _parse_frame(raw) if raw is not None else None
            if frame is None:
                logger.debug("Ignoring malformed frame from %s", connection_id)
                continue
            event, data = frame
            try:
                await hub.dispatch(connection_id, event, data)
            except Exception:
                logger.exception("Error handling %s from %s", event, connection_id)

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error for %s", connection_id)
    finally:
        await hub.disconnect(connection_id)
