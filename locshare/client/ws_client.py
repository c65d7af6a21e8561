"""WebSocket client connecting a tracker to the Locshare hub.

  Client → Server: register, location, status
  Server → Client: devices, location, status
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

import websockets
from websockets.asyncio.client import ClientConnection

from locshare.client.reconciler import Reconciler

logger = logging.getLogger(__name__)


@dataclass
class Position:
    """One geolocation fix plus optional device telemetry."""

    lat: float
    lng: float
    accuracy: float = 0.0
    heading: float | None = None
    speed: float | None = None
    battery: int | None = None
    charging: bool | None = None
    platform: str | None = None
    connection: str | None = None

    def to_payload(self, device_id: str, name: str) -> dict[str, Any]:
        payload: dict[str, Any] = {"deviceId": device_id, "name": name}
        for key, value in asdict(self).items():
            # heading/speed are always sent, like a browser fix
            if value is not None or key in ("heading", "speed"):
                payload[key] = value
        return payload


class LocationClient:
    """Hub connection feeding a :class:`Reconciler`."""

    def __init__(self, server_url: str, reconciler: Reconciler, user_agent: str = "") -> None:
        self.server_url = server_url
        self.reconciler = reconciler
        self.user_agent = user_agent
        self._ws: Optional[ClientConnection] = None
        self._connected = False

        if reconciler.emit is None:
            reconciler.emit = self._send

    async def connect(self) -> bool:
        """Open the socket and register this device."""
        try:
            self._ws = await websockets.connect(
                self.server_url,
                ping_interval=20,
                ping_timeout=10,
                close_timeout=5,
            )
        except Exception:
            logger.exception("Failed to connect to %s", self.server_url)
            return False
        self._connected = True
        await self.register()
        logger.info("Connected to %s as %s", self.server_url, self.reconciler.device_id)
        return True

    async def _send(self, event: str, data: dict) -> None:
        if self._ws is None:
            logger.debug("Not connected, dropping %s", event)
            return
        await self._ws.send(json.dumps({"event": event, "data": data}))

    async def register(self) -> None:
        await self._send("register", {
            "deviceId": self.reconciler.device_id,
            "name": self.reconciler.name,
            "ua": self.user_agent,
        })

    async def send_location(self, position: Position) -> None:
        await self._send(
            "location",
            position.to_payload(self.reconciler.device_id, self.reconciler.name),
        )

    async def send_status(self, status: str) -> str:
        return await self.reconciler.set_status(status)

    async def handle_message(self, raw: str | bytes) -> None:
        try:
            msg = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring malformed frame")
            return
        if not isinstance(msg, dict):
            return
        event, data = msg.get("event"), msg.get("data")
        try:
            if event == "devices":
                self.reconciler.on_device_list(data)
            elif event == "location":
                self.reconciler.on_location_event(data)
            elif event == "status":
                self.reconciler.on_status_event(data)
            else:
                logger.debug("Unhandled event: %s", event)
        except Exception:
            logger.exception("Handler error for %s", event)

    async def listen(self) -> None:
        """Dispatch hub events until the connection closes."""
        if not self._ws:
            return
        try:
            async for raw in self._ws:
                await self.handle_message(raw)
        except websockets.ConnectionClosed:
            logger.info("Server connection closed")
        finally:
            self._connected = False

    async def disconnect(self) -> None:
        if self._ws:
            await self._ws.close()
            self._ws = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected
