"""Location hub: registry mutations plus a broadcast for each client event.

Inbound events per connection:

  register  → overwrite record, broadcast ``devices`` snapshot
  location  → stamp ``connectionId``, merge identity, broadcast payload
  status    → broadcast ``{from, status, message, time}``
  (close)   → drop record, broadcast ``devices`` snapshot

Every handler runs on the event loop thread, one at a time between awaits,
so the registry needs no lock. Broadcasts are best-effort snapshots.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from locshare.hub.broadcast import Broadcaster, Subscriber
from locshare.hub.models import DeviceRecord, build_status_broadcast
from locshare.hub.registry import DeviceRegistry

logger = logging.getLogger(__name__)


class LocationHub:
    """Owns the device registry and the subscriber fan-out."""

    def __init__(
        self,
        registry: DeviceRegistry | None = None,
        broadcaster: Broadcaster | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry or DeviceRegistry()
        self.broadcaster = broadcaster or Broadcaster()
        self._clock = clock
        self._handlers: dict[str, Callable[[str, Any], Awaitable[Any]]] = {
            "register": self.register,
            "location": self.location,
            "status": self.status,
        }

    @property
    def connection_count(self) -> int:
        return len(self.broadcaster)

    # ── Lifecycle ──────────────────────────────────────────────────

    def connect(self, connection_id: str, subscriber: Subscriber) -> None:
        """Start delivering broadcasts; no record exists until ``register``."""
        self.broadcaster.subscribe(connection_id, subscriber)
        logger.info("Client connected: %s", connection_id)

    async def disconnect(self, connection_id: str) -> None:
        self.broadcaster.unsubscribe(connection_id)
        record = self.registry.remove(connection_id)
        logger.info(
            "Client disconnected: %s (%s)",
            connection_id, record.device_id if record else "unregistered",
        )
        await self._broadcast_devices()

    # ── Events ─────────────────────────────────────────────────────

    async def dispatch(self, connection_id: str, event: str, data: Any) -> bool:
        """Route one inbound event; returns False for unknown event names."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.warning("Unknown event from %s: %r", connection_id, event)
            return False
        await handler(connection_id, data)
        return True

    async def register(self, connection_id: str, payload: Any) -> DeviceRecord:
        record = self.registry.register(connection_id, payload)
        await self._broadcast_devices()
        return record

    async def location(self, connection_id: str, data: Any) -> dict | None:
        """Stamp and rebroadcast a location payload verbatim."""
        if not isinstance(data, dict):
            logger.debug("Ignoring non-object location from %s", connection_id)
            return None
        stamped = dict(data)
        stamped["connectionId"] = connection_id
        self.registry.merge_identity(connection_id, stamped)
        await self.broadcaster.publish("location", stamped)
        return stamped

    async def status(self, connection_id: str, data: Any) -> dict:
        message = build_status_broadcast(data, self._now_ms())
        logger.info("Status from %s: %s", connection_id, message["status"])
        await self.broadcaster.publish("status", message)
        return message

    # ── Helpers ────────────────────────────────────────────────────

    async def _broadcast_devices(self) -> None:
        await self.broadcaster.publish("devices", self.registry.snapshot())

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
