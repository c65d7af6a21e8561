"""Publish/subscribe fan-out to connected clients."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send(self, message: dict) -> None: ...


class Broadcaster:
    """Fire-and-forget fan-out over the currently subscribed handles.

    Nothing is queued for clients that subscribe after a publish.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, Subscriber] = {}

    def subscribe(self, connection_id: str, subscriber: Subscriber) -> None:
        self._subscribers[connection_id] = subscriber

    def unsubscribe(self, connection_id: str) -> None:
        self._subscribers.pop(connection_id, None)

    def __len__(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: str, data: Any) -> int:
        """Send ``{"event", "data"}`` to every subscriber; return deliveries."""
        message = {"event": event, "data": data}
        delivered = 0
        for connection_id, subscriber in list(self._subscribers.items()):
            try:
                await subscriber.send(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropped %s for %s: %s", event, connection_id, e)
        return delivered
