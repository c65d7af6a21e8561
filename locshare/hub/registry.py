"""In-memory device registry, keyed by connection identity."""

from __future__ import annotations

import logging
from typing import Any

from locshare.hub.models import (
    DEFAULT_NAME,
    DEFAULT_USER_AGENT,
    DeviceIdentity,
    DeviceRecord,
    RegisterPayload,
)

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Connection id → :class:`DeviceRecord`, in insertion order.

    Two connections announcing the same ``deviceId`` get two records; the
    connection is the owner, the device id is only informational.
    """

    def __init__(self) -> None:
        self._records: dict[str, DeviceRecord] = {}

    def register(self, connection_id: str, payload: Any) -> DeviceRecord:
        """Create or overwrite the record for *connection_id* with defaults applied."""
        ident = RegisterPayload.from_payload(payload)
        record = DeviceRecord(
            connection_id=connection_id,
            device_id=ident.device_id or connection_id,
            name=ident.name or DEFAULT_NAME,
            user_agent=ident.user_agent or DEFAULT_USER_AGENT,
        )
        self._records[connection_id] = record
        logger.debug("Registered %s as %s (%s)", connection_id, record.device_id, record.name)
        return record

    def merge_identity(self, connection_id: str, payload: Any) -> DeviceRecord:
        """Fold identity fields from a location payload into the record.

        Creates the record when ``location`` arrives before ``register``.
        Fields absent from the payload keep their current value.
        """
        ident = DeviceIdentity.from_payload(payload)
        record = self._records.get(connection_id)
        if record is None:
            record = DeviceRecord(connection_id=connection_id, device_id=connection_id)
            self._records[connection_id] = record
        if ident.device_id is not None:
            record.device_id = ident.device_id
        if ident.name is not None:
            record.name = ident.name
        if ident.user_agent is not None:
            record.user_agent = ident.user_agent
        return record

    def remove(self, connection_id: str) -> DeviceRecord | None:
        return self._records.pop(connection_id, None)

    def get(self, connection_id: str) -> DeviceRecord | None:
        return self._records.get(connection_id)

    def snapshot(self) -> list[dict[str, str]]:
        """Wire form of every record, in insertion order."""
        return [r.to_dict() for r in self._records.values()]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._records
