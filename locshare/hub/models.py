"""Boundary models for inbound hub payloads.

Clients send loosely shaped JSON. Everything that enters the registry goes
through these models first so that optional identity fields are either a
clean string or absent, never ``None``/``""``/a nested object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_NAME = "Unknown"
DEFAULT_USER_AGENT = ""


def _coerce_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if not isinstance(value, str):
        value = str(value)
    return value if value.strip() else None


class DeviceIdentity(BaseModel):
    """Identity fields carried by ``register`` and ``location`` payloads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    device_id: str | None = Field(default=None, alias="deviceId")
    name: str | None = None
    user_agent: str | None = Field(default=None, alias="ua")

    @field_validator("device_id", "name", "user_agent", mode="before")
    @classmethod
    def _clean(cls, value: Any) -> str | None:
        return _coerce_text(value)

    @classmethod
    def from_payload(cls, payload: Any) -> DeviceIdentity:
        """Build from an arbitrary payload; non-objects yield an empty identity."""
        if not isinstance(payload, dict):
            return cls()
        return cls.model_validate(payload)


class RegisterPayload(DeviceIdentity):
    """Body of a ``register`` event."""


@dataclass
class DeviceRecord:
    """Server-held descriptor of one connected device."""

    connection_id: str
    device_id: str
    name: str = DEFAULT_NAME
    user_agent: str = DEFAULT_USER_AGENT

    def to_dict(self) -> dict[str, str]:
        return {
            "deviceId": self.device_id,
            "name": self.name,
            "ua": self.user_agent,
            "connectionId": self.connection_id,
        }


def build_status_broadcast(data: Any, time_ms: int) -> dict[str, Any]:
    """Server-side ``status`` payload; client values pass through untouched."""
    if not isinstance(data, dict):
        data = {}
    return {
        "from": data.get("name"),
        "status": data.get("status"),
        "message": data.get("message"),
        "time": time_ms,
    }
