"""Server-side device registry and broadcast hub."""

from locshare.hub.broadcast import Broadcaster, Subscriber
from locshare.hub.models import DeviceIdentity, DeviceRecord, RegisterPayload, build_status_broadcast
from locshare.hub.registry import DeviceRegistry
from locshare.hub.service import LocationHub

__all__ = [
    "Broadcaster",
    "DeviceIdentity",
    "DeviceRecord",
    "DeviceRegistry",
    "LocationHub",
    "RegisterPayload",
    "Subscriber",
    "build_status_broadcast",
]
