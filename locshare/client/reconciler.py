"""Client-side reconciliation of hub events into map and panel state.

Markers are keyed by ``deviceId`` (falling back to ``connectionId``) and are
never removed; a device that disconnects keeps its last marker.

Popup content needs a reverse-geocoding lookup, so it is filled in by a
background task after the marker has already moved. Each marker carries a
monotonic sequence number: a popup result is applied only if it belongs to
the most recently *issued* request for that marker. A slow lookup for an
older position can therefore never overwrite the popup of a newer one, even
when it completes later.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol

from locshare.client.feed import ACTIVITY_CAPACITY, ALERTS_CAPACITY, BoundedFeed
from locshare.client.popup import PlaceLookup, create_popup_content

logger = logging.getLogger(__name__)

FOCUS_ZOOM = 14

STATUS_MESSAGES: dict[str, str] = {
    "safe": "✅ Status: Safe and secure",
    "help": "🆘 Status: Need help immediately",
    "delayed": "⏰ Status: Running late",
    "arrived": "🏁 Status: Arrived at destination",
}

Emitter = Callable[[str, dict], Awaitable[None]]


class MapView(Protocol):
    def set_view(self, lat: float, lng: float, zoom: int) -> None: ...


@dataclass
class Marker:
    key: str
    lat: float
    lng: float
    title: str
    popup: str = ""
    seq: int = 0  # latest issued popup request


@dataclass(frozen=True)
class DeviceListEntry:
    device_id: str
    label: str


@dataclass
class HealthIndicators:
    battery: str = "--%"
    connection: str = "--"
    last_update: str = "--"


def _ua_token(ua: Any) -> str:
    if not isinstance(ua, str):
        return "unknown"
    parts = ua.split()
    return parts[0] if parts else "unknown"


def _marker_key(data: dict) -> str | None:
    for name in ("deviceId", "connectionId", "socketId"):
        value = data.get(name)
        if value:
            return str(value)
    return None


def _coords(data: dict) -> tuple[float, float] | None:
    try:
        return float(data["lat"]), float(data["lng"])
    except (KeyError, TypeError, ValueError):
        return None


class Reconciler:
    """Turns the hub's event stream into markers, device list and feeds."""

    def __init__(
        self,
        device_id: str,
        name: str,
        geocoder: PlaceLookup,
        emit: Emitter | None = None,
        map_view: MapView | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.device_id = device_id
        self.name = name
        self.geocoder = geocoder
        self.emit = emit
        self.map_view = map_view
        self._clock = clock

        self.markers: dict[str, Marker] = {}
        self.device_list: list[DeviceListEntry] = []
        self.activity = BoundedFeed(ACTIVITY_CAPACITY)
        self.alerts = BoundedFeed(ALERTS_CAPACITY)
        self.health = HealthIndicators()

        self._pending: set[asyncio.Task] = set()
        self._geo_notice_shown = False

    # ── Device list ────────────────────────────────────────────────

    def on_device_list(self, devices: Any) -> list[DeviceListEntry]:
        """Replace the rendered device list with a fresh snapshot."""
        entries: list[DeviceListEntry] = []
        for device in devices if isinstance(devices, list) else []:
            if not isinstance(device, dict):
                continue
            device_id = str(device.get("deviceId") or "")
            label_name = device.get("name") or device_id
            entries.append(DeviceListEntry(
                device_id=device_id,
                label=f"{label_name} ({_ua_token(device.get('ua'))})",
            ))
        self.device_list = entries
        return entries

    def focus(self, device_id: str) -> Marker | None:
        """Re-center the map on *device_id*'s marker, if one exists."""
        marker = self.markers.get(device_id)
        if marker is None:
            return None
        if self.map_view is not None:
            self.map_view.set_view(marker.lat, marker.lng, FOCUS_ZOOM)
        return marker

    # ── Locations ──────────────────────────────────────────────────

    def on_location_event(self, data: Any) -> asyncio.Task | None:
        """Place or move a marker now; schedule its popup refresh.

        Must be called from the event loop. Returns the popup task, or
        ``None`` when the event was skipped.
        """
        if not isinstance(data, dict):
            return None
        key = _marker_key(data)
        if key is None:
            return None
        coords = _coords(data)
        if coords is None:
            logger.warning("Location for %s has no usable coordinates", key)
            return None
        lat, lng = coords

        marker = self.markers.get(key)
        if marker is None:
            marker = Marker(key=key, lat=lat, lng=lng, title=str(data.get("name") or key))
            self.markers[key] = marker
        else:
            marker.lat, marker.lng = lat, lng
        marker.seq += 1
        task = asyncio.get_running_loop().create_task(
            self._populate_popup(marker.key, marker.seq, data)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        if key == self.device_id:
            self._update_health(data)
            self.activity.add(f"Location updated: {lat:.4f}, {lng:.4f}")
        return task

    async def _populate_popup(self, key: str, seq: int, data: dict) -> None:
        try:
            content = await create_popup_content(data, self.geocoder)
        except Exception:
            logger.exception("Popup content failed for %s", key)
            return
        marker = self.markers.get(key)
        if marker is None or marker.seq != seq:
            logger.debug("Discarding stale popup for %s (seq %d)", key, seq)
            return
        marker.popup = content

    def _update_health(self, data: dict) -> None:
        battery = data.get("battery")
        self.health.battery = f"{battery if battery is not None else '--'}%"
        self.health.connection = str(data.get("connection") or "--")
        self.health.last_update = time.strftime("%H:%M:%S", time.localtime(self._clock()))

    async def drain(self) -> None:
        """Wait for every in-flight popup refresh."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Status & alerts ────────────────────────────────────────────

    def on_status_event(self, data: Any) -> None:
        if not isinstance(data, dict):
            return
        sender = data.get("from")
        message = data.get("message") or data.get("status") or ""
        text = f"{sender}: {message}" if sender else str(message)
        self.alerts.add(text, "danger" if data.get("status") == "help" else "info")

    async def set_status(self, status: str) -> str:
        """Local status button: log it and send it upstream."""
        message = STATUS_MESSAGES.get(status)
        if message is None:
            raise ValueError(f"Unknown status: {status!r}")
        self.activity.add(message)
        self.alerts.add(message, "danger" if status == "help" else "info")
        if self.emit is not None:
            await self.emit("status", {
                "deviceId": self.device_id,
                "name": self.name,
                "status": status,
                "message": message,
            })
        return message

    def announce_ready(self) -> None:
        self.activity.add("Device connected and ready")
        self.alerts.add("Location tracking started", "success")

    def geolocation_unavailable(self) -> bool:
        """Show the no-geolocation notice once; viewing still works."""
        if self._geo_notice_shown:
            return False
        self._geo_notice_shown = True
        logger.warning(
            "Geolocation not supported. You can still view other devices that send locations."
        )
        self.alerts.add("Geolocation not supported", "warning")
        return True

    def geolocation_error(self, message: str) -> None:
        self.alerts.add(f"Geolocation error: {message}", "danger")
