"""Marker popup content assembly."""

from __future__ import annotations

import html
from typing import Any, Protocol


class PlaceLookup(Protocol):
    async def place_name(self, lat: Any, lng: Any) -> str: ...


def _fmt_number(value: Any, digits: int, default: str = "--") -> str:
    if isinstance(value, bool):
        return default
    try:
        return f"{float(value):.{digits}f}"
    except (TypeError, ValueError):
        return default


def _battery_text(data: dict) -> str:
    battery = data.get("battery")
    if battery is None:
        return "--%"
    icon = "⚡" if data.get("charging") else "🔋"
    return f"{battery}% {icon}"


def render_popup(data: dict, place_name: str) -> str:
    """Popup HTML for one location payload; pure, no I/O."""
    esc = html.escape
    title = data.get("name") or data.get("deviceId") or data.get("connectionId") or ""
    accuracy = _fmt_number(data.get("accuracy") or 0, 2, default="0.00")
    lines = [
        '<div class="popup">',
        f'<div class="popup-title">📱 {esc(str(title))}</div>',
        f"<div><strong>Battery:</strong> {esc(_battery_text(data))}</div>",
        f"<div><strong>Accuracy:</strong> {accuracy}m</div>",
        f"<div><strong>Connection:</strong> {esc(str(data.get('connection') or 'unknown'))}</div>",
        f"<div><strong>Platform:</strong> {esc(str(data.get('platform') or 'Unknown'))}</div>",
        f"<div class=\"popup-place\"><strong>📍 {esc(place_name)}</strong></div>",
        f"<div><strong>Lat:</strong> {_fmt_number(data.get('lat'), 6)}, "
        f"<strong>Lng:</strong> {_fmt_number(data.get('lng'), 6)}</div>",
        "</div>",
    ]
    return "\n".join(lines)


async def create_popup_content(data: dict, geocoder: PlaceLookup) -> str:
    place = await geocoder.place_name(data.get("lat"), data.get("lng"))
    return render_popup(data, place)
