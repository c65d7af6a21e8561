"""Reverse geocoding (coordinates → place name) over HTTP.

Uses httpx for async HTTP. Lookups never raise: any failure yields
:data:`UNKNOWN_LOCATION`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from locshare import __version__

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
UNKNOWN_LOCATION = "Unknown Location"


def place_from_response(payload: Any) -> str:
    """First comma-delimited segment of ``display_name``."""
    if not isinstance(payload, dict):
        return UNKNOWN_LOCATION
    display_name = payload.get("display_name")
    if not isinstance(display_name, str):
        return UNKNOWN_LOCATION
    first = display_name.split(",")[0].strip()
    return first or UNKNOWN_LOCATION


class ReverseGeocoder:
    """Thin async wrapper around a Nominatim-style ``/reverse`` endpoint.

    A single :class:`httpx.AsyncClient` is reused across lookups. Call
    :meth:`aclose` (or use as an async context manager) when done.
    """

    def __init__(
        self,
        url: str = NOMINATIM_REVERSE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": f"locshare/{__version__}"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ReverseGeocoder":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def place_name(self, lat: Any, lng: Any) -> str:
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": 18,
            "addressdetails": 1,
        }
        try:
            response = await self._client.get(self.url, params=params)
            response.raise_for_status()
            return place_from_response(response.json())
        except Exception as e:
            logger.debug("Reverse geocoding failed for %s,%s: %s", lat, lng, e)
            return UNKNOWN_LOCATION
