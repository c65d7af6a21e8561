"""Client-side reconciler and hub connection."""

from locshare.client.config import ClientConfig
from locshare.client.feed import BoundedFeed, FeedEntry
from locshare.client.geocode import UNKNOWN_LOCATION, ReverseGeocoder
from locshare.client.popup import create_popup_content, render_popup
from locshare.client.reconciler import STATUS_MESSAGES, DeviceListEntry, Marker, Reconciler
from locshare.client.ws_client import LocationClient, Position

__all__ = [
    "BoundedFeed",
    "ClientConfig",
    "DeviceListEntry",
    "FeedEntry",
    "LocationClient",
    "Marker",
    "Position",
    "Reconciler",
    "ReverseGeocoder",
    "STATUS_MESSAGES",
    "UNKNOWN_LOCATION",
    "create_popup_content",
    "render_popup",
]
