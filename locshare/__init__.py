"""Locshare: live location sharing hub.

Clients push geolocation and status updates over a WebSocket; the hub keeps
an in-memory registry of connected devices and rebroadcasts every change to
all connected clients.

Quickstart::

    python -m locshare                 # serve on $PORT (default 3007)
    python -m locshare.client --name Alice --lat 52.52 --lng 13.40
"""

__version__ = "1.0.0"
