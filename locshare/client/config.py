"""Configuration for the headless tracker client."""

from __future__ import annotations

import json
import logging
import platform
import random
import string
from dataclasses import dataclass
from pathlib import Path

from locshare import __version__
from locshare.client.geocode import NOMINATIM_REVERSE_URL

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_device_id() -> str:
    """``dev-`` followed by 7 base-36 characters."""
    return "dev-" + "".join(random.choices(_ID_ALPHABET, k=7))


def default_device_name() -> str:
    return f"Device-{random.randint(1000, 9999)}"


@dataclass
class ClientConfig:
    """Tracker configuration, loaded from a JSON file or CLI flags."""

    server_url: str = "ws://localhost:3007/ws"
    device_id: str = ""
    name: str = ""
    user_agent: str = f"locshare/{__version__} ({platform.system() or 'unknown'})"
    geocoder_url: str = NOMINATIM_REVERSE_URL
    geocoder_timeout: float = 10.0
    report_interval: float = 5.0  # seconds between location reports

    @classmethod
    def load(cls, path: str | Path) -> ClientConfig:
        path = Path(path)
        if path.exists():
            with open(path) as f:
                data = json.load(f)
            known = {k for k in cls.__dataclass_fields__}
            filtered = {k: v for k, v in data.items() if k in known}
            return cls(**filtered)
        logger.warning("Config not found at %s, using defaults", path)
        return cls()

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(dict(self.__dict__), f, indent=2)

    def ensure_identity(self) -> None:
        """Fill in a generated device id and display name where missing."""
        if not self.device_id:
            self.device_id = generate_device_id()
        if not self.name:
            self.name = default_device_name()
