"""Server configuration, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3007
_PACKAGE_DIR = Path(__file__).resolve().parent


def _parse_port(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        logger.warning("Invalid PORT %r, using %d", raw, DEFAULT_PORT)
        return DEFAULT_PORT
    if not 0 < port < 65536:
        logger.warning("PORT %d out of range, using %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


@dataclass
class ServerConfig:
    """Hub server settings."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    template_path: Path = field(default_factory=lambda: _PACKAGE_DIR / "templates" / "index.html")
    public_dir: Path = field(default_factory=lambda: _PACKAGE_DIR / "public")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("LOCSHARE_HOST", "0.0.0.0"),
            port=_parse_port(env.get("PORT")),
            log_level=env.get("LOCSHARE_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def numeric_log_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO
