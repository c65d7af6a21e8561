"""Locshare: HTTP + WebSocket server.

Exposes:
  GET  /                 map page (template rendered with the port)
  GET  /public/...       static browser assets
  GET  /health           liveness check
  GET  /api/devices      current device registry snapshot
  WS   /ws               realtime hub

Start with::

    python -m locshare
    # or
    uvicorn locshare.server:app --host 0.0.0.0 --port 3007
"""

from __future__ import annotations

import html
import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from locshare import __version__
from locshare.config import ServerConfig
from locshare.hub.service import LocationHub
from locshare.hub.websocket import hub_ws_handler

logger = logging.getLogger(__name__)


def render_index(template: str, port: int) -> str:
    return template.replace("{{PORT}}", html.escape(str(port), quote=True))


def create_app(config: ServerConfig | None = None, hub: LocationHub | None = None) -> FastAPI:
    config = config or ServerConfig.from_env()
    app = FastAPI(title="Locshare", version=__version__)

    # Single hub instance for the life of the process
    app.state.config = config
    app.state.hub = hub or LocationHub()

    @app.get("/", response_class=HTMLResponse)
    async def index():
        template = config.template_path.read_text(encoding="utf-8")
        return HTMLResponse(render_index(template, config.port))

    @app.get("/health")
    async def health(request: Request):
        hub: LocationHub = request.app.state.hub
        return {
            "status": "ok",
            "connections": hub.connection_count,
            "devices": len(hub.registry),
        }

    @app.get("/api/devices")
    async def list_devices(request: Request):
        hub: LocationHub = request.app.state.hub
        return {"devices": hub.registry.snapshot()}

    app.add_api_websocket_route("/ws", hub_ws_handler)

    app.mount("/public", StaticFiles(directory=str(config.public_dir)), name="public")

    return app


app = create_app()


# ──────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────

def main():
    import uvicorn
    config = ServerConfig.from_env()
    logging.basicConfig(
        level=config.numeric_log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Locshare server on %s:%d", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
