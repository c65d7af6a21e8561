"""Headless tracker entry point.

Usage::

    python -m locshare.client [--config PATH] [--server URL] [--name NAME]
                              [--lat LAT --lng LNG] [--interval SECONDS]

Without ``--lat``/``--lng`` the tracker joins read-only and just logs what
other devices report.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import websockets

from locshare.client.config import ClientConfig
from locshare.client.geocode import ReverseGeocoder
from locshare.client.reconciler import STATUS_MESSAGES, Reconciler
from locshare.client.ws_client import LocationClient, Position

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m locshare.client",
        description="Locshare headless tracker",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to config.json")
    parser.add_argument("--server", default=None, help="Hub WebSocket URL (overrides config)")
    parser.add_argument("--name", default=None, help="Display name (overrides config)")
    parser.add_argument("--lat", type=float, default=None, help="Latitude to report")
    parser.add_argument("--lng", type=float, default=None, help="Longitude to report")
    parser.add_argument("--accuracy", type=float, default=0.0, help="Reported accuracy in metres")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between reports")
    parser.add_argument(
        "--status",
        default=None,
        choices=sorted(STATUS_MESSAGES),
        help="Send one status update after connecting",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


async def _report_loop(client: LocationClient, position: Position, interval: float) -> None:
    while client.connected:
        try:
            await client.send_location(position)
        except websockets.ConnectionClosed:
            logger.info("Connection closed, stopping location reports")
            return
        await asyncio.sleep(interval)


async def run(config: ClientConfig, position: Position | None, status: str | None) -> int:
    async with ReverseGeocoder(config.geocoder_url, config.geocoder_timeout) as geocoder:
        reconciler = Reconciler(config.device_id, config.name, geocoder)
        client = LocationClient(config.server_url, reconciler, user_agent=config.user_agent)
        if not await client.connect():
            return 1

        reconciler.announce_ready()
        if status:
            await client.send_status(status)

        tasks = [asyncio.create_task(client.listen())]
        if position is None:
            reconciler.geolocation_unavailable()
        else:
            tasks.append(asyncio.create_task(
                _report_loop(client, position, config.report_interval)
            ))
        try:
            await tasks[0]
        finally:
            for task in tasks[1:]:
                task.cancel()
            await asyncio.gather(*tasks[1:], return_exceptions=True)
            await client.disconnect()
            await reconciler.drain()
    return 0


def main() -> None:
    args = _build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = ClientConfig.load(args.config) if args.config else ClientConfig()
    if args.server:
        config.server_url = args.server
    if args.name:
        config.name = args.name
    if args.interval is not None:
        config.report_interval = args.interval
    config.ensure_identity()

    position = None
    if args.lat is not None and args.lng is not None:
        position = Position(lat=args.lat, lng=args.lng, accuracy=args.accuracy)
    elif (args.lat is None) != (args.lng is None):
        logger.error("--lat and --lng must be given together")
        sys.exit(2)

    try:
        sys.exit(asyncio.run(run(config, position, args.status)))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
