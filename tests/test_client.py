"""Tests for the tracker client: config, Position payloads, WS client."""

from __future__ import annotations

import asyncio
import json
import re
from unittest.mock import AsyncMock, patch

import pytest
import websockets

from locshare.client.__main__ import _report_loop, run
from locshare.client.config import ClientConfig, default_device_name, generate_device_id
from locshare.client.reconciler import Reconciler
from locshare.client.ws_client import LocationClient, Position


# ── Config tests ──────────────────────────────────────────────────


class TestClientConfig:
    def test_defaults(self):
        cfg = ClientConfig()
        assert cfg.server_url == "ws://localhost:3007/ws"
        assert cfg.device_id == ""
        assert cfg.report_interval == 5.0

    def test_load_save(self, tmp_path):
        cfg = ClientConfig(device_id="dev-abc1234", name="Alice", server_url="ws://10.0.0.1:3007/ws")
        path = tmp_path / "config.json"
        cfg.save(path)

        loaded = ClientConfig.load(path)
        assert loaded.device_id == "dev-abc1234"
        assert loaded.name == "Alice"
        assert loaded.server_url == "ws://10.0.0.1:3007/ws"

    def test_load_missing_file(self, tmp_path):
        cfg = ClientConfig.load(tmp_path / "nonexistent.json")
        assert cfg.device_id == ""

    def test_load_ignores_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"name": "Bob", "favourite_colour": "blue"}))
        cfg = ClientConfig.load(path)
        assert cfg.name == "Bob"
        assert not hasattr(cfg, "favourite_colour")

    def test_generated_identity(self):
        assert re.fullmatch(r"dev-[0-9a-z]{7}", generate_device_id())
        name = default_device_name()
        assert re.fullmatch(r"Device-\d{4}", name)
        assert 1000 <= int(name.split("-")[1]) <= 9999

    def test_ensure_identity_keeps_existing(self):
        cfg = ClientConfig(device_id="dev-fixed00", name="")
        cfg.ensure_identity()
        assert cfg.device_id == "dev-fixed00"
        assert cfg.name.startswith("Device-")


# ── Position ──────────────────────────────────────────────────────


class TestPosition:
    def test_payload(self):
        payload = Position(lat=1.0, lng=2.0, accuracy=5.0, battery=50).to_payload("d1", "Alice")
        assert payload == {
            "deviceId": "d1",
            "name": "Alice",
            "lat": 1.0,
            "lng": 2.0,
            "accuracy": 5.0,
            "heading": None,
            "speed": None,
            "battery": 50,
        }


# ── WebSocket client ──────────────────────────────────────────────


class FakeConnection:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.closed = False

    async def send(self, raw: str) -> None:
        self.sent.append(json.loads(raw))

    async def close(self) -> None:
        self.closed = True


class StreamConnection(FakeConnection):
    """Yields canned frames, then ends or raises like a dropped socket."""

    def __init__(self, frames: list, error: Exception | None = None) -> None:
        super().__init__()
        self.frames = frames
        self.error = error

    def __aiter__(self):
        return self._stream()

    async def _stream(self):
        for frame in self.frames:
            yield frame
        if self.error is not None:
            raise self.error


class ClosedConnection(FakeConnection):
    async def send(self, raw: str) -> None:
        raise websockets.ConnectionClosed(None, None)


def _client(geocoder) -> tuple[LocationClient, Reconciler]:
    reconciler = Reconciler("me", "Me", geocoder)
    return LocationClient("ws://hub.test/ws", reconciler, user_agent="tracker/1"), reconciler


class TestLocationClient:
    def test_wires_reconciler_emit(self, geocoder):
        client, reconciler = _client(geocoder)
        assert reconciler.emit is not None

    @pytest.mark.asyncio
    async def test_connect_registers(self, geocoder):
        client, _ = _client(geocoder)
        conn = FakeConnection()
        with patch("locshare.client.ws_client.websockets.connect", AsyncMock(return_value=conn)):
            assert await client.connect() is True
        assert client.connected
        assert conn.sent == [{
            "event": "register",
            "data": {"deviceId": "me", "name": "Me", "ua": "tracker/1"},
        }]

    @pytest.mark.asyncio
    async def test_connect_failure(self, geocoder):
        client, _ = _client(geocoder)
        with patch(
            "locshare.client.ws_client.websockets.connect",
            AsyncMock(side_effect=OSError("refused")),
        ):
            assert await client.connect() is False
        assert not client.connected

    @pytest.mark.asyncio
    async def test_send_location_and_status(self, geocoder):
        client, _ = _client(geocoder)
        conn = FakeConnection()
        client._ws = conn
        await client.send_location(Position(lat=10, lng=20))
        await client.send_status("safe")
        assert [m["event"] for m in conn.sent] == ["location", "status"]
        assert conn.sent[0]["data"]["deviceId"] == "me"
        assert conn.sent[1]["data"]["message"] == "✅ Status: Safe and secure"

    @pytest.mark.asyncio
    async def test_send_without_connection_is_dropped(self, geocoder):
        client, reconciler = _client(geocoder)
        await client.send_status("safe")
        assert reconciler.activity.messages() == ["✅ Status: Safe and secure"]

    @pytest.mark.asyncio
    async def test_dispatches_hub_events(self, geocoder):
        client, reconciler = _client(geocoder)
        await client.handle_message(json.dumps({
            "event": "devices",
            "data": [{"deviceId": "d1", "name": "A", "ua": "UA", "connectionId": "c1"}],
        }))
        await client.handle_message(json.dumps({
            "event": "location",
            "data": {"deviceId": "d1", "lat": 1, "lng": 2, "connectionId": "c1"},
        }))
        await client.handle_message(json.dumps({
            "event": "status",
            "data": {"from": "A", "status": "safe", "message": "ok", "time": 1},
        }))
        await reconciler.drain()
        assert [e.label for e in reconciler.device_list] == ["A (UA)"]
        assert "d1" in reconciler.markers
        assert reconciler.alerts.messages() == ["A: ok"]

    @pytest.mark.asyncio
    async def test_malformed_frames_ignored(self, geocoder):
        client, reconciler = _client(geocoder)
        await client.handle_message("{not json")
        await client.handle_message("[]")
        await client.handle_message(json.dumps({"event": "location", "data": {"lat": 1}}))
        await client.handle_message(json.dumps({"event": "mystery"}))
        assert reconciler.markers == {}

    @pytest.mark.asyncio
    async def test_undecodable_bytes_ignored(self, geocoder):
        client, reconciler = _client(geocoder)
        await client.handle_message(b"\x80abc")
        await client.handle_message(b'{"event": "status", "data": {"from": "A", "message": "ok"}}')
        assert reconciler.alerts.messages() == ["A: ok"]

    @pytest.mark.asyncio
    async def test_disconnect(self, geocoder):
        client, _ = _client(geocoder)
        conn = FakeConnection()
        client._ws = conn
        client._connected = True
        await client.disconnect()
        assert conn.closed
        assert not client.connected

    @pytest.mark.asyncio
    async def test_listen_survives_bad_frames(self, geocoder):
        client, reconciler = _client(geocoder)
        client._ws = StreamConnection([
            b"\x80abc",
            json.dumps({"event": "devices", "data": [{"deviceId": "d1", "name": "A"}]}),
            json.dumps({"event": "status", "data": {"from": "A", "status": "safe", "message": "ok"}}),
        ])
        client._connected = True
        await client.listen()
        assert [e.device_id for e in reconciler.device_list] == ["d1"]
        assert reconciler.alerts.messages() == ["A: ok"]
        assert not client.connected

    @pytest.mark.asyncio
    async def test_listen_stops_on_connection_closed(self, geocoder):
        client, reconciler = _client(geocoder)
        client._ws = StreamConnection(
            [json.dumps({"event": "status", "data": {"from": "B", "message": "bye"}})],
            error=websockets.ConnectionClosed(None, None),
        )
        client._connected = True
        await client.listen()
        assert reconciler.alerts.messages() == ["B: bye"]
        assert not client.connected


# ── Tracker run loop ──────────────────────────────────────────────


class TestRun:
    @pytest.mark.asyncio
    async def test_report_loop_stops_when_socket_closes(self, geocoder):
        client, _ = _client(geocoder)
        client._ws = ClosedConnection()
        client._connected = True
        await asyncio.wait_for(_report_loop(client, Position(lat=1.0, lng=2.0), 0), timeout=1)

    @pytest.mark.asyncio
    async def test_report_loop_sends_until_disconnected(self, geocoder):
        client, _ = _client(geocoder)
        conn = FakeConnection()
        client._ws = conn
        client._connected = True

        async def send_once(raw: str) -> None:
            conn.sent.append(json.loads(raw))
            client._connected = False

        conn.send = send_once
        await _report_loop(client, Position(lat=1.0, lng=2.0), 0)
        assert [m["event"] for m in conn.sent] == ["location"]
        assert conn.sent[0]["data"]["lat"] == 1.0

    @pytest.mark.asyncio
    async def test_session_registers_reports_status_and_closes(self):
        conn = StreamConnection([
            json.dumps({"event": "devices", "data": [{"deviceId": "me", "name": "Me"}]}),
        ])
        config = ClientConfig(device_id="me", name="Me")
        with patch("locshare.client.ws_client.websockets.connect", AsyncMock(return_value=conn)):
            assert await run(config, None, "arrived") == 0
        assert [m["event"] for m in conn.sent] == ["register", "status"]
        assert conn.sent[1]["data"]["status"] == "arrived"
        assert conn.closed

    @pytest.mark.asyncio
    async def test_session_fails_without_hub(self):
        config = ClientConfig(device_id="me", name="Me")
        with patch(
            "locshare.client.ws_client.websockets.connect",
            AsyncMock(side_effect=OSError("refused")),
        ):
            assert await run(config, None, None) == 1
