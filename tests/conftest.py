"""pytest configuration and shared fakes for Locshare tests."""

from __future__ import annotations

import asyncio

import pytest


# Configure asyncio mode for pytest-asyncio
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class FakeSubscriber:
    """Records every message the broadcaster sends it."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send(self, message: dict) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.sent.append(message)

    def events(self, name: str) -> list:
        return [m["data"] for m in self.sent if m["event"] == name]


class StubGeocoder:
    """Place lookup with a fixed answer and an optional gate per call."""

    def __init__(self, place: str = "Berlin") -> None:
        self.place = place
        self.calls: list[tuple] = []
        self.gates: list[asyncio.Event] = []

    async def place_name(self, lat, lng) -> str:
        self.calls.append((lat, lng))
        if self.gates:
            gate = self.gates.pop(0)
            await gate.wait()
        return f"{self.place} {lat},{lng}"


@pytest.fixture()
def subscriber_factory():
    return FakeSubscriber


@pytest.fixture()
def geocoder():
    return StubGeocoder()
