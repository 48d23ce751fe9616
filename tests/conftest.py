"""Pytest configuration and fixtures for test suite."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from riverguard.domain.errors import TransportError
from riverguard.domain.history import RollingHistory
from riverguard.domain.thresholds import ThresholdPolicy
from riverguard.services.poller import DashboardPoller


NOW = datetime(2026, 3, 14, 9, 30, 0, tzinfo=timezone.utc)


class FakeSource:
    """Queue of payloads (or exceptions) handed out one per fetch."""

    source_id = "fake"

    def __init__(self, *items):
        self.items = list(items)
        self.calls = 0

    def push(self, item) -> None:
        self.items.append(item)

    async def fetch(self):
        self.calls += 1
        item = self.items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class BlockingSource:
    """Fetch hangs until release() is called, to hold a tick in flight."""

    source_id = "blocking"

    def __init__(self, payload):
        self.payload = payload
        self.calls = 0
        self._release = asyncio.Event()

    def release(self) -> None:
        self._release.set()

    async def fetch(self):
        self.calls += 1
        await self._release.wait()
        return self.payload


def payload(depth, at=NOW, rate=None):
    data = {"WaterLevel": depth, "Timestamp": at.isoformat().replace("+00:00", "Z")}
    if rate is not None:
        data["Rate"] = rate
    return data


@pytest.fixture
def policy() -> ThresholdPolicy:
    return ThresholdPolicy(container_height=100.0, warning=70.0, flood=90.0)


@pytest.fixture
def clock():
    """Mutable wall clock: tests move `clock.now` to simulate time passing."""

    class Clock:
        now = NOW

        def __call__(self):
            return self.now

        def advance(self, **kwargs):
            self.now = self.now + timedelta(**kwargs)

    return Clock()


@pytest.fixture
def make_poller(policy, clock):
    def _make(source, capacity=20):
        return DashboardPoller(
            source=source,
            policy=policy,
            history=RollingHistory(capacity),
            poll_seconds=0.01,
            clock=clock,
        )

    return _make


@pytest.fixture
def transport_error():
    return TransportError("connection refused")
