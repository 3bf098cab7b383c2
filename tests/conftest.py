from datetime import datetime, timedelta, timezone

import pytest
import redis
from django.core.cache import caches

from apps.consistency import metrics, services
from apps.consistency.router import ReplicaRouter
from apps.consistency.stores import InMemoryTTLStore
from apps.consistency.tracker import LastWriteTracker
from apps.consistency.types import ConsistencyConfig


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start=None):
        self.start = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._now = self.start

    def now(self):
        return self._now

    def advance(self, seconds):
        self._now += timedelta(seconds=seconds)

    def at(self, seconds):
        """Jump to ``start + seconds``."""
        self._now = self.start + timedelta(seconds=seconds)


class RecordingProvider:
    def __init__(self):
        self.acquired = []

    def acquire(self, role):
        self.acquired.append(role)
        return f"conn:{role.value}"


class FailingStore:
    """Store whose every call fails like an unreachable Redis."""

    def __init__(self, exc=None):
        self.exc = exc or redis.ConnectionError("Error 111 connecting to redis:6379. Connection refused.")
        self.calls = 0

    def get(self, key):
        self.calls += 1
        raise self.exc

    def set(self, key, value, ttl_seconds):
        self.calls += 1
        raise self.exc


class CountingStore(InMemoryTTLStore):
    def __init__(self, clock):
        super().__init__(clock)
        self.gets = 0

    def get(self, key):
        self.gets += 1
        return super().get(key)


@pytest.fixture(autouse=True)
def _isolate_state():
    for alias in ("default", "markers"):
        caches[alias].clear()
    metrics.reset()
    services.reset()
    yield
    services.reset()


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def config():
    return ConsistencyConfig(window=timedelta(seconds=5), retention=timedelta(seconds=600))


@pytest.fixture()
def store(clock):
    return CountingStore(clock)


@pytest.fixture()
def tracker(store, config, clock):
    return LastWriteTracker(store, config, clock)


@pytest.fixture()
def provider():
    return RecordingProvider()


@pytest.fixture()
def router(tracker, config, provider, clock):
    return ReplicaRouter(tracker, config, provider=provider, clock=clock)
