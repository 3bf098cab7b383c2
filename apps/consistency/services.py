"""
Process-wide tracker / router built from settings.

Views call get_router() / get_tracker(); the objects are created once per
process and hold no per-request state. reset() drops them (tests, settings
overrides).
"""

from functools import lru_cache

from .clock import SystemClock
from .providers import DjangoConnectionProvider
from .router import ReplicaRouter
from .stores import build_store
from .tracker import LastWriteTracker
from .types import ConsistencyConfig


@lru_cache(maxsize=None)
def get_config() -> ConsistencyConfig:
    return ConsistencyConfig.from_settings()


@lru_cache(maxsize=None)
def get_clock():
    return SystemClock()


@lru_cache(maxsize=None)
def get_store():
    return build_store(get_config(), get_clock())


@lru_cache(maxsize=None)
def get_tracker() -> LastWriteTracker:
    return LastWriteTracker(get_store(), get_config(), get_clock())


@lru_cache(maxsize=None)
def get_router() -> ReplicaRouter:
    config = get_config()
    return ReplicaRouter(
        get_tracker(),
        config,
        provider=DjangoConnectionProvider(config),
        clock=get_clock(),
    )


def reset() -> None:
    for factory in (get_router, get_tracker, get_store, get_clock, get_config):
        factory.cache_clear()
