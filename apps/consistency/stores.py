"""
apps/consistency/stores.py
===========================
Key-value stores with per-key TTL for last-write markers.

Every serving instance must see every other instance's markers, so the
production backends are shared:

  DjangoCacheStore — any CACHES alias. settings.py points "markers" at
                     django-redis, so markers live in the shared Redis.
  RedisStore       — direct redis-py client, for deployments that keep the
                     markers apart from the Django cache (own URL / DB).
  InMemoryTTLStore — process-local dict with absolute expiry. Only correct
                     for a single process (local dev, tests). Expired
                     entries go on read and in a sweep every SWEEP_EVERY sets.

Stores do not swallow errors. LastWriteTracker decides what a failed get/set
means for the request.
"""

import logging
from datetime import timedelta
from typing import Optional, Protocol

import redis

from .clock import Clock, SystemClock
from .types import ConfigurationError, ConsistencyConfig

logger = logging.getLogger(__name__)


class KeyValueTTLStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


# ── Django cache ──────────────────────────────────────────────────────────────

class DjangoCacheStore:
    def __init__(self, alias: str = "default"):
        self.alias = alias

    @property
    def _cache(self):
        # Resolved per call: django.core.cache.caches is thread-local.
        from django.core.cache import caches
        return caches[self.alias]

    def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._cache.set(key, value, timeout=ttl_seconds)


# ── Redis ─────────────────────────────────────────────────────────────────────

class RedisStore:
    """
    Plain SET key value EX ttl / GET key against Redis.

    The client is created on first use. Timeouts are short so a slow Redis
    costs a read at most ~1 s before the tracker gives up on it.
    """

    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self.url = url
        self._client = client

    def _get_redis(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self.url,
                socket_connect_timeout=2,
                socket_timeout=1,
                decode_responses=True,
            )
            logger.info("Redis marker store configured at %s.", self.url)
        return self._client

    def get(self, key: str) -> Optional[str]:
        return self._get_redis().get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._get_redis().set(key, value, ex=ttl_seconds)


# ── In-memory ─────────────────────────────────────────────────────────────────

class InMemoryTTLStore:
    # Identities that never read again would otherwise stay in the dict forever.
    SWEEP_EVERY = 500

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._data = {}
        self._writes = 0

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock.now() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self.clock.now()
        self._data[key] = (value, now + timedelta(seconds=ttl_seconds))
        self._writes += 1
        if self._writes % self.SWEEP_EVERY == 0:
            self.sweep(now)

    def sweep(self, now=None) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = now or self.clock.now()
        expired = [k for k, (_, expires_at) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]
        if expired:
            logger.debug("Swept %d expired markers from the in-memory store.", len(expired))
        return len(expired)

    def __len__(self):
        return len(self._data)


def build_store(config: ConsistencyConfig, clock: Optional[Clock] = None) -> KeyValueTTLStore:
    if config.store == "django":
        return DjangoCacheStore(config.cache_alias)
    if config.store == "redis":
        return RedisStore(config.redis_url)
    if config.store == "memory":
        logger.warning("Using the in-memory marker store; read-your-writes holds per process only.")
        return InMemoryTTLStore(clock)
    raise ConfigurationError(f"Unknown READ_YOUR_WRITES store {config.store!r}")
