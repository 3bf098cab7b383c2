"""
apps/consistency/tracker.py
============================
LastWriteTracker — per-identity "last write" marker in a shared TTL store.

  user:{identity}:last_write_utc  →  "2026-10-18T09:30:00.123456+00:00"

The write handler calls record_write() after its leader transaction commits.
ReplicaRouter calls get_last_write() to decide whether a fresh read must go
to the leader.

A broken cache never fails the request:
  - get: logged, counted, reported as "no marker" → the read goes to the
    follower (may be stale, never an error)
  - set: logged, counted, dropped → the write already committed; the only
    cost is one possibly-stale read afterwards

No retries here; the client's own socket timeouts bound the latency.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

import redis
from asgiref.sync import sync_to_async
from django_redis.exceptions import ConnectionInterrupted

from . import metrics
from .clock import Clock, SystemClock
from .stores import KeyValueTTLStore
from .types import ConsistencyConfig, Identity

logger = logging.getLogger(__name__)

# Failures of the shared cache that degrade one request instead of aborting it.
# ConnectionInterrupted is what django-redis raises when IGNORE_EXCEPTIONS is off.
TRANSIENT_CACHE_ERRORS = (redis.RedisError, ConnectionInterrupted, OSError)


class LastWriteTracker:
    def __init__(
        self,
        store: KeyValueTTLStore,
        config: ConsistencyConfig,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.config = config
        self.clock = clock or SystemClock()
        # Rounded up: a TTL shorter than the retention could expire inside the window.
        self._ttl_seconds = math.ceil(config.retention.total_seconds())

    def record_write(self, identity: Identity) -> None:
        key = self.config.marker_key(identity)
        value = self.clock.now().astimezone(timezone.utc).isoformat()
        try:
            self.store.set(key, value, self._ttl_seconds)
        except TRANSIENT_CACHE_ERRORS as exc:
            metrics.inc_counter(metrics.TRACKER_ERRORS, labels={"op": "set"})
            logger.warning("Could not record last write for %s — marker dropped: %s", key, exc)
            return
        logger.debug("Recorded last write for %s at %s (ttl=%ds)", key, value, self._ttl_seconds)

    def get_last_write(self, identity: Identity) -> Optional[datetime]:
        """
        Return the UTC timestamp of the identity's most recent write, or None
        if there is none, it expired, or the cache could not be read.
        """
        key = self.config.marker_key(identity)
        try:
            with metrics.timed(metrics.LOOKUP_SECONDS):
                raw = self.store.get(key)
        except TRANSIENT_CACHE_ERRORS as exc:
            metrics.inc_counter(metrics.TRACKER_ERRORS, labels={"op": "get"})
            logger.warning("Last-write lookup failed for %s — treating as absent: %s", key, exc)
            return None

        if raw is None:
            return None
        return _parse_timestamp(key, raw)

    async def arecord_write(self, identity: Identity) -> None:
        await sync_to_async(self.record_write, thread_sensitive=False)(identity)

    async def aget_last_write(self, identity: Identity) -> Optional[datetime]:
        return await sync_to_async(self.get_last_write, thread_sensitive=False)(identity)


def _parse_timestamp(key: str, raw) -> Optional[datetime]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        ts = datetime.fromisoformat(raw)
    except (TypeError, ValueError):
        logger.warning("Unparsable last-write marker %s=%r — ignoring", key, raw)
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts
