"""
apps/consistency/router.py
===========================
ReplicaRouter — decides leader vs. follower per request.

  writes                                   → leader, always
  reads that tolerate staleness            → follower, no cache lookup
  fresh reads, unknown identity            → follower (see DESIGN.md)
  fresh reads, no marker / expired marker  → follower
  fresh reads, now - marker <  window      → leader
  fresh reads, now - marker >= window      → follower

The identity is passed in by the caller; nothing here reads the request.
The decision completes before a connection is acquired, so a cancelled
request never opens one.
"""

import logging
from typing import Optional

from . import metrics
from .clock import Clock, SystemClock
from .providers import ConnectionProvider
from .tracker import LastWriteTracker
from .types import ConsistencyConfig, Identity, ReplicaRole

logger = logging.getLogger(__name__)


class ReplicaRouter:
    def __init__(
        self,
        tracker: LastWriteTracker,
        config: ConsistencyConfig,
        provider: Optional[ConnectionProvider] = None,
        clock: Optional[Clock] = None,
    ):
        self.tracker = tracker
        self.config = config
        self.provider = provider
        self.clock = clock or SystemClock()

    # ── Decisions ─────────────────────────────────────────────────────────────

    def route_for_write(self) -> ReplicaRole:
        return self._decide(ReplicaRole.LEADER, "write")

    def route_for_read(self, identity: Optional[Identity], requires_freshness: bool) -> ReplicaRole:
        if not requires_freshness:
            return self._decide(ReplicaRole.FOLLOWER, "stale_ok")
        if not identity:
            logger.debug("Fresh read without identity — routing to follower")
            return self._decide(ReplicaRole.FOLLOWER, "anonymous")

        last_write = self.tracker.get_last_write(identity)
        return self._route_by_marker(identity, last_write)

    async def aroute_for_read(self, identity: Optional[Identity], requires_freshness: bool) -> ReplicaRole:
        if not requires_freshness:
            return self._decide(ReplicaRole.FOLLOWER, "stale_ok")
        if not identity:
            logger.debug("Fresh read without identity — routing to follower")
            return self._decide(ReplicaRole.FOLLOWER, "anonymous")

        last_write = await self.tracker.aget_last_write(identity)
        return self._route_by_marker(identity, last_write)

    def _route_by_marker(self, identity: Identity, last_write) -> ReplicaRole:
        if last_write is None:
            return self._decide(ReplicaRole.FOLLOWER, "no_marker")

        elapsed = self.clock.now() - last_write
        if elapsed < self.config.window:
            logger.debug(
                "Recent write for %s (%.3fs ago) — routing read to leader",
                identity, elapsed.total_seconds(),
            )
            return self._decide(ReplicaRole.LEADER, "in_window")
        return self._decide(ReplicaRole.FOLLOWER, "window_elapsed")

    @staticmethod
    def _decide(role: ReplicaRole, reason: str) -> ReplicaRole:
        metrics.inc_counter(metrics.ROUTE_DECISIONS, labels={"role": role.value, "reason": reason})
        return role

    # ── Connections ───────────────────────────────────────────────────────────

    def connection_for_write(self):
        return self.acquire(self.route_for_write())

    def connection_for_read(self, identity: Optional[Identity], requires_freshness: bool):
        return self.acquire(self.route_for_read(identity, requires_freshness))

    async def aconnection_for_read(self, identity: Optional[Identity], requires_freshness: bool):
        return self.acquire(await self.aroute_for_read(identity, requires_freshness))

    def acquire(self, role: ReplicaRole):
        if self.provider is None:
            raise RuntimeError("ReplicaRouter has no connection provider configured")
        return self.provider.acquire(role)
