from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""


class SystemClock:
    """Wall-clock UTC. Accuracy across hosts is whatever NTP gives us."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
