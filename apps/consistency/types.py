"""
apps/consistency/types.py
==========================
Shared types for read-your-writes routing.

  Identity          — opaque caller key (user id). ``None`` means "unknown".
  ReplicaRole       — which side of the replication pair a query targets.
  ConsistencyConfig — process-wide window / retention / alias settings,
                      read once from ``settings.READ_YOUR_WRITES`` at startup.

Retention must be at least the consistency window: an expired marker looks
exactly like "no recent write" and the read falls back to the follower.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

Identity = str

DEFAULT_WINDOW_SECONDS    = 5
DEFAULT_RETENTION_SECONDS = 600   # 10 min

# Cache TTLs are whole seconds; EX 0 is rejected by Redis.
MIN_RETENTION = timedelta(seconds=1)

STORE_BACKENDS = ("django", "redis", "memory")


class ConfigurationError(ImproperlyConfigured):
    """Raised at startup when routing configuration is missing or invalid."""


class ReplicaRole(str, enum.Enum):
    LEADER   = "leader"
    FOLLOWER = "follower"


@dataclass(frozen=True)
class ConsistencyConfig:
    window: timedelta = timedelta(seconds=DEFAULT_WINDOW_SECONDS)
    retention: timedelta = timedelta(seconds=DEFAULT_RETENTION_SECONDS)
    leader_alias: str = "default"
    follower_alias: str = "replica"
    store: str = "django"
    cache_alias: str = "default"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "user"

    def __post_init__(self):
        if self.window <= timedelta(0):
            raise ConfigurationError(
                f"READ_YOUR_WRITES window must be positive, got {self.window}"
            )
        if self.retention < MIN_RETENTION:
            raise ConfigurationError(
                f"READ_YOUR_WRITES retention must be at least {MIN_RETENTION}, got {self.retention}"
            )
        if self.retention < self.window:
            raise ConfigurationError(
                f"READ_YOUR_WRITES retention ({self.retention}) must be >= "
                f"the consistency window ({self.window})"
            )
        if self.store not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown READ_YOUR_WRITES store {self.store!r}; "
                f"expected one of {', '.join(STORE_BACKENDS)}"
            )

    def marker_key(self, identity: Identity) -> str:
        return f"{self.key_prefix}:{identity}:last_write_utc"

    def alias_for(self, role: ReplicaRole) -> str:
        return self.leader_alias if role is ReplicaRole.LEADER else self.follower_alias

    @classmethod
    def from_settings(cls, settings=None) -> "ConsistencyConfig":
        """
        Build the config from ``settings.READ_YOUR_WRITES``.

        Missing keys fall back to the dataclass defaults. Both database
        aliases must exist in ``settings.DATABASES``; anything unusable
        raises ConfigurationError so the process refuses to start.
        """
        if settings is None:
            from django.conf import settings

        raw = dict(getattr(settings, "READ_YOUR_WRITES", None) or {})

        try:
            window = timedelta(seconds=float(
                raw.pop("CONSISTENCY_WINDOW_SECONDS", DEFAULT_WINDOW_SECONDS)
            ))
            retention = timedelta(seconds=float(
                raw.pop("MARKER_RETENTION_SECONDS", DEFAULT_RETENTION_SECONDS)
            ))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid READ_YOUR_WRITES duration: {exc}") from exc

        kwargs = {"window": window, "retention": retention}
        for key, field in (
            ("LEADER_DATABASE",   "leader_alias"),
            ("FOLLOWER_DATABASE", "follower_alias"),
            ("STORE",             "store"),
            ("CACHE_ALIAS",       "cache_alias"),
            ("REDIS_URL",         "redis_url"),
            ("KEY_PREFIX",        "key_prefix"),
        ):
            value: Optional[str] = raw.pop(key, None)
            if value is not None:
                kwargs[field] = value

        if raw:
            logger.warning("Ignoring unknown READ_YOUR_WRITES keys: %s", ", ".join(sorted(raw)))

        config = cls(**kwargs)

        databases = getattr(settings, "DATABASES", {}) or {}
        for alias in (config.leader_alias, config.follower_alias):
            if alias not in databases:
                raise ConfigurationError(
                    f"Database alias {alias!r} is not configured in DATABASES"
                )
        return config
