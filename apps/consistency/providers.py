from typing import Any, Protocol

from django.db import connections

from .types import ConsistencyConfig, ReplicaRole


class ConnectionProvider(Protocol):
    def acquire(self, role: ReplicaRole) -> Any:
        """Return a ready-to-use database handle for ``role``."""


class DjangoConnectionProvider:
    """
    Maps a role onto a Django database alias and hands back that alias's
    connection. Callers pass ``handle.alias`` to ``QuerySet.using()`` or use
    ``handle.cursor()`` for raw SQL.
    """

    def __init__(self, config: ConsistencyConfig):
        self.config = config

    def acquire(self, role: ReplicaRole):
        return connections[self.config.alias_for(role)]
