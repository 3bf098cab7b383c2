"""
config/db_router.py
====================
Fallback ORM router for queries that do not go through ReplicaRouter.

ReplicaRouter picks an alias explicitly (QuerySet.using()) where
read-your-writes matters. Every other ORM call lands here:
  - db_for_read()    → the follower alias
  - db_for_write()   → the leader alias
  - allow_migrate()  → migrations only run on the leader (the replica is
                       read-only and receives schema through replication)

Registered in settings.py:
    DATABASE_ROUTERS = ['config.db_router.ReadReplicaRouter']
"""

from apps.consistency.services import get_config
from apps.consistency.types import ReplicaRole

# These apps always read from the leader.
# Auth needs consistent reads — login writes a session then immediately
# reads it back. Sending that read to a replica that's milliseconds
# behind causes "auth_user does not exist" on the replica.
REPLICA_EXCLUDED_APPS = {"auth", "admin", "contenttypes", "sessions"}


class ReadReplicaRouter:
    def db_for_read(self, model, **hints):
        config = get_config()
        if model._meta.app_label in REPLICA_EXCLUDED_APPS:
            return config.alias_for(ReplicaRole.LEADER)
        return config.alias_for(ReplicaRole.FOLLOWER)

    def db_for_write(self, model, **hints):
        return get_config().alias_for(ReplicaRole.LEADER)

    def allow_relation(self, obj1, obj2, **hints):
        return True

    def allow_migrate(self, db, app_label, **hints):
        # Migrations only run on the leader
        return db == get_config().alias_for(ReplicaRole.LEADER)
