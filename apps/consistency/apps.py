import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ConsistencyAppConfig(AppConfig):
    name = "apps.consistency"
    label = "consistency"
    verbose_name = "Read-your-writes routing"

    def ready(self):
        # Fail at startup, not on the first request, if routing config is bad.
        from .services import get_config

        config = get_config()
        logger.info(
            "Read-your-writes routing: window=%.1fs retention=%ds store=%s leader=%s follower=%s",
            config.window.total_seconds(),
            int(config.retention.total_seconds()),
            config.store,
            config.leader_alias,
            config.follower_alias,
        )
