"""Shared ARQ worker plumbing.

Workers read their Redis connection from ``REDIS_URL`` and configure the same
structured logging as the API on startup.
"""

from urllib.parse import urlparse

from arq.connections import RedisSettings

from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


def get_redis_settings() -> RedisSettings:
    """Build ARQ ``RedisSettings`` from ``REDIS_URL`` (``redis://`` or ``rediss://``)."""
    url = urlparse(get_settings().REDIS_URL)
    return RedisSettings(
        host=url.hostname or "localhost",
        port=url.port or 6379,
        database=int(url.path.lstrip("/") or 0),
        password=url.password,
        ssl=url.scheme == "rediss",
    )


async def on_worker_startup(ctx: dict) -> None:
    configure_logging()
    logger.info("Worker started (environment=%s)", get_settings().ENVIRONMENT)
