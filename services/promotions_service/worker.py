"""ARQ worker for promotions service background tasks.

Run with: arq services.promotions_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings, on_worker_startup
from libs.common.logging import get_logger

logger = get_logger(__name__)


# ── Wrapper functions (ARQ requires top-level async callables) ──


async def task_expire_promotions(ctx: dict):
    """Expire active promotions whose expiry has passed."""
    from services.promotions_service.tasks import expire_promotions

    logger.info("Running: expire_promotions")
    await expire_promotions()


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = on_worker_startup

    functions = [task_expire_promotions]

    cron_jobs = [
        # Every 15 minutes
        cron(
            task_expire_promotions,
            minute={0, 15, 30, 45},
            run_at_startup=True,
        ),
    ]
