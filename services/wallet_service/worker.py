"""ARQ worker for wallet service background tasks.

Run with: arq services.wallet_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings, on_worker_startup
from libs.common.logging import get_logger

logger = get_logger(__name__)


# ── Wrapper functions (ARQ requires top-level async callables) ──


async def task_reconcile_pending_collections(ctx: dict):
    """Re-verify stale pending Paystack collections."""
    from services.wallet_service.tasks import reconcile_pending_collections

    logger.info("Running: reconcile_pending_collections")
    await reconcile_pending_collections()


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = on_worker_startup

    functions = [task_reconcile_pending_collections]

    cron_jobs = [
        # Every 10 minutes
        cron(
            task_reconcile_pending_collections,
            minute={0, 10, 20, 30, 40, 50},
            run_at_startup=False,
        ),
    ]
