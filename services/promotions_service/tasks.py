"""Background tasks for the promotions service."""

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.promotions_service.services.lifecycle import batch_expire_promotions

logger = get_logger(__name__)


async def expire_promotions() -> int:
    """Sweep active promotions past their expiry."""
    async with AsyncSessionLocal() as db:
        count = await batch_expire_promotions(db)
    logger.info("Promotion expiry sweep finished: %d expired", count)
    return count
