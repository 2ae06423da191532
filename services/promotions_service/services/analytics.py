"""Per-promotion performance over time.

Leads, inspections and conversions are counted from the rows a promotion
produced, so both the current window and the one before it are exact.
Impressions and clicks only exist as running counters on the link and are
reported without a comparison.
"""

from datetime import datetime, timedelta
from typing import Optional

from libs.common.datetime_utils import as_utc, utc_now
from services.listings_service.models import Inspection, Lead, LeadStatus
from services.promotions_service.models import TrackingLink
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# period -> (number of chart buckets, days per bucket)
PERIODS = {
    "daily": (7, 1),
    "weekly": (4, 7),
    "monthly": (12, 30),
}


def percent_change(current: int, previous: int) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def _lead_filters(link: TrackingLink) -> tuple:
    return (Lead.creator_id == link.creator_id, Lead.property_id == link.property_id)


async def _count_leads(db: AsyncSession, link: TrackingLink, start, end) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Lead)
        .where(*_lead_filters(link), Lead.created_at >= start, Lead.created_at < end)
    )
    return result.scalar() or 0


async def _count_inspections(db: AsyncSession, link: TrackingLink, start, end) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Inspection)
        .join(Lead, Lead.id == Inspection.lead_id)
        .where(
            *_lead_filters(link),
            Inspection.created_at >= start,
            Inspection.created_at < end,
        )
    )
    return result.scalar() or 0


async def _count_conversions(db: AsyncSession, link: TrackingLink, start, end) -> int:
    # A lead's last update is when it was marked converted
    result = await db.execute(
        select(func.count())
        .select_from(Lead)
        .where(
            *_lead_filters(link),
            Lead.status == LeadStatus.CONVERTED,
            Lead.updated_at >= start,
            Lead.updated_at < end,
        )
    )
    return result.scalar() or 0


def _bucket_index(
    moment: datetime, start: datetime, bucket: timedelta, size: int
) -> Optional[int]:
    index = int((as_utc(moment) - start) // bucket)
    return index if 0 <= index < size else None


async def _chart(
    db: AsyncSession, link: TrackingLink, start: datetime, buckets: int, days: int
) -> list[dict]:
    bucket = timedelta(days=days)
    chart = [
        {"start": start + bucket * i, "leads": 0, "inspections": 0}
        for i in range(buckets)
    ]
    lead_times = await db.execute(
        select(Lead.created_at).where(*_lead_filters(link), Lead.created_at >= start)
    )
    for (created_at,) in lead_times.all():
        index = _bucket_index(created_at, start, bucket, buckets)
        if index is not None:
            chart[index]["leads"] += 1

    inspection_times = await db.execute(
        select(Inspection.created_at)
        .join(Lead, Lead.id == Inspection.lead_id)
        .where(*_lead_filters(link), Inspection.created_at >= start)
    )
    for (created_at,) in inspection_times.all():
        index = _bucket_index(created_at, start, bucket, buckets)
        if index is not None:
            chart[index]["inspections"] += 1
    return chart


async def promotion_analytics(
    db: AsyncSession,
    link: TrackingLink,
    *,
    period: str = "daily",
    now: Optional[datetime] = None,
) -> dict:
    """Stats for the window ending ``now`` compared with the window before it.

    ``period`` picks the window: 7 days in daily buckets, 28 days in weekly
    buckets or 360 days in 30-day buckets.
    """
    buckets, days = PERIODS[period]
    now = now or utc_now()
    window = timedelta(days=buckets * days)
    start = now - window
    previous_start = start - window

    stats = {
        "impressions": {"value": link.impressions, "change": None},
        "clicks": {"value": link.clicks, "change": None},
    }
    for name, counter in (
        ("leads", _count_leads),
        ("inspections", _count_inspections),
        ("conversions", _count_conversions),
    ):
        current = await counter(db, link, start, now)
        previous = await counter(db, link, previous_start, start)
        stats[name] = {
            "value": current,
            "previous": previous,
            "change": percent_change(current, previous),
        }

    return {
        "promotion_id": link.id,
        "period": period,
        "stats": stats,
        "chart_data": await _chart(db, link, start, buckets, days),
    }
