"""Dashboard summary endpoints."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin, require_roles
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.dashboard_service.schemas import AdminDashboardStats, DeveloperCounts
from services.dashboard_service.services import stats
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["dashboard"])


@router.get("/admin/dashboard/stats", response_model=AdminDashboardStats)
async def admin_dashboard_stats(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Platform-wide users, listings, money held and today's activity."""
    return await stats.admin_stats(db)


@router.get("/dashboard/developer/counts", response_model=DeveloperCounts)
async def developer_counts(
    current_user: AuthUser = Depends(require_roles("developer", "admin")),
    db: AsyncSession = Depends(get_async_db),
):
    """Totals across the caller's own listings."""
    return await stats.developer_counts(db, developer_id=current_user.user_id)
