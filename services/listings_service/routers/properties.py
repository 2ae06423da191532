"""Property listing endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import require_admin, require_roles
from libs.auth.models import AuthUser
from libs.common.rate_limit import get_client_ip
from libs.db.session import get_async_db
from services.listings_service.models import ListingType, Property, PropertyStatus
from services.listings_service.schemas import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyReviewRequest,
)
from services.listings_service.services.properties import (
    create_property,
    get_property,
    review_property,
)
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/properties", tags=["properties"])
admin_router = APIRouter(prefix="/admin/properties", tags=["admin-properties"])


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def list_new_property(
    body: PropertyCreate,
    developer: AuthUser = Depends(require_roles("developer")),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_property(db, developer_id=developer.user_id, data=body)


@router.get("", response_model=PropertyListResponse)
async def browse_properties(
    listing_type: Optional[ListingType] = None,
    location: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Public catalogue: active listings only."""
    filters = [Property.status == PropertyStatus.ACTIVE]
    if listing_type:
        filters.append(Property.listing_type == listing_type)
    if location:
        filters.append(Property.location.ilike(f"%{location}%"))

    total = (
        await db.execute(select(func.count()).select_from(Property).where(*filters))
    ).scalar() or 0
    result = await db.execute(
        select(Property)
        .where(*filters)
        .order_by(desc(Property.created_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return PropertyListResponse(
        properties=list(result.scalars().all()), total=total, page=page, limit=limit
    )


@router.get("/mine", response_model=list[PropertyResponse])
async def my_properties(
    developer: AuthUser = Depends(require_roles("developer")),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Property)
        .where(Property.developer_id == developer.user_id)
        .order_by(desc(Property.created_at))
    )
    return list(result.scalars().all())


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property_details(
    property_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)
):
    return await get_property(db, property_id)


@admin_router.post("/{property_id}/verify", response_model=PropertyResponse)
async def verify_property(
    property_id: uuid.UUID,
    request: Request,
    body: Optional[PropertyReviewRequest] = None,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await review_property(
        db,
        property_id=property_id,
        admin=admin,
        approve=True,
        notes=body.notes if body else None,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@admin_router.post("/{property_id}/reject", response_model=PropertyResponse)
async def reject_property(
    property_id: uuid.UUID,
    body: PropertyReviewRequest,
    request: Request,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await review_property(
        db,
        property_id=property_id,
        admin=admin,
        approve=False,
        notes=body.reason or body.notes,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
