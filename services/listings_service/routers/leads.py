"""Lead capture endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_optional_user, require_roles
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.listings_service.schemas import (
    LeadResponse,
    LeadSubmit,
    LeadSubmitResponse,
)
from services.listings_service.services.leads import list_developer_leads, submit_lead
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post(
    "/submit", response_model=LeadSubmitResponse, status_code=status.HTTP_201_CREATED
)
async def submit_property_lead(
    body: LeadSubmit,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Public lead form. Signed-in admins and developers are refused."""
    lead = await submit_lead(db, data=body, user=user)
    return LeadSubmitResponse(lead=LeadResponse.model_validate(lead))


@router.get("", response_model=list[LeadResponse])
async def my_property_leads(
    developer: AuthUser = Depends(require_roles("developer")),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_developer_leads(db, developer_id=developer.user_id)
