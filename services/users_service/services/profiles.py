"""Profile lookups shared by the other services."""

from typing import Optional

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.phone import normalize_phone
from services.users_service.models import User, UserRole
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await db.get(User, user_id)


async def find_user_by_phone(db: AsyncSession, phone: str) -> Optional[User]:
    normalized = normalize_phone(phone)
    if not normalized:
        return None
    result = await db.execute(
        select(User).where(User.phone == normalized).order_by(User.created_at).limit(1)
    )
    return result.scalar_one_or_none()


async def sync_user(db: AsyncSession, current_user: AuthUser) -> User:
    """Create or refresh the profile row for the token holder."""
    user = await db.get(User, current_user.user_id)
    role = UserRole(current_user.account_role)
    phone = normalize_phone(current_user.phone) if current_user.phone else None

    if user is None:
        user = User(
            id=current_user.user_id,
            email=current_user.email,
            full_name=current_user.user_metadata.get("full_name"),
            phone=phone,
            role=role,
        )
        db.add(user)
        logger.info("Created profile for user %s (role=%s)", user.id, role.value)
    else:
        user.role = role
        if current_user.email:
            user.email = current_user.email
        if phone and not user.phone:
            user.phone = phone

    await db.commit()
    await db.refresh(user)
    return user
