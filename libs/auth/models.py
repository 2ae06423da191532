from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

ACCOUNT_ROLES = ("admin", "developer", "creator", "buyer")


class AuthUser(BaseModel):
    """
    Represents an authenticated user from a Supabase access token.

    ``role`` is the Postgres role Supabase puts in the token (``authenticated``
    or ``service_role``); the marketplace role lives in ``app_metadata.role``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., alias="sub")
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = "authenticated"
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def account_role(self) -> str:
        role = self.app_metadata.get("role") or self.user_metadata.get("role")
        if self.role == "service_role":
            return "admin"
        return role if role in ACCOUNT_ROLES else "buyer"

    @property
    def is_admin(self) -> bool:
        return self.account_role == "admin"

    def has_role(self, *roles: str) -> bool:
        return self.account_role in roles
