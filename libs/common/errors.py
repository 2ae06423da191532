"""Error taxonomy shared by every service.

All of these are ``HTTPException`` subclasses, so raising one from a service
function or router yields ``{"detail": ...}`` with the matching status code.
"""

from typing import Optional

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Client input or business-rule violation."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """``NotFoundError("Wallet")`` renders as ``"Wallet not found"``."""

    def __init__(self, resource: str = "Resource"):
        self.resource = resource
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found"
        )


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class GatewayError(HTTPException):
    """Upstream payment gateway failed or returned an unusable answer."""

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
