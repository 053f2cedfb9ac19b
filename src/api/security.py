"""Caller identity

Requests are authenticated upstream; the gateway forwards the user id and role
as headers.
"""

from typing import Optional
from fastapi import Depends, Header, status
from pydantic import BaseModel
from libs.result import Error
from src.api.error import ClientError

ADMIN_ROLE = "admin"


class Principal(BaseModel):
    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def get_principal(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Principal:
    if not x_user_id or not x_user_id.strip():
        raise ClientError(
            Error(code="UNAUTHENTICATED", message="Missing X-User-Id header"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return Principal(user_id=x_user_id.strip(), role=(x_user_role or "").strip().lower() or None)


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise ClientError(
            Error(code="PERMISSION_DENIED", message="Administrator role required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return principal
