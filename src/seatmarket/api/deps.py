"""
Request dependencies: session authentication and role checks
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.config import settings
from seatmarket.core.database import get_db
from seatmarket.models import User, UserRole
from seatmarket.services.auth_service import AuthService


def get_session_token(request: Request) -> Optional[str]:
    """Session cookie first, then an Authorization: Bearer header"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    token = get_session_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await AuthService.get_session_user(db, token)
    if not user:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    if user.is_locked:
        raise HTTPException(status_code=403, detail=user.ban_reason or "Account locked")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of `roles`"""

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return user

    return checker


require_customer = require_roles(UserRole.CUSTOMER)
require_organizer = require_roles(UserRole.ORGANIZER)
require_admin = require_roles(UserRole.ADMIN)
