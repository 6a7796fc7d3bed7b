"""
Account service: sign-up, sign-in and session lookup
"""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.config import settings
from seatmarket.core.errors import ServiceError, ConflictError, NotFoundError, PermissionDeniedError
from seatmarket.core.security import hash_password, verify_password, new_session_token
from seatmarket.models import User, UserRole, Organizer, UserSession
import logging

logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = (UserRole.CUSTOMER, UserRole.ORGANIZER)


class AuthError(ServiceError):
    """Base exception for account errors"""
    code = "AUTH_ERROR"


class EmailTakenError(ConflictError):
    code = "EMAIL_TAKEN"


class InvalidCredentialsError(AuthError):
    code = "INVALID_CREDENTIALS"
    status_code = 401


class AccountLockedError(PermissionDeniedError):
    code = "ACCOUNT_LOCKED"


def _lock_message(user: User) -> str:
    message = user.ban_reason or "Account locked by administrator"
    if user.ban_expires:
        message += f" (until {user.ban_expires.isoformat()})"
    return message


class AuthService:
    """Service for accounts and login sessions"""

    @staticmethod
    async def sign_up(
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER,
        organizer_name: Optional[str] = None,
    ) -> User:
        """
        Create an account. Organizers also get an inactive profile that an
        admin must approve before they can publish events.
        """
        if role not in SELF_SERVICE_ROLES:
            raise AuthError(f"Cannot sign up as {role.value}")

        email = email.strip().lower()
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise EmailTakenError("An account with this email already exists")

        user = User(name=name.strip(), email=email, password_hash=hash_password(password), role=role)
        if role == UserRole.ORGANIZER:
            user.organizer = Organizer(name=(organizer_name or name).strip(), is_active=False)

        db.add(user)
        await db.commit()
        logger.info(f"👤 New {role.value} account", extra={'user_id': user.id})
        return user

    @staticmethod
    async def sign_in(
        db: AsyncSession,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        if user.is_locked:
            raise AccountLockedError(_lock_message(user))

        session = UserSession(
            token=new_session_token(),
            user_id=user.id,
            expires_at=datetime.utcnow() + timedelta(days=settings.SESSION_DURATION_DAYS),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(session)
        await db.commit()
        logger.info("🔑 Signed in", extra={'user_id': user.id})
        return session

    @staticmethod
    async def sign_out(db: AsyncSession, token: str):
        await db.execute(delete(UserSession).where(UserSession.token == token))
        await db.commit()

    @staticmethod
    async def get_session_user(db: AsyncSession, token: str) -> Optional[User]:
        """User behind a live session token, or None"""
        query = (
            select(UserSession)
            .where(UserSession.token == token)
            .options(selectinload(UserSession.user).selectinload(User.organizer))
        )
        result = await db.execute(query)
        session = result.scalar_one_or_none()

        if not session:
            return None
        if session.is_expired:
            await db.delete(session)
            await db.commit()
            return None
        return session.user

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, **fields) -> User:
        for key in ("name", "phone"):
            if fields.get(key) is not None:
                setattr(user, key, fields[key].strip())
        await db.commit()
        return user

    @staticmethod
    async def update_organizer_profile(db: AsyncSession, user: User, **fields) -> Organizer:
        organizer = await AuthService._organizer_for(db, user)
        for key in ("name", "website", "address", "organizer_type"):
            if fields.get(key) is not None:
                setattr(organizer, key, fields[key])
        await db.commit()
        return organizer

    @staticmethod
    async def mark_rejection_seen(db: AsyncSession, user: User) -> Organizer:
        organizer = await AuthService._organizer_for(db, user)
        organizer.rejection_seen = True
        await db.commit()
        return organizer

    @staticmethod
    async def _organizer_for(db: AsyncSession, user: User) -> Organizer:
        organizer = await db.get(Organizer, user.id)
        if not organizer:
            raise NotFoundError("Organizer profile not found")
        return organizer
