"""
Admin moderation and dashboard service
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import ServiceError, NotFoundError, PermissionDeniedError
from seatmarket.models import (
    User, UserRole, Organizer, UserSession, Event,
    Order, OrderStatus, PayoutRequest, PayoutStatus,
)
import logging

logger = logging.getLogger(__name__)

DEFAULT_LOCK_REASON = "Account locked by administrator"


class AdminError(ServiceError):
    """Base exception for admin operations"""
    code = "ADMIN_ERROR"


class AdminService:
    """Organizer approval, account locks and platform statistics"""

    @staticmethod
    async def list_users(
        db: AsyncSession,
        role: Optional[UserRole] = None,
        banned: Optional[bool] = None,
        q: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ):
        query = select(User)
        count_query = select(func.count(User.id))
        filters = []
        if role:
            filters.append(User.role == role)
        if banned is not None:
            filters.append(User.banned == banned)
        if q:
            pattern = f"%{q}%"
            filters.append(User.name.ilike(pattern) | User.email.ilike(pattern))
        if filters:
            query = query.where(*filters)
            count_query = count_query.where(*filters)

        total = (await db.execute(count_query)).scalar()
        query = query.order_by(User.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
        users = (await db.execute(query)).scalars().all()
        return list(users), total

    @staticmethod
    async def list_pending_organizers(db: AsyncSession) -> List[Organizer]:
        query = (
            select(Organizer)
            .where(Organizer.is_active == False)  # noqa: E712
            .where(Organizer.rejected_at.is_(None))
            .order_by(Organizer.created_at)
        )
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def approve_organizer(db: AsyncSession, user_id: int) -> Organizer:
        organizer = await db.get(Organizer, user_id)
        if not organizer:
            raise NotFoundError(f"Organizer {user_id} not found")

        organizer.is_active = True
        organizer.rejection_reason = None
        organizer.rejected_at = None
        organizer.rejection_seen = False
        await db.commit()
        logger.info(f"✅ Organizer {user_id} approved")
        return organizer

    @staticmethod
    async def reject_organizer(db: AsyncSession, user_id: int, reason: str) -> Organizer:
        organizer = await db.get(Organizer, user_id)
        if not organizer:
            raise NotFoundError(f"Organizer {user_id} not found")

        organizer.is_active = False
        organizer.rejection_reason = reason
        organizer.rejected_at = datetime.utcnow()
        organizer.rejection_seen = False
        await db.commit()
        logger.info(f"🚫 Organizer {user_id} rejected")
        return organizer

    @staticmethod
    async def set_user_lock(
        db: AsyncSession,
        user_id: int,
        banned: bool,
        reason: Optional[str] = None,
        expires: Optional[datetime] = None,
    ) -> User:
        """
        Lock or unlock an account.

        Admins cannot be locked. A lock expiry must lie in the future.
        Locking also ends every session the user holds.
        """
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        if banned:
            if user.role == UserRole.ADMIN:
                raise PermissionDeniedError("Administrators cannot be locked", code="CANNOT_LOCK_ADMIN")
            if expires is not None and expires <= datetime.utcnow():
                raise AdminError("Lock expiry must be in the future", code="INVALID_BAN_EXPIRY")

            user.banned = True
            user.ban_reason = (reason or "").strip() or DEFAULT_LOCK_REASON
            user.ban_expires = expires
            await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
            logger.info(f"🔒 User {user_id} locked", extra={'user_id': user_id})
        else:
            user.banned = False
            user.ban_reason = None
            user.ban_expires = None
            logger.info(f"🔓 User {user_id} unlocked", extra={'user_id': user_id})

        await db.commit()
        return user

    @staticmethod
    async def stats(db: AsyncSession) -> Dict[str, Any]:
        users_by_role = {
            role.value: count
            for role, count in (await db.execute(select(User.role, func.count(User.id)).group_by(User.role))).all()
        }
        banned = (await db.execute(select(func.count(User.id)).where(User.banned == True))).scalar()  # noqa: E712

        events_by_status = {
            status.value: count
            for status, count in (
                await db.execute(select(Event.approval_status, func.count(Event.id)).group_by(Event.approval_status))
            ).all()
        }

        paid_orders, revenue = (
            await db.execute(
                select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
                .where(Order.status == OrderStatus.PAID)
            )
        ).one()

        pending_payouts = (
            await db.execute(select(func.count(PayoutRequest.id)).where(PayoutRequest.status == PayoutStatus.PENDING))
        ).scalar()
        pending_organizers = len(await AdminService.list_pending_organizers(db))

        return {
            "users_by_role": users_by_role,
            "banned_users": banned,
            "events_by_status": events_by_status,
            "paid_orders": paid_orders,
            "gross_revenue": Decimal(str(revenue)),
            "pending_payouts": pending_payouts,
            "pending_organizers": pending_organizers,
        }

    @staticmethod
    async def revenue_by_month(db: AsyncSession, months: int = 6) -> List[Dict[str, Any]]:
        """Paid order revenue for the last `months` calendar months, oldest first"""
        now = datetime.utcnow()
        year, month = now.year, now.month
        buckets = []
        for _ in range(months):
            buckets.append((year, month))
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        buckets.reverse()

        start = datetime(buckets[0][0], buckets[0][1], 1)
        result = await db.execute(
            select(Order.order_date, Order.total_amount)
            .where(Order.status == OrderStatus.PAID)
            .where(Order.order_date >= start)
        )

        totals = {bucket: Decimal("0") for bucket in buckets}
        for order_date, amount in result.all():
            key = (order_date.year, order_date.month)
            if key in totals:
                totals[key] += Decimal(str(amount))

        return [
            {"month": f"{y:04d}-{m:02d}", "revenue": totals[(y, m)]}
            for y, m in buckets
        ]
