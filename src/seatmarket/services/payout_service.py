"""
Organizer payout requests and their admin review
"""
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, List
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import ServiceError, NotFoundError, PermissionDeniedError, ConflictError, ValidationFailedError
from seatmarket.models import (
    User, UserRole, Event, ApprovalStatus, Order, OrderStatus, Ticket,
    PayoutRequest, PayoutStatus, CLOSED_PAYOUT_STATUSES,
)
from seatmarket.services.event_service import SOLD_TICKET_STATUSES
import logging

logger = logging.getLogger(__name__)

AMOUNT_PATTERN = re.compile(r"^[1-9][0-9]*$")
AGREEABLE_STATUSES = (PayoutStatus.PENDING, PayoutStatus.IN_DISCUSSION)
COMPLETING_STATUSES = (PayoutStatus.APPROVED, PayoutStatus.REJECTED)


class PayoutError(ServiceError):
    """Base exception for payout errors"""
    code = "PAYOUT_ERROR"


class PayoutNotFoundError(NotFoundError):
    code = "PAYOUT_NOT_FOUND"


class EventNotEndedError(PayoutError):
    code = "EVENT_NOT_ENDED"


class AmountExceedsRevenueError(PayoutError):
    code = "AMOUNT_EXCEEDS_REVENUE"


class ActivePayoutExistsError(ConflictError):
    code = "ACTIVE_PAYOUT_EXISTS"


def parse_amount(amount: Any) -> Decimal:
    """Requested amounts are positive whole numbers written as strings"""
    if not isinstance(amount, str) or not AMOUNT_PATTERN.match(amount):
        raise ValidationFailedError("Amount must be a positive integer", code="INVALID_AMOUNT")
    return Decimal(amount)


def _require(user: User, role: UserRole):
    if user.role != role:
        raise PermissionDeniedError(f"Only {role.value}s can perform this action")


def _page(items: List[Any], page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "items": items,
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit if total else 0,
    }


class PayoutService:
    """Service for payout requests"""

    @staticmethod
    async def event_revenue(db: AsyncSession, event_id: int) -> Decimal:
        """Sum of sold ticket prices in paid orders"""
        revenue = (
            await db.execute(
                select(func.coalesce(func.sum(Ticket.price), 0))
                .join(Order, Order.id == Ticket.order_id)
                .where(Ticket.event_id == event_id)
                .where(Order.status == OrderStatus.PAID)
                .where(Ticket.status.in_(SOLD_TICKET_STATUSES))
            )
        ).scalar()
        return Decimal(str(revenue))

    @staticmethod
    async def _has_active_request(db: AsyncSession, event_id: int) -> bool:
        count = (
            await db.execute(
                select(func.count(PayoutRequest.id))
                .where(PayoutRequest.event_id == event_id)
                .where(PayoutRequest.status.not_in(CLOSED_PAYOUT_STATUSES))
            )
        ).scalar()
        return count > 0

    @staticmethod
    async def _get(db: AsyncSession, request_id: int) -> PayoutRequest:
        query = (
            select(PayoutRequest)
            .where(PayoutRequest.id == request_id)
            .options(selectinload(PayoutRequest.event), selectinload(PayoutRequest.organizer))
        )
        payout = (await db.execute(query)).scalars().first()
        if not payout:
            raise PayoutNotFoundError(f"Payout request {request_id} not found")
        return payout

    @staticmethod
    async def _list(db: AsyncSession, filters: list, page: int, limit: int) -> Dict[str, Any]:
        total = (
            await db.execute(
                select(func.count(PayoutRequest.id))
                .join(Event, Event.id == PayoutRequest.event_id)
                .where(*filters)
            )
        ).scalar()
        query = (
            select(PayoutRequest)
            .join(Event, Event.id == PayoutRequest.event_id)
            .where(*filters)
            .options(selectinload(PayoutRequest.event), selectinload(PayoutRequest.organizer))
            .order_by(PayoutRequest.request_date.desc(), PayoutRequest.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list((await db.execute(query)).scalars().all())
        return _page(items, page, limit, total)

    # ==================== Organizer ====================

    @staticmethod
    async def create_payout_request(db: AsyncSession, user: User, event_id: int, amount: str) -> PayoutRequest:
        _require(user, UserRole.ORGANIZER)
        requested = parse_amount(amount)

        event = await db.get(Event, event_id)
        if not event:
            raise NotFoundError(f"Event {event_id} not found", code="EVENT_NOT_FOUND")
        if event.organizer_id != user.id:
            raise PermissionDeniedError("You don't own this event")
        if not event.has_ended:
            raise EventNotEndedError("Event has not ended yet")

        revenue = await PayoutService.event_revenue(db, event_id)
        if requested > revenue:
            raise AmountExceedsRevenueError("Requested amount exceeds event revenue")
        if await PayoutService._has_active_request(db, event_id):
            raise ActivePayoutExistsError("An active payout request already exists for this event")

        payout = PayoutRequest(
            event_id=event_id,
            organizer_id=user.id,
            requested_amount=requested,
            status=PayoutStatus.PENDING,
        )
        db.add(payout)
        await db.commit()
        logger.info(f"💸 Payout request {payout.id} for event {event_id}: {requested}", extra={'event_id': event_id, 'user_id': user.id})
        return await PayoutService._get(db, payout.id)

    @staticmethod
    async def list_organizer_requests(
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[PayoutStatus] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        _require(user, UserRole.ORGANIZER)
        filters = [PayoutRequest.organizer_id == user.id]
        if status:
            filters.append(PayoutRequest.status == status)
        if search and search.strip():
            filters.append(Event.name.ilike(f"%{search.strip()}%"))
        return await PayoutService._list(db, filters, page, limit)

    @staticmethod
    async def get_organizer_request(db: AsyncSession, user: User, request_id: int) -> PayoutRequest:
        _require(user, UserRole.ORGANIZER)
        payout = await PayoutService._get(db, request_id)
        if payout.organizer_id != user.id:
            raise PayoutNotFoundError("Payout request not found or does not belong to you")
        return payout

    @staticmethod
    async def cancel_payout_request(db: AsyncSession, user: User, request_id: int) -> PayoutRequest:
        payout = await PayoutService.get_organizer_request(db, user, request_id)
        if payout.status != PayoutStatus.PENDING:
            raise ConflictError("Only pending requests can be cancelled", code="PAYOUT_NOT_PENDING")

        payout.status = PayoutStatus.CANCELLED
        await db.commit()
        logger.info(f"❎ Payout request {request_id} cancelled", extra={'user_id': user.id})
        return payout

    @staticmethod
    async def eligible_events(db: AsyncSession, user: User) -> List[Dict[str, Any]]:
        """Approved, ended events without an active request, with their revenue"""
        _require(user, UserRole.ORGANIZER)
        active = (
            select(PayoutRequest.event_id)
            .where(PayoutRequest.status.not_in(CLOSED_PAYOUT_STATUSES))
        )
        query = (
            select(Event)
            .where(Event.organizer_id == user.id)
            .where(Event.approval_status == ApprovalStatus.APPROVED)
            .where(Event.end_time < datetime.utcnow())
            .where(Event.id.not_in(active))
            .order_by(Event.end_time.desc())
        )
        events = (await db.execute(query)).scalars().all()
        return [
            {"event": event, "revenue": await PayoutService.event_revenue(db, event.id)}
            for event in events
        ]

    # ==================== Admin ====================

    @staticmethod
    async def list_all_requests(
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        status: Optional[PayoutStatus] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        filters = []
        if status:
            filters.append(PayoutRequest.status == status)
        if search and search.strip():
            filters.append(Event.name.ilike(f"%{search.strip()}%"))
        return await PayoutService._list(db, filters, page, limit)

    @staticmethod
    async def get_request(db: AsyncSession, request_id: int) -> PayoutRequest:
        return await PayoutService._get(db, request_id)

    @staticmethod
    async def update_request(
        db: AsyncSession,
        request_id: int,
        status: Optional[PayoutStatus] = None,
        agreed_amount: Optional[Any] = None,
        proof_document_url: Optional[str] = None,
    ) -> PayoutRequest:
        payout = await PayoutService._get(db, request_id)

        if agreed_amount is not None:
            if payout.status not in AGREEABLE_STATUSES:
                raise ConflictError(
                    "Agreed amount can only be updated when status is pending or in discussion",
                    code="PAYOUT_LOCKED",
                )
            try:
                agreed = Decimal(str(agreed_amount))
            except InvalidOperation:
                raise ValidationFailedError("Agreed amount must be a number", code="INVALID_AMOUNT")
            if agreed < 0:
                raise ValidationFailedError("Agreed amount cannot be negative", code="INVALID_AMOUNT")
            if agreed > await PayoutService.event_revenue(db, payout.event_id):
                raise AmountExceedsRevenueError("Agreed amount cannot exceed event revenue")
            payout.agreed_amount = agreed

        if proof_document_url is not None:
            payout.proof_document_url = proof_document_url.strip() or None

        if status is not None:
            payout.status = status
            if status in COMPLETING_STATUSES:
                payout.completion_date = datetime.utcnow()

        await db.commit()
        logger.info(f"🧾 Payout request {request_id} updated (status: {payout.status.value})")
        return payout
