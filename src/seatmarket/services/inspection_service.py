"""
Door inspection: ticket lookup, check-in and offline scan upload
"""
from datetime import datetime
from typing import Dict, Any, List, Optional
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import ServiceError, PermissionDeniedError, ConflictError, ValidationFailedError
from seatmarket.core.metrics import ticket_inspections_total
from seatmarket.models import (
    User, UserRole, Event, ApprovalStatus, Order, Row, Seat, Ticket, TicketStatus,
    TicketInspection, InspectionStatus,
)
from seatmarket.services.order_service import ticket_view, TicketNotFoundError
from seatmarket.services.ticket_signing import verify_ticket_qr, InvalidTicketQRError
import logging

logger = logging.getLogger(__name__)


class InvalidQRError(ServiceError):
    code = "INVALID_QR"


class TicketNotActiveError(ConflictError):
    code = "TICKET_NOT_ACTIVE"


class TicketNotOwnedError(PermissionDeniedError):
    code = "TICKET_NOT_OWNED"


def _require_organizer(user: User):
    if user.role != UserRole.ORGANIZER:
        raise PermissionDeniedError("Only organizers can inspect tickets")


def _log(db: AsyncSession, inspector: User, scanned_id: int, ticket: Optional[Ticket],
         status: InspectionStatus, inspected_at: Optional[datetime] = None):
    db.add(TicketInspection(
        ticket_id=ticket.id if ticket else None,
        scanned_ticket_id=scanned_id,
        inspector_id=inspector.id,
        status=status,
        inspected_at=inspected_at or datetime.utcnow(),
    ))
    ticket_inspections_total.labels(status=status.value).inc()


class InspectionService:
    """Service for organizer-side ticket inspection"""

    @staticmethod
    async def _load_ticket(db: AsyncSession, ticket_id: int, for_update: bool = False) -> Optional[Ticket]:
        query = (
            select(Ticket)
            .where(Ticket.id == ticket_id)
            .options(
                selectinload(Ticket.seat).selectinload(Seat.row).selectinload(Row.area),
                selectinload(Ticket.event),
                selectinload(Ticket.order).selectinload(Order.user),
            )
        )
        if for_update:
            query = query.with_for_update(of=Ticket)
        return (await db.execute(query)).scalars().first()

    @staticmethod
    def _check_owner(inspector: User, ticket: Ticket):
        if ticket.event.organizer_id != inspector.id:
            raise TicketNotOwnedError("Ticket does not belong to your events")

    @staticmethod
    async def inspect_ticket(db: AsyncSession, inspector: User, ticket_id: int) -> Dict[str, Any]:
        """Ticket details without changing its status. The lookup is logged."""
        _require_organizer(inspector)
        ticket = await InspectionService._load_ticket(db, ticket_id)
        if not ticket:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        InspectionService._check_owner(inspector, ticket)

        status = InspectionStatus.VALID if ticket.status == TicketStatus.ACTIVE else InspectionStatus.INVALID
        _log(db, inspector, ticket_id, ticket, status)
        await db.commit()

        return ticket_view(ticket, ticket.order.user.name)

    @staticmethod
    async def check_in_ticket(
        db: AsyncSession, inspector: User, ticket_id: Optional[int] = None, qr_data: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Mark an active ticket used. The ticket row is locked for the
        duration so two scanners cannot both admit it.

        Returns {"ticket": ..., "duplicate": bool}
        """
        _require_organizer(inspector)
        if qr_data:
            try:
                payload = verify_ticket_qr(qr_data)
            except InvalidTicketQRError as e:
                logger.warning(f"🎫 Rejected QR scan: {e}", extra={'user_id': inspector.id})
                raise InvalidQRError("Invalid ticket QR code")
            if ticket_id is not None and payload.get("ticket_id") != ticket_id:
                raise InvalidQRError("QR code does not match the ticket id")
            ticket_id = payload.get("ticket_id")
        if not isinstance(ticket_id, int) or isinstance(ticket_id, bool):
            raise ValidationFailedError("A ticket id or QR code is required")

        try:
            ticket = await InspectionService._load_ticket(db, ticket_id, for_update=True)
            if not ticket:
                _log(db, inspector, ticket_id, None, InspectionStatus.INVALID)
                await db.commit()
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")
            InspectionService._check_owner(inspector, ticket)

            if ticket.status == TicketStatus.USED:
                _log(db, inspector, ticket_id, ticket, InspectionStatus.DUPLICATE)
                await db.commit()
                logger.warning(f"🔁 Duplicate check-in for ticket {ticket_id}", extra={'ticket_id': ticket_id})
                return {"ticket": ticket_view(ticket, ticket.order.user.name), "duplicate": True}

            if ticket.status != TicketStatus.ACTIVE:
                _log(db, inspector, ticket_id, ticket, InspectionStatus.INVALID)
                await db.commit()
                raise TicketNotActiveError(f"Ticket is not active (status: {ticket.status.value})")

            ticket.status = TicketStatus.USED
            _log(db, inspector, ticket_id, ticket, InspectionStatus.VALID)
            await db.commit()
        except ServiceError:
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"✅ Ticket {ticket_id} checked in",
            extra={'ticket_id': ticket_id, 'event_id': ticket.event_id, 'user_id': inspector.id},
        )
        return {"ticket": ticket_view(ticket, ticket.order.user.name), "duplicate": False}

    @staticmethod
    async def process_offline_inspections(
        db: AsyncSession, inspector: User, inspections: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Store scans made without connectivity, all or nothing"""
        _require_organizer(inspector)
        if not isinstance(inspections, list):
            raise ValidationFailedError("Inspections must be an array")

        for item in inspections:
            ticket_id, timestamp = item.get("ticket_id"), item.get("timestamp_ms")
            if (not isinstance(ticket_id, int) or isinstance(ticket_id, bool) or ticket_id < 1
                    or not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool)):
                raise ValidationFailedError("Each inspection must have a valid ticket_id and timestamp_ms")

        ticket_ids = {item["ticket_id"] for item in inspections}
        owned = {}
        if ticket_ids:
            rows = await db.execute(
                select(Ticket.id, Event.organizer_id)
                .join(Event, Event.id == Ticket.event_id)
                .where(Ticket.id.in_(ticket_ids))
            )
            owned = dict(rows.all())
        for ticket_id in ticket_ids:
            if ticket_id not in owned:
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")
            if owned[ticket_id] != inspector.id:
                raise TicketNotOwnedError(f"Ticket {ticket_id} does not belong to your events")

        for item in inspections:
            db.add(TicketInspection(
                ticket_id=item["ticket_id"],
                scanned_ticket_id=item["ticket_id"],
                inspector_id=inspector.id,
                status=InspectionStatus.OFFLINE,
                inspected_at=datetime.utcfromtimestamp(item["timestamp_ms"] / 1000),
            ))
        if inspections:
            await db.commit()
            ticket_inspections_total.labels(status=InspectionStatus.OFFLINE.value).inc(len(inspections))

        logger.info(f"📥 {len(inspections)} offline inspections processed", extra={'user_id': inspector.id})
        return {"processed": len(inspections), "message": f"{len(inspections)} offline inspections processed."}

    @staticmethod
    async def active_events(db: AsyncSession, inspector: User) -> List[Event]:
        """Approved events that have not ended yet"""
        _require_organizer(inspector)
        query = (
            select(Event)
            .where(Event.organizer_id == inspector.id)
            .where(Event.approval_status == ApprovalStatus.APPROVED)
            .where(Event.end_time > datetime.utcnow())
            .order_by(Event.start_time)
        )
        return list((await db.execute(query)).scalars().all())
