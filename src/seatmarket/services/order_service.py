"""
Customer order history and issued tickets
"""
from typing import Dict, Any, List
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import NotFoundError
from seatmarket.models import User, Event, Order, Row, Seat, Ticket, TicketStatus
from seatmarket.services.ticket_signing import build_ticket_payload, sign_ticket_qr


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


class TicketNotFoundError(NotFoundError):
    code = "TICKET_NOT_FOUND"


def _ticket_options():
    return (
        selectinload(Ticket.seat).selectinload(Seat.row).selectinload(Row.area),
        selectinload(Ticket.event),
    )


def ticket_view(ticket: Ticket, visitor_name: str) -> Dict[str, Any]:
    """Ticket with seat labels, plus signed QR data while it is active"""
    seat = ticket.seat
    row = seat.row
    qr_data = None
    if ticket.status == TicketStatus.ACTIVE:
        qr_data = sign_ticket_qr(build_ticket_payload(ticket, visitor_name))
    return {
        "id": ticket.id,
        "order_id": ticket.order_id,
        "event_id": ticket.event_id,
        "event_name": ticket.event.name if ticket.event else None,
        "seat_id": seat.id,
        "seat_number": seat.seat_number,
        "row_name": row.row_name,
        "area_name": row.area.name,
        "price": ticket.price,
        "status": ticket.status,
        "purchased_at": ticket.purchased_at,
        "qr_data": qr_data,
    }


def _page(items: List[Any], page: int, limit: int, total: int) -> Dict[str, Any]:
    return {"items": items, "page": page, "limit": limit, "total": total}


class OrderService:
    """Read-side service for a customer's orders and tickets"""

    @staticmethod
    async def list_orders(db: AsyncSession, user: User, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Newest first, with event name and ticket count"""
        total = (
            await db.execute(select(func.count(Order.id)).where(Order.user_id == user.id))
        ).scalar()

        ticket_counts = (
            select(Ticket.order_id, func.count(Ticket.id).label("ticket_count"))
            .group_by(Ticket.order_id)
            .subquery()
        )
        query = (
            select(Order, Event.name, func.coalesce(ticket_counts.c.ticket_count, 0))
            .join(Event, Event.id == Order.event_id)
            .outerjoin(ticket_counts, ticket_counts.c.order_id == Order.id)
            .where(Order.user_id == user.id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await db.execute(query)).all()
        items = [
            {
                "id": order.id,
                "event_id": order.event_id,
                "event_name": event_name,
                "order_date": order.order_date,
                "total_amount": order.total_amount,
                "status": order.status,
                "ticket_count": ticket_count,
            }
            for order, event_name, ticket_count in rows
        ]
        return _page(items, page, limit, total)

    @staticmethod
    async def get_order_details(db: AsyncSession, user: User, order_id: int) -> Dict[str, Any]:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .options(
                selectinload(Order.event),
                selectinload(Order.tickets).options(*_ticket_options()),
            )
        )
        order = (await db.execute(query)).scalars().first()
        if not order or order.user_id != user.id:
            raise OrderNotFoundError(f"Order {order_id} not found")

        return {
            "id": order.id,
            "status": order.status,
            "order_date": order.order_date,
            "total_amount": order.total_amount,
            "expires_at": order.expires_at,
            "time_remaining_seconds": order.time_remaining_seconds,
            "event": order.event,
            "tickets": [ticket_view(t, user.name) for t in sorted(order.tickets, key=lambda t: t.id)],
        }

    @staticmethod
    async def list_tickets(db: AsyncSession, user: User, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        base = select(Ticket).join(Order, Order.id == Ticket.order_id).where(Order.user_id == user.id)
        total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar()

        query = (
            base.options(*_ticket_options())
            .order_by(Ticket.purchased_at.desc(), Ticket.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        tickets = (await db.execute(query)).scalars().all()
        return _page([ticket_view(t, user.name) for t in tickets], page, limit, total)

    @staticmethod
    async def get_ticket_details(db: AsyncSession, user: User, ticket_id: int) -> Dict[str, Any]:
        query = (
            select(Ticket)
            .join(Order, Order.id == Ticket.order_id)
            .where(Ticket.id == ticket_id)
            .where(Order.user_id == user.id)
            .options(*_ticket_options())
        )
        ticket = (await db.execute(query)).scalars().first()
        if not ticket:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket_view(ticket, user.name)
