"""
Checkout service: seat holds, pending orders and payment settlement
"""
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Dict, Any, Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.config import settings
from seatmarket.core.errors import ServiceError, NotFoundError, PermissionDeniedError, ConflictError
from seatmarket.core.metrics import (
    checkout_duration_seconds, payment_return_duration_seconds, track_time,
    orders_created_total, orders_paid_total, orders_failed_total, orders_cancelled_total,
    tickets_issued_total,
)
from seatmarket.models import (
    User, UserRole, Area, Row, Seat, Order, OrderStatus, SeatHold, Ticket, TicketStatus,
)
from seatmarket.services import payment_gateway
from seatmarket.services.cache_service import CacheService
from seatmarket.services.event_service import EventService, SOLD_TICKET_STATUSES
from seatmarket.services.websocket_manager import manager
import logging

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")


class CheckoutError(ServiceError):
    """Base exception for checkout errors"""
    code = "CHECKOUT_ERROR"


class CustomerOnlyError(PermissionDeniedError):
    code = "CUSTOMER_ONLY"


class EventNotOnSaleError(CheckoutError):
    code = "EVENT_NOT_ON_SALE"


class SeatsUnavailableError(ConflictError):
    """Raised when requested seats are sold or held by someone else"""
    code = "SEATS_UNAVAILABLE"

    def __init__(self, message: str, seat_ids: Optional[List[int]] = None):
        super().__init__(message)
        self.seat_ids = seat_ids or []


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


class OrderUserMismatchError(PermissionDeniedError):
    code = "ORDER_USER_MISMATCH"


class OrderNotPendingError(ConflictError):
    code = "ORDER_NOT_PENDING"


class InvalidPaymentSignatureError(CheckoutError):
    code = "INVALID_SIGNATURE"


def _require_customer(user: User):
    if user.role != UserRole.CUSTOMER:
        raise CustomerOnlyError("Only customers can purchase tickets")


def _payment_result(order: Order, tickets: List[Ticket], error_code: str = None, error_message: str = None):
    return {
        "success": error_code is None,
        "order_id": order.id,
        "order_status": order.status,
        "ticket_count": len(tickets),
        "total_amount": order.total_amount,
        "tickets": tickets,
        "error": {"code": error_code, "message": error_message} if error_code else None,
    }


class CheckoutService:
    """Service for the hold -> pay -> ticket flow"""

    @staticmethod
    async def get_ticket_data(db: AsyncSession, user: User, event_id: int) -> Dict[str, Any]:
        """Event, its seating and current availability for the seat picker"""
        _require_customer(user)
        event = await EventService.get_event(db, event_id)
        if not event.is_on_sale:
            raise EventNotOnSaleError("Event is not currently on sale")

        return {
            "event": event,
            "areas": await EventService.get_seating_structure(db, event_id),
            "seat_status": await EventService.get_seat_status(db, event_id),
        }

    @staticmethod
    async def unavailable_seat_ids(db: AsyncSession, event_id: int, seat_ids: List[int]) -> List[int]:
        sold = (
            await db.execute(
                select(Ticket.seat_id)
                .where(Ticket.seat_id.in_(seat_ids))
                .where(Ticket.status.in_(SOLD_TICKET_STATUSES))
            )
        ).scalars().all()
        held = (
            await db.execute(
                select(SeatHold.seat_id)
                .where(SeatHold.event_id == event_id)
                .where(SeatHold.seat_id.in_(seat_ids))
                .where(SeatHold.is_paid == False)  # noqa: E712
                .where(SeatHold.expires_at > datetime.utcnow())
            )
        ).scalars().all()
        return sorted(set(sold) | set(held))

    @staticmethod
    async def create_pending_order(
        db: AsyncSession,
        user: User,
        event_id: int,
        seat_ids: List[int],
        client_ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Hold the seats and open a pending order with a signed payment URL.

        Seat rows are locked FOR UPDATE NOWAIT so two buyers racing for the
        same seat cannot both pass the availability check.

        Cache invalidation:
        - Deletes event:{event_id}:seats
        """
        start_time = time.time()
        _require_customer(user)

        if not seat_ids:
            raise CheckoutError("At least one seat must be selected")
        if len(set(seat_ids)) != len(seat_ids):
            raise CheckoutError("Duplicate seats in request")

        event = await EventService.get_event(db, event_id)
        if not event.is_on_sale:
            raise EventNotOnSaleError("Event is not currently on sale")

        limit = event.max_tickets_by_order or settings.MAX_SEATS_PER_ORDER
        if len(seat_ids) > limit:
            raise CheckoutError(f"Cannot buy more than {limit} tickets in one order")

        try:
            seats_query = (
                select(Seat, Row, Area)
                .join(Row, Seat.row_id == Row.id)
                .join(Area, Row.area_id == Area.id)
                .where(Seat.id.in_(seat_ids))
                .where(Area.event_id == event_id)
                .with_for_update(nowait=True, of=Seat)
            )
            try:
                rows = (await db.execute(seats_query)).all()
            except DBAPIError:
                raise SeatsUnavailableError(
                    "One or more seats are being booked by another user", seat_ids
                )

            found = {seat.id for seat, _, _ in rows}
            missing = sorted(set(seat_ids) - found)
            if missing:
                raise CheckoutError(f"Seats {missing} do not belong to this event", code="INVALID_SEATS")

            unavailable = await CheckoutService.unavailable_seat_ids(db, event_id, seat_ids)
            if unavailable:
                raise SeatsUnavailableError(f"Seats {unavailable} are not available", unavailable)

            total_amount = sum((Decimal(area.price) for _, _, area in rows), Decimal("0"))
            expires_at = datetime.utcnow() + timedelta(minutes=settings.HOLD_DURATION_MINUTES)

            order = Order(
                user_id=user.id,
                event_id=event_id,
                total_amount=total_amount,
                status=OrderStatus.PENDING,
                expires_at=expires_at,
            )
            db.add(order)
            await db.flush()

            txn_ref = payment_gateway.order_txn_ref(order.id)
            order.payment_metadata = {"provider": "vnpay", "txn_ref": txn_ref}

            for seat, _, _ in rows:
                db.add(SeatHold(
                    event_id=event_id,
                    user_id=user.id,
                    order_id=order.id,
                    seat_id=seat.id,
                    expires_at=expires_at,
                ))

            payment_url = payment_gateway.build_payment_url(
                txn_ref=txn_ref,
                amount=total_amount,
                order_info=f"Tickets for {event.name} (order {order.id})",
                client_ip=client_ip,
                expires_in_seconds=settings.HOLD_DURATION_MINUTES * 60,
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        orders_created_total.inc()
        checkout_duration_seconds.observe(time.time() - start_time)
        logger.info(
            f"🛒 Pending order {order.id} holds {len(seat_ids)} seats",
            extra={'order_id': order.id, 'event_id': event_id, 'user_id': user.id},
        )

        await CacheService.invalidate_event_seats(event_id)
        await manager.broadcast_seat_update(event_id, sorted(seat_ids), "held", order.id)

        return {
            "payment_url": payment_url,
            "order_id": order.id,
            "total_amount": total_amount,
            "hold_expires": expires_at,
            "seats": [
                {
                    "seat_id": seat.id,
                    "seat_number": seat.seat_number,
                    "row_name": row.row_name,
                    "area_name": area.name,
                    "price": area.price,
                }
                for seat, row, area in rows
            ],
        }

    @staticmethod
    async def _load_tickets(db: AsyncSession, order_id: int) -> List[Ticket]:
        query = (
            select(Ticket)
            .where(Ticket.order_id == order_id)
            .options(selectinload(Ticket.seat).selectinload(Seat.row).selectinload(Row.area))
            .order_by(Ticket.id)
        )
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def _fail_order(db: AsyncSession, order: Order, reason: str, gateway: Dict[str, Any]):
        """Mark the order failed and free its seats"""
        order.status = OrderStatus.FAILED
        order.expires_at = None
        order.payment_metadata = {**(order.payment_metadata or {}), "failure": reason, "response": _jsonable(gateway)}
        released = (
            await db.execute(select(SeatHold.seat_id).where(SeatHold.order_id == order.id))
        ).scalars().all()
        await db.execute(delete(SeatHold).where(SeatHold.order_id == order.id))
        await db.commit()

        orders_failed_total.labels(reason=reason).inc()
        logger.warning(f"💳 Order {order.id} failed: {reason}", extra={'order_id': order.id})
        await CacheService.invalidate_event_seats(order.event_id)
        if released:
            await manager.broadcast_seat_update(order.event_id, sorted(released), "released", order.id)

    @staticmethod
    @track_time(payment_return_duration_seconds)
    async def process_payment_return(db: AsyncSession, user: User, query: Dict[str, Any]) -> Dict[str, Any]:
        """
        Settle a pending order from the gateway's signed return.

        A repeated successful return for a paid order returns the tickets
        already issued.
        """
        try:
            gateway = payment_gateway.verify_return(query)
        except payment_gateway.InvalidSignatureError as e:
            logger.warning(f"💳 Rejected payment return: {e}")
            raise InvalidPaymentSignatureError("Payment verification failed")

        txn_ref = gateway["txn_ref"] or ""
        order = await db.get(Order, int(txn_ref)) if txn_ref.isdigit() else None
        if not order or order.txn_ref != txn_ref:
            raise OrderNotFoundError("Order not found for this transaction")
        if order.user_id != user.id:
            raise OrderUserMismatchError("This order belongs to another user")

        if order.status == OrderStatus.PAID:
            tickets = await CheckoutService._load_tickets(db, order.id)
            if gateway["is_success"]:
                return _payment_result(order, tickets)
            return _payment_result(order, tickets, "PAYMENT_FAILED", "Payment was not successful")

        if order.status != OrderStatus.PENDING:
            raise OrderNotPendingError(f"Order is {order.status.value}")

        if not gateway["is_success"]:
            await CheckoutService._fail_order(db, order, "PAYMENT_FAILED", gateway)
            return _payment_result(order, [], "PAYMENT_FAILED", "Payment was not successful")

        if abs(gateway["amount"] - Decimal(order.total_amount)) > AMOUNT_TOLERANCE:
            await CheckoutService._fail_order(db, order, "AMOUNT_MISMATCH", gateway)
            return _payment_result(order, [], "AMOUNT_MISMATCH", "Paid amount does not match the order total")

        if order.is_expired:
            await CheckoutService._fail_order(db, order, "ORDER_EXPIRED", gateway)
            return _payment_result(order, [], "ORDER_EXPIRED", "The seat hold expired before payment completed")

        try:
            hold_rows = (
                await db.execute(
                    select(SeatHold, Area.price)
                    .join(Seat, SeatHold.seat_id == Seat.id)
                    .join(Row, Seat.row_id == Row.id)
                    .join(Area, Row.area_id == Area.id)
                    .where(SeatHold.order_id == order.id)
                    .with_for_update(of=SeatHold)
                )
            ).all()

            order.status = OrderStatus.PAID
            order.expires_at = None
            order.payment_metadata = {**(order.payment_metadata or {}), "response": _jsonable(gateway)}

            for hold, price in hold_rows:
                hold.is_confirmed = True
                hold.is_paid = True
                db.add(Ticket(
                    order_id=order.id,
                    event_id=order.event_id,
                    seat_id=hold.seat_id,
                    price=price,
                    status=TicketStatus.ACTIVE,
                ))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            order = await db.get(Order, order.id)
            await CheckoutService._fail_order(db, order, "SEATS_ALREADY_SOLD", gateway)
            return _payment_result(order, [], "SEATS_ALREADY_SOLD", "Some seats were sold to another order")

        orders_paid_total.inc()
        tickets_issued_total.inc(len(hold_rows))
        logger.info(
            f"💰 Order {order.id} paid, issued {len(hold_rows)} tickets",
            extra={'order_id': order.id, 'event_id': order.event_id, 'user_id': user.id},
        )

        await CacheService.invalidate_event_seats(order.event_id)
        await manager.broadcast_seat_update(
            order.event_id, sorted(hold.seat_id for hold, _ in hold_rows), "sold", order.id
        )

        tickets = await CheckoutService._load_tickets(db, order.id)
        return _payment_result(order, tickets)

    @staticmethod
    async def cancel_pending_order(db: AsyncSession, user: User, order_id: int) -> Order:
        order = await db.get(Order, order_id)
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found")
        if order.user_id != user.id:
            raise OrderUserMismatchError("This order belongs to another user")
        if order.status != OrderStatus.PENDING:
            raise OrderNotPendingError(f"Order is {order.status.value}, only pending orders can be cancelled")

        released = (
            await db.execute(select(SeatHold.seat_id).where(SeatHold.order_id == order.id))
        ).scalars().all()
        order.status = OrderStatus.CANCELLED
        order.expires_at = None
        await db.execute(delete(SeatHold).where(SeatHold.order_id == order.id))
        await db.commit()

        orders_cancelled_total.labels(source="customer").inc()
        logger.info(f"❎ Order {order.id} cancelled by customer", extra={'order_id': order.id})
        await CacheService.invalidate_event_seats(order.event_id)
        await manager.broadcast_seat_update(order.event_id, sorted(released), "released", order.id)
        return order


def _jsonable(gateway: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in gateway.items()}
