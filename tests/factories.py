"""Test data builders"""
from datetime import datetime, timedelta
from decimal import Decimal

from fastapi import WebSocketDisconnect
from sqlalchemy import select

from seatmarket.core.security import hash_password, new_session_token
from seatmarket.services import payment_gateway
from seatmarket.services.checkout_service import CheckoutService
from seatmarket.models import (
    User, UserRole, Organizer, UserSession, Event, ApprovalStatus, Area, Row, Seat,
)

PASSWORD = "password123"


async def create_user(db, role=UserRole.CUSTOMER, email=None, name="Test User", active_organizer=True):
    user = User(
        name=name,
        email=email or f"{role.value}-{new_session_token()[:8]}@example.com".lower(),
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    if role == UserRole.ORGANIZER:
        user.organizer = Organizer(name=f"{name} Org", is_active=active_organizer)
    db.add(user)
    await db.commit()
    return user


async def login(db, user) -> dict:
    """Authorization header for a fresh session"""
    session = UserSession(
        token=new_session_token(),
        user_id=user.id,
        expires_at=datetime.utcnow() + timedelta(days=1),
    )
    db.add(session)
    await db.commit()
    return {"Authorization": f"Bearer {session.token}"}


async def create_event(
    db,
    organizer,
    name="Test Concert",
    status=ApprovalStatus.APPROVED,
    ended=False,
    rows=2,
    seats_per_row=5,
    price="100000",
    max_tickets_by_order=None,
):
    """Event with one area; on sale now unless it has ended"""
    now = datetime.utcnow()
    if ended:
        start, end = now - timedelta(days=2), now - timedelta(days=1)
        sale_start, sale_end = now - timedelta(days=10), now - timedelta(days=2)
    else:
        start, end = now + timedelta(days=10), now + timedelta(days=10, hours=3)
        sale_start, sale_end = now - timedelta(days=1), now + timedelta(days=9)

    event = Event(
        name=name,
        slug=f"{name.lower().replace(' ', '-')}-{new_session_token()[:6].lower()}",
        start_time=start,
        end_time=end,
        ticket_sale_start=sale_start,
        ticket_sale_end=sale_end,
        location="Ho Chi Minh City",
        type="concert",
        max_tickets_by_order=max_tickets_by_order,
        approval_status=status,
        organizer_id=organizer.id,
    )
    area = Area(name="Floor", price=Decimal(price))
    for r in range(rows):
        row = Row(row_name=chr(65 + r))
        row.seats = [Seat(seat_number=str(n)) for n in range(1, seats_per_row + 1)]
        area.rows.append(row)
    event.areas.append(area)
    db.add(event)
    await db.commit()
    return event


async def seat_ids(db, event_id):
    result = await db.execute(
        select(Seat.id).join(Row).join(Area).where(Area.event_id == event_id).order_by(Seat.id)
    )
    return list(result.scalars().all())


def gateway_return(order_id, amount, response_code="00"):
    """Signed query string the payment gateway sends back to the return URL"""
    query = {
        "vnp_TxnRef": payment_gateway.order_txn_ref(order_id),
        "vnp_Amount": str(payment_gateway.to_minor_units(Decimal(amount))),
        "vnp_ResponseCode": response_code,
        "vnp_TransactionNo": f"14{order_id:06d}",
        "vnp_BankCode": "NCB",
    }
    query["vnp_SecureHash"] = payment_gateway.sign_params(query)
    return query


async def purchase(db, buyer, event, count=1):
    """Hold and pay for the first free seats; returns the issued tickets"""
    seats = await seat_ids(db, event.id)
    taken = await CheckoutService.unavailable_seat_ids(db, event.id, seats)
    chosen = [s for s in seats if s not in taken][:count]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, chosen)
    result = await CheckoutService.process_payment_return(
        db, buyer, gateway_return(order["order_id"], order["total_amount"])
    )
    return result["tickets"]


async def end_event(db, event):
    """Move an event's schedule into the past"""
    now = datetime.utcnow()
    event.start_time, event.end_time = now - timedelta(days=2), now - timedelta(days=1)
    event.ticket_sale_start, event.ticket_sale_end = now - timedelta(days=10), now - timedelta(days=2)
    await db.commit()
    return event


class FakeSocket:
    """Records sent JSON and replays queued client frames, then disconnects"""

    def __init__(self, incoming=()):
        self.incoming = list(incoming)
        self.sent = []
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        self.sent.append(message)

    async def receive_text(self):
        if not self.incoming:
            raise WebSocketDisconnect(code=1000)
        return self.incoming.pop(0)

    def updates(self, status=None):
        return [m for m in self.sent if m["type"] == "seat_update" and (status is None or m["status"] == status)]
