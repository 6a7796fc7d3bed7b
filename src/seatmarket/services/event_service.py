"""
Event service with Redis-cached seat status
"""
import re
import unicodedata
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import (
    ServiceError, NotFoundError, PermissionDeniedError, ConflictError, ValidationFailedError,
)
from seatmarket.models import (
    User, UserRole, Organizer, Event, ApprovalStatus, Area, Row, Seat,
    Order, OrderStatus, SeatHold, Ticket, TicketStatus, Rating,
)
from seatmarket.seatmap.grid import row_label
from seatmarket.services.cache_service import CacheService
from seatmarket.services.seat_map_service import SeatMapService
import logging

logger = logging.getLogger(__name__)

SOLD_TICKET_STATUSES = (TicketStatus.ACTIVE, TicketStatus.USED)
DATE_FILTERS = ("today", "this_week", "upcoming")


class EventServiceError(ServiceError):
    """Base exception for event service errors"""
    code = "EVENT_ERROR"


class EventNotFoundError(NotFoundError):
    code = "EVENT_NOT_FOUND"


class OrganizerInactiveError(PermissionDeniedError):
    code = "ORGANIZER_NOT_APPROVED"


class EventHasOrdersError(ConflictError):
    code = "EVENT_HAS_ORDERS"


def slugify(value: str) -> str:
    """ASCII, lower-case, hyphen separated"""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value).strip("-").lower()
    return value or "event"


def validate_schedule(data: Dict[str, Any]):
    """Timing rules shared by create and update"""
    start, end = data.get("start_time"), data.get("end_time")
    if start and end and end <= start:
        raise ValidationFailedError("Event end time must be after its start time")

    sale_start, sale_end = data.get("ticket_sale_start"), data.get("ticket_sale_end")
    if sale_start and sale_end and sale_end <= sale_start:
        raise ValidationFailedError("Ticket sale end must be after ticket sale start")
    if sale_end and end and sale_end > end:
        raise ValidationFailedError("Ticket sales must close before the event ends")

    max_tickets = data.get("max_tickets_by_order")
    if max_tickets is not None and max_tickets < 1:
        raise ValidationFailedError("max_tickets_by_order must be at least 1")


class EventService:
    """Service for events, their inventory and seat availability"""

    EVENT_FIELDS = (
        "name", "description", "start_time", "end_time", "location", "type",
        "ticket_sale_start", "ticket_sale_end", "max_tickets_by_order",
        "poster_url", "banner_url",
    )

    # ==================== Lookups ====================

    @staticmethod
    async def get_event(db: AsyncSession, event_id: int) -> Event:
        event = await db.get(Event, event_id)
        if not event:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    @staticmethod
    async def get_owned_event(db: AsyncSession, user: User, event_id: int) -> Event:
        """Event owned by the organizer (admins may access any event)"""
        event = await EventService.get_event(db, event_id)
        if user.role != UserRole.ADMIN and event.organizer_id != user.id:
            raise PermissionDeniedError("You do not own this event")
        return event

    @staticmethod
    async def _unique_slug(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> str:
        base = slugify(name)[:150]
        slug, suffix = base, 1
        while True:
            query = select(Event.id).where(Event.slug == slug)
            if exclude_id:
                query = query.where(Event.id != exclude_id)
            if (await db.execute(query)).scalar_one_or_none() is None:
                return slug
            suffix += 1
            slug = f"{base}-{suffix}"

    @staticmethod
    async def _has_orders(db: AsyncSession, event_id: int) -> bool:
        count = (await db.execute(select(func.count(Order.id)).where(Order.event_id == event_id))).scalar()
        return count > 0

    # ==================== Organizer operations ====================

    @staticmethod
    async def create_event(
        db: AsyncSession,
        user: User,
        data: Dict[str, Any],
        areas: Optional[List[Dict[str, Any]]] = None,
        seat_map_id: Optional[int] = None,
    ) -> Event:
        """
        Create an event in pending status.

        Seating comes either from simple area definitions or from a seat map.
        """
        organizer = await db.get(Organizer, user.id)
        if user.role != UserRole.ORGANIZER or not organizer:
            raise PermissionDeniedError("Only organizers can create events")
        if not organizer.is_active:
            raise OrganizerInactiveError("Your organizer account is awaiting approval")

        validate_schedule(data)

        event = Event(
            **{k: data.get(k) for k in EventService.EVENT_FIELDS},
            slug=await EventService._unique_slug(db, data["name"]),
            organizer_id=user.id,
            approval_status=ApprovalStatus.PENDING,
        )
        db.add(event)
        await db.flush()

        if seat_map_id is not None:
            seat_map = await SeatMapService.get_usable_seat_map(db, user, seat_map_id)
            await SeatMapService.apply_to_event(db, event, seat_map, commit=False)
        elif areas:
            EventService.build_simple_inventory(db, event, areas)

        await db.commit()
        logger.info(f"🎫 Event {event.id} created", extra={'event_id': event.id, 'user_id': user.id})
        return event

    @staticmethod
    def build_simple_inventory(db: AsyncSession, event: Event, areas: List[Dict[str, Any]]) -> List[Area]:
        """Rows labelled A, B, ... each with seats 1..seats_per_row"""
        created = []
        for area_data in areas:
            area = Area(event_id=event.id, name=area_data["name"], price=Decimal(str(area_data["price"])))
            for row_index in range(area_data["rows"]):
                row = Row(row_name=row_label(row_index))
                row.seats = [Seat(seat_number=str(n)) for n in range(1, area_data["seats_per_row"] + 1)]
                area.rows.append(row)
            db.add(area)
            created.append(area)
        return created

    @staticmethod
    async def update_event(
        db: AsyncSession,
        user: User,
        event_id: int,
        data: Dict[str, Any],
        areas: Optional[List[Dict[str, Any]]] = None,
    ) -> Event:
        """Owner edits send the event back to moderation"""
        event = await EventService.get_owned_event(db, user, event_id)

        merged = {k: getattr(event, k) for k in EventService.EVENT_FIELDS}
        merged.update({k: v for k, v in data.items() if k in EventService.EVENT_FIELDS})
        validate_schedule(merged)

        for key, value in data.items():
            if key in EventService.EVENT_FIELDS:
                setattr(event, key, value)
        if "name" in data and data["name"]:
            event.slug = await EventService._unique_slug(db, data["name"], exclude_id=event.id)

        if areas is not None:
            if await EventService._has_orders(db, event.id):
                raise EventHasOrdersError("Seating cannot change once orders exist")
            for area in await EventService.get_seating_structure(db, event.id):
                await db.delete(area)
            await db.flush()
            EventService.build_simple_inventory(db, event, areas)

        if user.role != UserRole.ADMIN:
            event.approval_status = ApprovalStatus.PENDING
            event.rejection_reason = None

        await db.commit()
        await CacheService.invalidate_event(event.id)
        return event

    @staticmethod
    async def apply_seat_map(db: AsyncSession, user: User, event_id: int, seat_map_id: int) -> List[Area]:
        """Replace the event's seating with the inventory drawn in a seat map"""
        event = await EventService.get_owned_event(db, user, event_id)
        if await EventService._has_orders(db, event.id):
            raise EventHasOrdersError("Seating cannot change once orders exist")
        seat_map = await SeatMapService.get_usable_seat_map(db, user, seat_map_id)

        for area in await EventService.get_seating_structure(db, event.id):
            await db.delete(area)
        if event.seat_map_id != seat_map.id:
            await SeatMapService.release_from_event(db, event)
        await db.flush()

        areas = await SeatMapService.apply_to_event(db, event, seat_map, commit=False)
        if user.role != UserRole.ADMIN:
            event.approval_status = ApprovalStatus.PENDING
        await db.commit()
        await CacheService.invalidate_event(event.id)
        return areas

    @staticmethod
    async def delete_event(db: AsyncSession, user: User, event_id: int):
        event = await EventService.get_owned_event(db, user, event_id)
        if await EventService._has_orders(db, event.id):
            raise EventHasOrdersError("Events with orders cannot be deleted")

        await SeatMapService.release_from_event(db, event)
        await db.delete(event)
        await db.commit()
        await CacheService.invalidate_event(event_id)
        logger.info(f"🗑️ Event {event_id} deleted", extra={'event_id': event_id})

    @staticmethod
    async def list_organizer_events(
        db: AsyncSession, user: User, status: Optional[ApprovalStatus] = None
    ) -> List[Event]:
        query = select(Event).where(Event.organizer_id == user.id)
        if status:
            query = query.where(Event.approval_status == status)
        query = query.order_by(Event.start_time.desc())
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def event_statistics(db: AsyncSession, event: Event) -> Dict[str, Any]:
        """Sales, revenue and check-in figures for the organizer dashboard"""
        capacity_rows = await db.execute(
            select(Area.id, Area.name, Area.price, func.count(Seat.id))
            .join(Row, Row.area_id == Area.id)
            .join(Seat, Seat.row_id == Row.id)
            .where(Area.event_id == event.id)
            .group_by(Area.id, Area.name, Area.price)
        )
        areas = {
            area_id: {"area_id": area_id, "name": name, "price": price, "capacity": capacity, "sold": 0, "revenue": Decimal("0")}
            for area_id, name, price, capacity in capacity_rows.all()
        }

        sold_rows = await db.execute(
            select(Area.id, func.count(Ticket.id), func.coalesce(func.sum(Ticket.price), 0))
            .join(Row, Row.area_id == Area.id)
            .join(Seat, Seat.row_id == Row.id)
            .join(Ticket, Ticket.seat_id == Seat.id)
            .join(Order, Order.id == Ticket.order_id)
            .where(Ticket.event_id == event.id)
            .where(Ticket.status.in_(SOLD_TICKET_STATUSES))
            .where(Order.status == OrderStatus.PAID)
            .group_by(Area.id)
        )
        for area_id, sold, revenue in sold_rows.all():
            if area_id in areas:
                areas[area_id]["sold"] = sold
                areas[area_id]["revenue"] = Decimal(str(revenue))

        checked_in = (
            await db.execute(
                select(func.count(Ticket.id))
                .where(Ticket.event_id == event.id)
                .where(Ticket.status == TicketStatus.USED)
            )
        ).scalar()

        capacity = sum(a["capacity"] for a in areas.values())
        sold = sum(a["sold"] for a in areas.values())
        return {
            "event_id": event.id,
            "capacity": capacity,
            "tickets_sold": sold,
            "revenue": sum((a["revenue"] for a in areas.values()), Decimal("0")),
            "sold_percentage": round(sold / capacity * 100, 2) if capacity else 0.0,
            "checked_in": checked_in,
            "areas": list(areas.values()),
        }

    # ==================== Public catalogue ====================

    @staticmethod
    async def list_public_events(
        db: AsyncSession,
        q: Optional[str] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        date: Optional[str] = None,
        page: int = 1,
        page_size: int = 6,
    ) -> Tuple[List[Event], int]:
        """Approved events only, soonest first"""
        filters = [Event.approval_status == ApprovalStatus.APPROVED]

        if q:
            pattern = f"%{q.strip()}%"
            filters.append(or_(
                Event.name.ilike(pattern),
                Event.description.ilike(pattern),
                Event.location.ilike(pattern),
            ))
        if category:
            filters.append(Event.type.ilike(f"%{category.strip()}%"))
        if location:
            filters.append(Event.location.ilike(f"%{location.strip()}%"))
        if date:
            now = datetime.utcnow()
            today = datetime(now.year, now.month, now.day)
            if date == "today":
                filters.append(Event.start_time >= today)
                filters.append(Event.start_time < today + timedelta(days=1))
            elif date == "this_week":
                filters.append(Event.start_time >= today)
                filters.append(Event.start_time < today + timedelta(days=7))
            elif date == "upcoming":
                filters.append(Event.start_time >= now)
            else:
                raise EventServiceError(f"Unknown date filter '{date}'")

        total = (await db.execute(select(func.count(Event.id)).where(*filters))).scalar()
        query = (
            select(Event)
            .where(*filters)
            .options(selectinload(Event.organizer))
            .order_by(Event.start_time)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        events = (await db.execute(query)).scalars().all()
        return list(events), total

    @staticmethod
    async def get_public_event(db: AsyncSession, slug_or_id: str) -> Dict[str, Any]:
        """Approved event with organizer, price range and rating summary. Counts a view."""
        query = select(Event).options(selectinload(Event.organizer))
        if str(slug_or_id).isdigit():
            query = query.where(or_(Event.id == int(slug_or_id), Event.slug == str(slug_or_id)))
        else:
            query = query.where(Event.slug == slug_or_id)
        event = (await db.execute(query)).scalars().first()

        if not event or event.approval_status != ApprovalStatus.APPROVED:
            raise EventNotFoundError(f"Event {slug_or_id} not found")

        event.views = (event.views or 0) + 1
        await db.commit()

        min_price, max_price = (
            await db.execute(select(func.min(Area.price), func.max(Area.price)).where(Area.event_id == event.id))
        ).one()
        rating_avg, rating_count = (
            await db.execute(select(func.avg(Rating.stars), func.count(Rating.id)).where(Rating.event_id == event.id))
        ).one()

        return {
            "event": event,
            "organizer_name": event.organizer.name if event.organizer else None,
            "min_price": min_price,
            "max_price": max_price,
            "rating": {
                "average": round(float(rating_avg), 2) if rating_avg is not None else 0.0,
                "count": rating_count,
            },
        }

    # ==================== Moderation ====================

    @staticmethod
    async def list_events_by_status(db: AsyncSession, status: Optional[ApprovalStatus] = None) -> List[Event]:
        query = select(Event).options(selectinload(Event.organizer)).order_by(Event.created_at.desc())
        if status:
            query = query.where(Event.approval_status == status)
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def approve_event(db: AsyncSession, event_id: int) -> Event:
        event = await EventService.get_event(db, event_id)
        event.approval_status = ApprovalStatus.APPROVED
        event.rejection_reason = None
        await db.commit()
        await CacheService.invalidate_event(event.id)
        logger.info(f"✅ Event {event_id} approved", extra={'event_id': event_id})
        return event

    @staticmethod
    async def reject_event(db: AsyncSession, event_id: int, reason: str) -> Event:
        event = await EventService.get_event(db, event_id)
        event.approval_status = ApprovalStatus.REJECTED
        event.rejection_reason = reason
        await db.commit()
        await CacheService.invalidate_event(event.id)
        logger.info(f"🚫 Event {event_id} rejected", extra={'event_id': event_id})
        return event

    # ==================== Seating ====================

    @staticmethod
    async def get_seating_structure(db: AsyncSession, event_id: int) -> List[Area]:
        query = (
            select(Area)
            .where(Area.event_id == event_id)
            .options(selectinload(Area.rows).selectinload(Row.seats))
            .order_by(Area.id)
        )
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def get_seat_status(db: AsyncSession, event_id: int, use_cache: bool = True) -> Dict[str, List[int]]:
        """
        Sold seats carry an active or used ticket. Held seats have an
        unexpired, unpaid hold and are not sold.
        """
        if use_cache:
            cached = await CacheService.get_event_seats(event_id)
            if cached:
                return cached

        sold = (
            await db.execute(
                select(Ticket.seat_id)
                .where(Ticket.event_id == event_id)
                .where(Ticket.status.in_(SOLD_TICKET_STATUSES))
            )
        ).scalars().all()
        sold_ids = set(sold)

        held = (
            await db.execute(
                select(SeatHold.seat_id)
                .where(SeatHold.event_id == event_id)
                .where(SeatHold.is_paid == False)  # noqa: E712
                .where(SeatHold.is_confirmed == False)  # noqa: E712
                .where(SeatHold.expires_at > datetime.utcnow())
            )
        ).scalars().all()

        status = {
            "sold_seat_ids": sorted(sold_ids),
            "held_seat_ids": sorted(set(held) - sold_ids),
        }
        if use_cache:
            await CacheService.set_event_seats(event_id, status)
        return status
