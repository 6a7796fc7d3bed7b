"""Events API endpoints: public catalogue, seating and organizer management"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import require_organizer
from seatmarket.core.database import get_db
from seatmarket.middleware.rate_limiter import limiter
from seatmarket.models import User, ApprovalStatus
from seatmarket.schemas import (
    EventCreate, EventUpdate, EventResponse, PublicEventResponse, EventListResponse,
    ApplySeatMapRequest, AreaResponse, SeatStatusResponse, SeatingResponse, EventStatistics,
)
from seatmarket.services import EventService
from seatmarket.services.event_service import EventNotFoundError

router = APIRouter()


# ==================== Public ====================

@router.get("/events", response_model=EventListResponse)
@limiter.limit("60/minute")
async def list_events(
    request: Request,
    q: Optional[str] = Query(None, max_length=200),
    category: Optional[str] = Query(None, max_length=100),
    location: Optional[str] = Query(None, max_length=200),
    date: Optional[str] = Query(None, pattern="^(today|this_week|upcoming)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(6, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Approved events, soonest first"""
    events, total = await EventService.list_public_events(
        db, q=q, category=category, location=location, date=date, page=page, page_size=page_size
    )
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/events/{slug_or_id}", response_model=PublicEventResponse)
async def get_event(slug_or_id: str, db: AsyncSession = Depends(get_db)):
    details = await EventService.get_public_event(db, slug_or_id)
    return PublicEventResponse.from_details(details)


@router.get("/events/{event_id}/seats", response_model=SeatingResponse)
@limiter.limit("120/minute")
async def get_event_seats(request: Request, event_id: int, db: AsyncSession = Depends(get_db)):
    """
    Seating structure with sold and held seat ids

    Seat status is served from Redis when cached.
    """
    event = await EventService.get_event(db, event_id)
    if event.approval_status != ApprovalStatus.APPROVED:
        raise EventNotFoundError(f"Event {event_id} not found")

    areas = await EventService.get_seating_structure(db, event_id)
    status = await EventService.get_seat_status(db, event_id)
    return SeatingResponse(
        event_id=event_id,
        areas=[AreaResponse.model_validate(a) for a in areas],
        seat_status=SeatStatusResponse(**status),
    )


# ==================== Organizer ====================

@router.get("/organizer/events", response_model=list[EventResponse])
async def list_my_events(
    status: Optional[ApprovalStatus] = None,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    events = await EventService.list_organizer_events(db, user, status)
    return [EventResponse.model_validate(e) for e in events]


@router.post("/organizer/events", response_model=EventResponse, status_code=201)
async def create_event(
    data: EventCreate,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Create an event awaiting moderation, seated from areas or a seat map"""
    payload = data.model_dump(exclude={"areas", "seat_map_id"})
    areas = [a.model_dump() for a in data.areas] if data.areas else None
    event = await EventService.create_event(db, user, payload, areas=areas, seat_map_id=data.seat_map_id)
    return EventResponse.model_validate(event)


@router.get("/organizer/events/{event_id}", response_model=EventResponse)
async def get_my_event(event_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    return EventResponse.model_validate(await EventService.get_owned_event(db, user, event_id))


@router.patch("/organizer/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    data: EventUpdate,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True, exclude={"areas"})
    areas = [a.model_dump() for a in data.areas] if data.areas is not None else None
    event = await EventService.update_event(db, user, event_id, changes, areas=areas)
    return EventResponse.model_validate(event)


@router.delete("/organizer/events/{event_id}", status_code=204)
async def delete_event(event_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    await EventService.delete_event(db, user, event_id)


@router.post("/organizer/events/{event_id}/seat-map", response_model=list[AreaResponse])
async def apply_seat_map(
    event_id: int,
    data: ApplySeatMapRequest,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Replace the event's seating with a seat map's inventory"""
    await EventService.apply_seat_map(db, user, event_id, data.seat_map_id)
    areas = await EventService.get_seating_structure(db, event_id)
    return [AreaResponse.model_validate(a) for a in areas]


@router.get("/organizer/events/{event_id}/statistics", response_model=EventStatistics)
async def event_statistics(event_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    event = await EventService.get_owned_event(db, user, event_id)
    return EventStatistics(**await EventService.event_statistics(db, event))
