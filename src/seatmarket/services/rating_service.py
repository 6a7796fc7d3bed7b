"""
Event ratings by ticket holders, with a cached per-event summary
"""
from typing import Optional, Dict, Any, List
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import ServiceError, PermissionDeniedError, ValidationFailedError
from seatmarket.models import User, Event, Order, OrderStatus, Ticket, Rating
from seatmarket.services.cache_service import CacheService
from seatmarket.services.event_service import EventService
import logging

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000
PURCHASED_ORDER_STATUSES = (OrderStatus.PAID, OrderStatus.REFUNDED)


class RatingError(ServiceError):
    code = "RATING_ERROR"


class EventNotEndedError(RatingError):
    code = "EVENT_NOT_ENDED"


class NotAttendeeError(PermissionDeniedError):
    code = "NOT_ATTENDEE"


class RatingService:
    """Service for event ratings"""

    @staticmethod
    async def has_purchased(db: AsyncSession, user_id: int, event_id: int) -> bool:
        count = (
            await db.execute(
                select(func.count(Ticket.id))
                .join(Order, Order.id == Ticket.order_id)
                .where(Ticket.event_id == event_id)
                .where(Order.user_id == user_id)
                .where(Order.status.in_(PURCHASED_ORDER_STATUSES))
            )
        ).scalar()
        return count > 0

    @staticmethod
    async def submit_rating(
        db: AsyncSession, user: User, event_id: int, stars: Any, comment: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create or replace the user's rating; returns the new summary"""
        if not isinstance(stars, int) or isinstance(stars, bool) or not 1 <= stars <= 5:
            raise ValidationFailedError("Stars must be an integer between 1 and 5")
        comment = (comment or "").strip() or None
        if comment and len(comment) > MAX_COMMENT_LENGTH:
            raise ValidationFailedError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")

        event = await EventService.get_event(db, event_id)
        if not event.has_ended:
            raise EventNotEndedError("Event has not ended yet")
        if not await RatingService.has_purchased(db, user.id, event_id):
            raise NotAttendeeError("Only ticket holders can rate this event")

        rating = (
            await db.execute(
                select(Rating).where(Rating.user_id == user.id).where(Rating.event_id == event_id)
            )
        ).scalars().first()
        if rating:
            rating.stars = stars
            rating.comment = comment
        else:
            db.add(Rating(user_id=user.id, event_id=event_id, stars=stars, comment=comment))
        await db.commit()

        await CacheService.invalidate_rating_summary(event_id)
        logger.info(f"⭐ User {user.id} rated event {event_id}: {stars}", extra={'user_id': user.id, 'event_id': event_id})
        return await RatingService.rating_summary(db, event_id)

    @staticmethod
    async def rating_summary(db: AsyncSession, event_id: int) -> Dict[str, Any]:
        cached = await CacheService.get_rating_summary(event_id)
        if cached:
            return cached

        average, count = (
            await db.execute(
                select(func.avg(Rating.stars), func.count(Rating.id)).where(Rating.event_id == event_id)
            )
        ).one()
        summary = {
            "average": round(float(average), 2) if average is not None else 0.0,
            "count": count,
        }
        await CacheService.set_rating_summary(event_id, summary)
        return summary

    @staticmethod
    async def list_ratings(db: AsyncSession, event_id: int, limit: int = 10) -> List[Rating]:
        query = (
            select(Rating)
            .where(Rating.event_id == event_id)
            .options(selectinload(Rating.user))
            .order_by(Rating.created_at.desc(), Rating.id.desc())
            .limit(limit)
        )
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def user_rating(db: AsyncSession, user: User, event_id: int) -> Optional[Rating]:
        query = select(Rating).where(Rating.user_id == user.id).where(Rating.event_id == event_id)
        return (await db.execute(query)).scalars().first()

    @staticmethod
    async def organizer_average_rating(db: AsyncSession, organizer_id: int) -> Dict[str, Any]:
        average, count = (
            await db.execute(
                select(func.avg(Rating.stars), func.count(Rating.id))
                .join(Event, Event.id == Rating.event_id)
                .where(Event.organizer_id == organizer_id)
            )
        ).one()
        return {
            "average": round(float(average), 2) if average is not None else 0.0,
            "count": count,
        }
