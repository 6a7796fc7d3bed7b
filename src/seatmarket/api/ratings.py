"""Event ratings"""
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import get_current_user, get_session_token
from seatmarket.core.database import get_db
from seatmarket.middleware.rate_limiter import limiter
from seatmarket.models import User
from seatmarket.schemas import RatingCreate, RatingResponse, EventRatingsResponse, RatingSubmitResponse, RatingSummary
from seatmarket.services import RatingService
from seatmarket.services.auth_service import AuthService

router = APIRouter()


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[User]:
    token = get_session_token(request)
    if not token:
        return None
    return await AuthService.get_session_user(db, token)


@router.get("/events/{event_id}/ratings", response_model=EventRatingsResponse)
async def get_ratings(
    event_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Summary, the ten newest ratings and the caller's own rating"""
    summary = await RatingService.rating_summary(db, event_id)
    recent = await RatingService.list_ratings(db, event_id, limit=10)
    own = await RatingService.user_rating(db, user, event_id) if user else None
    return EventRatingsResponse(
        summary=RatingSummary(**summary),
        recent=[RatingResponse.from_rating(r) for r in recent],
        user_rating=RatingResponse.from_rating(own, with_user=False) if own else None,
    )


@router.post("/events/{event_id}/ratings", response_model=RatingSubmitResponse)
@limiter.limit("10/minute")
async def submit_rating(
    request: Request,
    event_id: int,
    data: RatingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await RatingService.submit_rating(db, user, event_id, data.stars, data.comment)
    return RatingSubmitResponse(summary=RatingSummary(**summary))


@router.get("/organizers/{organizer_id}/rating", response_model=RatingSummary)
async def organizer_rating(organizer_id: int, db: AsyncSession = Depends(get_db)):
    return RatingSummary(**await RatingService.organizer_average_rating(db, organizer_id))
