"""Pydantic schemas for event ratings"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from seatmarket.schemas.event import RatingSummary


class RatingCreate(BaseModel):
    # range is enforced by the service
    stars: int
    comment: Optional[str] = Field(None, max_length=1000)


class RatingResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    event_id: int
    stars: int
    comment: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_rating(cls, rating, with_user: bool = True):
        return cls(
            id=rating.id,
            user_id=rating.user_id,
            user_name=rating.user.name if with_user and rating.user else None,
            event_id=rating.event_id,
            stars=rating.stars,
            comment=rating.comment,
            created_at=rating.created_at,
        )


class EventRatingsResponse(BaseModel):
    summary: RatingSummary
    recent: List[RatingResponse]
    user_rating: Optional[RatingResponse] = None


class RatingSubmitResponse(BaseModel):
    success: bool = True
    summary: RatingSummary
