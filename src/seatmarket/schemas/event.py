"""
Pydantic schemas for Event resources and their seating
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from seatmarket.models.event import ApprovalStatus
from seatmarket.schemas.common import naive_utc

SCHEDULE_FIELDS = ("start_time", "end_time", "ticket_sale_start", "ticket_sale_end")


class AreaCreate(BaseModel):
    """Simple rectangular block: rows A.. with seats 1..seats_per_row"""
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    rows: int = Field(..., ge=1, le=100)
    seats_per_row: int = Field(..., ge=1, le=200)


class EventBase(BaseModel):
    """Base Event schema"""
    name: str = Field(..., min_length=1, max_length=100, description="Event name")
    description: Optional[str] = Field(None, description="Event description")
    start_time: datetime = Field(..., description="Event start time")
    end_time: datetime = Field(..., description="Event end time")
    location: Optional[str] = Field(None, max_length=500)
    type: Optional[str] = Field(None, max_length=100, description="Event category")
    ticket_sale_start: Optional[datetime] = None
    ticket_sale_end: Optional[datetime] = None
    max_tickets_by_order: Optional[int] = Field(None, ge=1)
    poster_url: Optional[str] = Field(None, max_length=500)
    banner_url: Optional[str] = Field(None, max_length=500)

    @field_validator(*SCHEDULE_FIELDS)
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class EventCreate(EventBase):
    areas: Optional[List[AreaCreate]] = None
    seat_map_id: Optional[int] = None


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=500)
    type: Optional[str] = Field(None, max_length=100)
    ticket_sale_start: Optional[datetime] = None
    ticket_sale_end: Optional[datetime] = None
    max_tickets_by_order: Optional[int] = Field(None, ge=1)
    poster_url: Optional[str] = Field(None, max_length=500)
    banner_url: Optional[str] = Field(None, max_length=500)
    areas: Optional[List[AreaCreate]] = None

    @field_validator(*SCHEDULE_FIELDS)
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class EventResponse(EventBase):
    """Event response schema"""
    id: int
    slug: str
    views: int
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    seat_map_id: Optional[int] = None
    organizer_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    average: float
    count: int


class PublicEventResponse(EventResponse):
    organizer_name: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    rating: Optional[RatingSummary] = None

    @classmethod
    def from_details(cls, details: dict):
        base = EventResponse.model_validate(details["event"]).model_dump()
        return cls(
            **base,
            organizer_name=details["organizer_name"],
            min_price=details["min_price"],
            max_price=details["max_price"],
            rating=details["rating"],
        )


class EventListResponse(BaseModel):
    """Response schema for listing events"""
    events: List[EventResponse]
    total: int
    page: int
    page_size: int


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class ApplySeatMapRequest(BaseModel):
    seat_map_id: int


class SeatResponse(BaseModel):
    id: int
    seat_number: str

    class Config:
        from_attributes = True


class RowResponse(BaseModel):
    id: int
    row_name: str
    seats: List[SeatResponse]

    class Config:
        from_attributes = True


class AreaResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    rows: List[RowResponse]

    class Config:
        from_attributes = True


class SeatStatusResponse(BaseModel):
    sold_seat_ids: List[int]
    held_seat_ids: List[int]


class SeatingResponse(BaseModel):
    event_id: int
    areas: List[AreaResponse]
    seat_status: SeatStatusResponse


class AreaStatistics(BaseModel):
    area_id: int
    name: str
    price: Decimal
    capacity: int
    sold: int
    revenue: Decimal


class EventStatistics(BaseModel):
    event_id: int
    capacity: int
    tickets_sold: int
    revenue: Decimal
    sold_percentage: float
    checked_in: int
    areas: List[AreaStatistics]
