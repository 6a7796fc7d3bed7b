"""Pydantic schemas for checkout, orders and tickets"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from seatmarket.models.order import OrderStatus
from seatmarket.models.ticket import TicketStatus
from seatmarket.schemas.event import EventResponse, AreaResponse, SeatStatusResponse


class CheckoutCreate(BaseModel):
    event_id: int = Field(..., gt=0)
    seat_ids: List[int] = Field(..., min_length=1)


class HeldSeatResponse(BaseModel):
    seat_id: int
    seat_number: str
    row_name: str
    area_name: str
    price: Decimal


class CheckoutResponse(BaseModel):
    payment_url: str
    order_id: int
    total_amount: Decimal
    hold_expires: datetime
    seats: List[HeldSeatResponse]


class TicketDataResponse(BaseModel):
    event: EventResponse
    areas: List[AreaResponse]
    seat_status: SeatStatusResponse


class TicketResponse(BaseModel):
    id: int
    order_id: int
    event_id: int
    event_name: Optional[str] = None
    seat_id: int
    seat_number: str
    row_name: str
    area_name: str
    price: Decimal
    status: TicketStatus
    purchased_at: datetime
    qr_data: Optional[str] = None


class PaymentError(BaseModel):
    code: str
    message: str


class PaymentResultResponse(BaseModel):
    success: bool
    order_id: int
    order_status: OrderStatus
    ticket_count: int
    total_amount: Decimal
    tickets: List[TicketResponse] = Field(default_factory=list)
    error: Optional[PaymentError] = None

    @classmethod
    def from_result(cls, result: dict):
        """Tickets in the result are ORM objects with seat/row/area loaded"""
        tickets = [
            TicketResponse(
                id=t.id,
                order_id=t.order_id,
                event_id=t.event_id,
                seat_id=t.seat_id,
                seat_number=t.seat.seat_number,
                row_name=t.seat.row.row_name,
                area_name=t.seat.row.area.name,
                price=t.price,
                status=t.status,
                purchased_at=t.purchased_at,
            )
            for t in result["tickets"]
        ]
        return cls(**{**result, "tickets": tickets})


class OrderSummary(BaseModel):
    id: int
    event_id: int
    event_name: str
    order_date: datetime
    total_amount: Decimal
    status: OrderStatus
    ticket_count: int


class OrderListResponse(BaseModel):
    items: List[OrderSummary]
    page: int
    limit: int
    total: int


class OrderDetailResponse(BaseModel):
    id: int
    status: OrderStatus
    order_date: datetime
    total_amount: Decimal
    expires_at: Optional[datetime] = None
    time_remaining_seconds: int = 0
    event: EventResponse
    tickets: List[TicketResponse]


class OrderStatusResponse(BaseModel):
    id: int
    status: OrderStatus
    total_amount: Decimal

    class Config:
        from_attributes = True


class TicketListResponse(BaseModel):
    items: List[TicketResponse]
    page: int
    limit: int
    total: int


class CheckInRequest(BaseModel):
    ticket_id: Optional[int] = None
    qr_data: Optional[str] = None


class CheckInResponse(BaseModel):
    ticket: TicketResponse
    duplicate: bool


class OfflineInspection(BaseModel):
    ticket_id: int
    timestamp_ms: int


class OfflineInspectionBatch(BaseModel):
    inspections: List[OfflineInspection]


class OfflineInspectionResult(BaseModel):
    processed: int
    message: str
