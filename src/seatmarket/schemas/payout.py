"""Pydantic schemas for payout requests"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from seatmarket.models.payout import PayoutStatus
from seatmarket.schemas.event import EventResponse


class PayoutCreate(BaseModel):
    event_id: int
    # positive integer string; checked by the service
    amount: str


class PayoutUpdate(BaseModel):
    status: Optional[PayoutStatus] = None
    agreed_amount: Optional[Decimal] = None
    proof_document_url: Optional[str] = Field(None, max_length=500)


class PayoutResponse(BaseModel):
    id: int
    event_id: int
    event_name: Optional[str] = None
    organizer_id: int
    organizer_name: Optional[str] = None
    status: PayoutStatus
    requested_amount: Decimal
    agreed_amount: Optional[Decimal] = None
    request_date: datetime
    completion_date: Optional[datetime] = None
    proof_document_url: Optional[str] = None

    @classmethod
    def from_payout(cls, payout):
        return cls(
            id=payout.id,
            event_id=payout.event_id,
            event_name=payout.event.name if payout.event else None,
            organizer_id=payout.organizer_id,
            organizer_name=payout.organizer.name if payout.organizer else None,
            status=payout.status,
            requested_amount=payout.requested_amount,
            agreed_amount=payout.agreed_amount,
            request_date=payout.request_date,
            completion_date=payout.completion_date,
            proof_document_url=payout.proof_document_url,
        )


class PayoutListResponse(BaseModel):
    items: List[PayoutResponse]
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_page(cls, page: dict):
        return cls(**{**page, "items": [PayoutResponse.from_payout(p) for p in page["items"]]})


class EligibleEvent(BaseModel):
    event: EventResponse
    revenue: Decimal
