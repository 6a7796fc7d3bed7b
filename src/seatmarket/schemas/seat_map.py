"""
Pydantic schemas for seat map documents
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Any, Dict
from pydantic import BaseModel, Field

from seatmarket.models.seat_map import Publicity


class SeatMapSave(BaseModel):
    name: str = Field(..., max_length=255)
    shapes: List[Dict[str, Any]]
    image_url: str = Field(..., max_length=1000)


class SeatMapUpdate(BaseModel):
    shapes: List[Dict[str, Any]]
    name: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = Field(None, max_length=1000)


class DraftCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)


class PublicityUpdate(BaseModel):
    publicity: Publicity


class SeatMapSummary(BaseModel):
    id: int
    name: str
    image_url: Optional[str] = None
    created_by: int
    publicity: Publicity
    drafted_from: Optional[int] = None
    original_creator: Optional[int] = None
    used_by_event: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeatMapResponse(SeatMapSummary):
    shapes: List[Dict[str, Any]]


class PublicSeatMapItem(SeatMapSummary):
    draft_count: int = 0


class PublicSeatMapPage(BaseModel):
    items: List[PublicSeatMapItem]
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page: dict):
        items = [
            PublicSeatMapItem(**SeatMapSummary.model_validate(m).model_dump(), draft_count=count)
            for m, count in page["items"]
        ]
        return cls(**{**page, "items": items})


class DraftChainResponse(BaseModel):
    seat_map: SeatMapSummary
    origin: Optional[SeatMapSummary] = None
    drafts: List[SeatMapSummary]


class InventorySeat(BaseModel):
    seat_number: str
    category: str
    price: Decimal


class InventoryRow(BaseModel):
    row_name: str
    seats: List[InventorySeat]


class InventoryArea(BaseModel):
    name: str
    price: Decimal
    rows: List[InventoryRow]
