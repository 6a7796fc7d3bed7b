"""
SQLAlchemy models for the ticketing marketplace

Import all models here so relationships resolve and metadata is complete.
"""
from seatmarket.core.database import Base

from seatmarket.models.user import User, UserRole, Organizer, UserSession
from seatmarket.models.seat_map import SeatMap, Publicity
from seatmarket.models.event import Event, ApprovalStatus, Area, Row, Seat
from seatmarket.models.order import Order, OrderStatus, SeatHold
from seatmarket.models.ticket import Ticket, TicketStatus, TicketInspection, InspectionStatus
from seatmarket.models.payout import PayoutRequest, PayoutStatus, CLOSED_PAYOUT_STATUSES
from seatmarket.models.rating import Rating

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Organizer",
    "UserSession",
    "SeatMap",
    "Publicity",
    "Event",
    "ApprovalStatus",
    "Area",
    "Row",
    "Seat",
    "Order",
    "OrderStatus",
    "SeatHold",
    "Ticket",
    "TicketStatus",
    "TicketInspection",
    "InspectionStatus",
    "PayoutRequest",
    "PayoutStatus",
    "CLOSED_PAYOUT_STATUSES",
    "Rating",
]
