"""
Ticket model - one issued ticket per sold seat
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class TicketStatus(PyEnum):
    """Enum for ticket status"""
    ACTIVE = "active"
    USED = "used"
    REFUNDED = "refunded"


class InspectionStatus(PyEnum):
    """Outcome recorded for each inspection attempt"""
    VALID = "valid"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    OFFLINE = "offline"


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    # A seat is sold at most once
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="RESTRICT"), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.ACTIVE, index=True)
    purchased_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="tickets")
    seat = relationship("Seat")
    event = relationship("Event")
    inspections = relationship("TicketInspection", back_populates="ticket", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Ticket(id={self.id}, seat_id={self.seat_id}, status='{self.status.value}')>"

    @property
    def seat_label(self) -> str:
        """Human-readable seat label, requires seat/row/area loaded"""
        row = self.seat.row
        return f"{row.area.name}-{row.row_name}-{self.seat.seat_number}"


class TicketInspection(Base):
    __tablename__ = "ticket_inspections"

    id = Column(Integer, primary_key=True, index=True)
    # NULL when the scanned id matched no ticket
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=True, index=True)
    scanned_ticket_id = Column(Integer, nullable=False)
    inspector_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(InspectionStatus), nullable=False)
    inspected_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    ticket = relationship("Ticket", back_populates="inspections")
