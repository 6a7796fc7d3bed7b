"""
Event model and its seating inventory (areas, rows, seats)
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class ApprovalStatus(PyEnum):
    """Enum for event moderation status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(160), unique=True, nullable=False, index=True)
    description = Column(Text)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    location = Column(String(500), index=True)
    type = Column(String(100), index=True)  # 'concert', 'sports', 'theater'
    ticket_sale_start = Column(DateTime)
    ticket_sale_end = Column(DateTime)
    max_tickets_by_order = Column(Integer)
    poster_url = Column(String(500))
    banner_url = Column(String(500))
    views = Column(Integer, nullable=False, default=0)
    approval_status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING, index=True)
    rejection_reason = Column(Text)
    seat_map_id = Column(Integer, ForeignKey("seat_maps.id", ondelete="SET NULL"))
    organizer_id = Column(Integer, ForeignKey("organizers.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    organizer = relationship("Organizer", back_populates="events")
    areas = relationship("Area", back_populates="event", cascade="all, delete-orphan", order_by="Area.id")
    orders = relationship("Order", back_populates="event")
    seat_map = relationship("SeatMap")

    def __repr__(self):
        return f"<Event(id={self.id}, slug='{self.slug}', status='{self.approval_status.value}')>"

    @property
    def has_ended(self) -> bool:
        return self.end_time is not None and self.end_time < datetime.utcnow()

    @property
    def is_on_sale(self) -> bool:
        """
        Approved and inside the ticket sale window. Without a sale end the
        window closes when the event ends.
        """
        if self.approval_status != ApprovalStatus.APPROVED:
            return False
        now = datetime.utcnow()
        if self.ticket_sale_start and now < self.ticket_sale_start:
            return False
        sale_end = self.ticket_sale_end or self.end_time
        if sale_end and now > sale_end:
            return False
        return True


class Area(Base):
    __tablename__ = "areas"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)

    event = relationship("Event", back_populates="areas")
    rows = relationship("Row", back_populates="area", cascade="all, delete-orphan", order_by="Row.id")

    def __repr__(self):
        return f"<Area(id={self.id}, event_id={self.event_id}, name='{self.name}', price={self.price})>"


class Row(Base):
    __tablename__ = "rows"

    id = Column(Integer, primary_key=True, index=True)
    area_id = Column(Integer, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False, index=True)
    row_name = Column(String(20), nullable=False)

    area = relationship("Area", back_populates="rows")
    seats = relationship("Seat", back_populates="row", cascade="all, delete-orphan", order_by="Seat.id")


class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint('row_id', 'seat_number', name='uq_row_seat_number'),
    )

    id = Column(Integer, primary_key=True, index=True)
    row_id = Column(Integer, ForeignKey("rows.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_number = Column(String(10), nullable=False)

    row = relationship("Row", back_populates="seats")

    def __repr__(self):
        return f"<Seat(id={self.id}, row_id={self.row_id}, number='{self.seat_number}')>"
