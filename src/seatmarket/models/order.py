"""
Order model - pending orders hold seats until the payment return settles them
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, Enum, Boolean, JSON
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class OrderStatus(PyEnum):
    """Enum for order status"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    order_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    expires_at = Column(DateTime, index=True)  # NULL once settled
    payment_metadata = Column(JSON)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="orders")
    event = relationship("Event", back_populates="orders")
    holds = relationship("SeatHold", back_populates="order", cascade="all, delete-orphan")
    tickets = relationship("Ticket", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return (f"<Order(id={self.id}, user_id={self.user_id}, event_id={self.event_id}, "
                f"status='{self.status.value}', total={self.total_amount})>")

    @property
    def is_expired(self) -> bool:
        """Check if the pending hold window has run out"""
        if self.status != OrderStatus.PENDING or self.expires_at is None:
            return False
        return datetime.utcnow() > self.expires_at

    @property
    def time_remaining_seconds(self) -> int:
        if self.status != OrderStatus.PENDING or self.expires_at is None:
            return 0
        remaining = (self.expires_at - datetime.utcnow()).total_seconds()
        return max(0, int(remaining))

    @property
    def txn_ref(self):
        return (self.payment_metadata or {}).get("txn_ref")


class SeatHold(Base):
    __tablename__ = "seat_holds"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="CASCADE"), nullable=False, index=True)
    is_confirmed = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="holds")
    seat = relationship("Seat")

    @property
    def is_active(self) -> bool:
        return not self.is_paid and self.expires_at > datetime.utcnow()
