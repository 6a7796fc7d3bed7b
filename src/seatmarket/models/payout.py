"""
Payout request model
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class PayoutStatus(PyEnum):
    PENDING = "pending"
    IN_DISCUSSION = "in_discussion"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Requests in these states no longer block a new request for the same event
CLOSED_PAYOUT_STATUSES = (PayoutStatus.CANCELLED, PayoutStatus.REJECTED)


class PayoutRequest(Base):
    __tablename__ = "payout_requests"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    organizer_id = Column(Integer, ForeignKey("organizers.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(PayoutStatus), nullable=False, default=PayoutStatus.PENDING, index=True)
    requested_amount = Column(Numeric(14, 2), nullable=False)
    agreed_amount = Column(Numeric(14, 2))
    request_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    completion_date = Column(DateTime)
    proof_document_url = Column(String(500))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    event = relationship("Event")
    organizer = relationship("Organizer")

    def __repr__(self):
        return f"<PayoutRequest(id={self.id}, event_id={self.event_id}, status='{self.status.value}')>"
