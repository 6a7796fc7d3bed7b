"""
Seat map document - the editor's canvas shape graph stored as JSON
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class Publicity(PyEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class SeatMap(Base):
    __tablename__ = "seat_maps"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    shapes = Column(JSON, nullable=False, default=list)
    image_url = Column(String(1000))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    publicity = Column(Enum(Publicity), nullable=False, default=Publicity.PRIVATE, index=True)
    drafted_from = Column(Integer, ForeignKey("seat_maps.id", ondelete="SET NULL"), index=True)
    original_creator = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    used_by_event = Column(Integer, index=True)  # event id that consumed this map
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<SeatMap(id={self.id}, name='{self.name}', publicity='{self.publicity.value}')>"
