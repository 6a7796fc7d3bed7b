"""
User, organizer profile and login session models
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship

from seatmarket.core.database import Base


class UserRole(PyEnum):
    """Enum for user roles"""
    CUSTOMER = "customer"
    ORGANIZER = "organizer"
    ADMIN = "admin"
    UNASSIGNED = "unassigned"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(32))
    role = Column(Enum(UserRole), nullable=False, default=UserRole.UNASSIGNED, index=True)
    banned = Column(Boolean, nullable=False, default=False, index=True)
    ban_reason = Column(Text)
    ban_expires = Column(DateTime, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    organizer = relationship("Organizer", back_populates="user", uselist=False, cascade="all, delete-orphan")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"

    @property
    def is_locked(self) -> bool:
        """Banned and the ban has not run out"""
        if not self.banned:
            return False
        return self.ban_expires is None or self.ban_expires > datetime.utcnow()


class Organizer(Base):
    __tablename__ = "organizers"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    website = Column(String(500))
    address = Column(Text)
    organizer_type = Column(String(100))
    is_active = Column(Boolean, nullable=False, default=False, index=True)
    rejection_reason = Column(Text)
    rejection_seen = Column(Boolean, nullable=False, default=False)
    rejected_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="organizer")
    events = relationship("Event", back_populates="organizer")

    def __repr__(self):
        return f"<Organizer(id={self.id}, name='{self.name}', active={self.is_active})>"


class UserSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() >= self.expires_at
