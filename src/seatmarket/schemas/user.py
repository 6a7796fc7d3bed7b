"""
Pydantic schemas for accounts and sessions
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from seatmarket.models.user import UserRole
from seatmarket.schemas.common import naive_utc


class SignUpRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.CUSTOMER
    organizer_name: Optional[str] = Field(None, max_length=255)


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class OrganizerResponse(BaseModel):
    id: int
    name: str
    website: Optional[str] = None
    address: Optional[str] = None
    organizer_type: Optional[str] = None
    is_active: bool
    rejection_reason: Optional[str] = None
    rejection_seen: bool
    rejected_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    banned: bool
    ban_reason: Optional[str] = None
    ban_expires: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MeResponse(UserResponse):
    organizer: Optional[OrganizerResponse] = None


class SessionResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)


class OrganizerProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    website: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = None
    organizer_type: Optional[str] = Field(None, max_length=100)


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
    page: int
    page_size: int


class UserLockRequest(BaseModel):
    banned: bool
    reason: Optional[str] = Field(None, max_length=1000)
    expires: Optional[datetime] = None

    @field_validator("expires")
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class OrganizerRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)
