"""Pydantic schemas for the admin dashboard"""
from decimal import Decimal
from typing import Dict, List, Union
from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    users_by_role: Dict[str, int]
    banned_users: int
    events_by_status: Dict[str, int]
    paid_orders: int
    gross_revenue: Decimal
    pending_payouts: int
    pending_organizers: int


class MonthlyRevenue(BaseModel):
    month: str
    revenue: Decimal


class UploadSignRequest(BaseModel):
    params: Dict[str, Union[str, int]] = Field(default_factory=dict)


class UploadSignResponse(BaseModel):
    signature: str
    timestamp: int
    api_key: str
    cloud_name: str


class MonthlyRevenueResponse(BaseModel):
    months: List[MonthlyRevenue]
