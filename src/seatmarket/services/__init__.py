"""Domain services"""
from seatmarket.services.auth_service import AuthService
from seatmarket.services.admin_service import AdminService
from seatmarket.services.cache_service import CacheService
from seatmarket.services.event_service import EventService
from seatmarket.services.seat_map_service import SeatMapService
from seatmarket.services.checkout_service import CheckoutService
from seatmarket.services.order_service import OrderService
from seatmarket.services.inspection_service import InspectionService
from seatmarket.services.payout_service import PayoutService
from seatmarket.services.rating_service import RatingService

__all__ = [
    "AuthService",
    "AdminService",
    "CacheService",
    "EventService",
    "SeatMapService",
    "CheckoutService",
    "OrderService",
    "InspectionService",
    "PayoutService",
    "RatingService",
]
