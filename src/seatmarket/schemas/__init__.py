"""
Pydantic schemas for API request/response validation
"""
from seatmarket.schemas.user import (
    SignUpRequest, SignInRequest, SessionResponse, UserResponse, MeResponse,
    OrganizerResponse, ProfileUpdate, OrganizerProfileUpdate, UserListResponse,
    UserLockRequest, OrganizerRejectRequest,
)
from seatmarket.schemas.event import (
    AreaCreate, EventCreate, EventUpdate, EventResponse, PublicEventResponse,
    EventListResponse, RejectRequest, ApplySeatMapRequest, AreaResponse,
    SeatStatusResponse, SeatingResponse, EventStatistics, RatingSummary,
)
from seatmarket.schemas.seat_map import (
    SeatMapSave, SeatMapUpdate, DraftCreate, PublicityUpdate, SeatMapSummary,
    SeatMapResponse, PublicSeatMapPage, DraftChainResponse, InventoryArea,
)
from seatmarket.schemas.order import (
    CheckoutCreate, CheckoutResponse, TicketDataResponse, PaymentResultResponse,
    OrderListResponse, OrderDetailResponse, OrderStatusResponse, TicketResponse,
    TicketListResponse, CheckInRequest, CheckInResponse, OfflineInspectionBatch,
    OfflineInspectionResult,
)
from seatmarket.schemas.payout import PayoutCreate, PayoutUpdate, PayoutResponse, PayoutListResponse, EligibleEvent
from seatmarket.schemas.rating import RatingCreate, RatingResponse, EventRatingsResponse, RatingSubmitResponse
from seatmarket.schemas.admin import (
    DashboardStats, MonthlyRevenue, MonthlyRevenueResponse, UploadSignRequest, UploadSignResponse,
)

__all__ = [
    # Accounts
    "SignUpRequest", "SignInRequest", "SessionResponse", "UserResponse", "MeResponse",
    "OrganizerResponse", "ProfileUpdate", "OrganizerProfileUpdate", "UserListResponse",
    "UserLockRequest", "OrganizerRejectRequest",
    # Events
    "AreaCreate", "EventCreate", "EventUpdate", "EventResponse", "PublicEventResponse",
    "EventListResponse", "RejectRequest", "ApplySeatMapRequest", "AreaResponse",
    "SeatStatusResponse", "SeatingResponse", "EventStatistics", "RatingSummary",
    # Seat maps
    "SeatMapSave", "SeatMapUpdate", "DraftCreate", "PublicityUpdate", "SeatMapSummary",
    "SeatMapResponse", "PublicSeatMapPage", "DraftChainResponse", "InventoryArea",
    # Checkout, orders and tickets
    "CheckoutCreate", "CheckoutResponse", "TicketDataResponse", "PaymentResultResponse",
    "OrderListResponse", "OrderDetailResponse", "OrderStatusResponse", "TicketResponse",
    "TicketListResponse", "CheckInRequest", "CheckInResponse", "OfflineInspectionBatch",
    "OfflineInspectionResult",
    # Payouts
    "PayoutCreate", "PayoutUpdate", "PayoutResponse", "PayoutListResponse", "EligibleEvent",
    # Ratings
    "RatingCreate", "RatingResponse", "EventRatingsResponse", "RatingSubmitResponse",
    # Admin
    "DashboardStats", "MonthlyRevenue", "MonthlyRevenueResponse", "UploadSignRequest", "UploadSignResponse",
]
