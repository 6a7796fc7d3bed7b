"""Authentication and profile endpoints"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import get_current_user, get_session_token
from seatmarket.core.config import settings
from seatmarket.core.database import get_db
from seatmarket.middleware.rate_limiter import limiter
from seatmarket.models import User
from seatmarket.schemas import (
    SignUpRequest, SignInRequest, SessionResponse, UserResponse, MeResponse,
    OrganizerResponse, ProfileUpdate, OrganizerProfileUpdate,
)
from seatmarket.services.auth_service import AuthService

router = APIRouter()


@router.post("/auth/sign-up", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
async def sign_up(request: Request, data: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """Create a customer or organizer account"""
    user = await AuthService.sign_up(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        organizer_name=data.organizer_name,
    )
    return UserResponse.model_validate(user)


@router.post("/auth/sign-in", response_model=SessionResponse)
@limiter.limit("10/minute")
async def sign_in(
    request: Request,
    response: Response,
    data: SignInRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Start a session. The token is returned in the body and also set as an
    HTTP-only cookie.
    """
    session = await AuthService.sign_in(
        db,
        email=data.email,
        password=data.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.token,
        max_age=settings.SESSION_DURATION_DAYS * 24 * 3600,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
    )
    user = await AuthService.get_session_user(db, session.token)
    return SessionResponse(
        token=session.token,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/auth/sign-out", status_code=204)
async def sign_out(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    token = get_session_token(request)
    if token:
        await AuthService.sign_out(db, token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    response.status_code = 204
    return response


@router.get("/me", response_model=MeResponse)
async def get_me(user: User = Depends(get_current_user)):
    return MeResponse.model_validate(user)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await AuthService.update_profile(db, user, **data.model_dump(exclude_unset=True))
    return MeResponse.model_validate(user)


@router.patch("/me/organizer", response_model=OrganizerResponse)
async def update_my_organizer(
    data: OrganizerProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    organizer = await AuthService.update_organizer_profile(db, user, **data.model_dump(exclude_unset=True))
    return OrganizerResponse.model_validate(organizer)


@router.post("/me/organizer/rejection-seen", response_model=OrganizerResponse)
async def mark_rejection_seen(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    organizer = await AuthService.mark_rejection_seen(db, user)
    return OrganizerResponse.model_validate(organizer)
