"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.database import get_session
from leadcrm.config import settings
from leadcrm.services.auth_service import AuthService
from leadcrm.services.user_service import user_response
from leadcrm.schemas.auth import LoginRequest, LoginResponse, MeResponse
from leadcrm.schemas.common import OkResponse
from leadcrm.api.deps import get_current_user
from leadcrm.models.user import User

router = APIRouter(prefix=settings.API_PREFIX, tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session)
):
    """Login and start a cookie session."""
    auth_service = AuthService(session)
    user, token = await auth_service.login(request.email, request.password)
    
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )
    return LoginResponse(user=user_response(user))


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response):
    """End the cookie session."""
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return OkResponse()


@router.get("/me", response_model=MeResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Current session user."""
    return MeResponse(user=user_response(current_user))
