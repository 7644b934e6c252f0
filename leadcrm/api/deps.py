"""
API dependencies - shared across all routes.
"""
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.database import get_session
from leadcrm.config import settings
from leadcrm.core.security import verify_session_token
from leadcrm.core.exceptions import raise_unauthorized, raise_forbidden
from leadcrm.models.user import User
from leadcrm.repositories.user_repo import UserRepository


bearer_scheme = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """Session token from the session cookie, or a Bearer header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from the session token."""
    if not token:
        raise_unauthorized()
    
    payload = verify_session_token(token)
    if not payload:
        raise_unauthorized()
    
    try:
        user_id = uuid.UUID(payload.get("user_id") or "")
    except (TypeError, ValueError):
        raise_unauthorized()
    
    user = await UserRepository(session).get(user_id)
    if not user:
        raise_unauthorized("User not found")
    
    if not user.is_active:
        raise_unauthorized("User account is deactivated")
    
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Current user, must hold the admin role."""
    if not current_user.is_admin:
        raise_forbidden()
    return current_user
