"""
Authentication service - login and session tokens.
"""
import logging
from typing import Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.core.security import create_session_token, verify_password
from leadcrm.core.exceptions import raise_unauthorized, raise_validation_error
from leadcrm.repositories.user_repo import UserRepository
from leadcrm.models.user import User, SALES

logger = logging.getLogger(__name__)


def session_payload(user: User) -> dict:
    """Claims stored in the session cookie."""
    return {
        "sub": user.email,
        "user_id": str(user.id),
        "name": user.full_name or user.email,
        "email": user.email,
        # Anything that is not admin works as sales
        "role": user.normalized_role or SALES,
    }


class AuthService:
    """Service for authentication operations."""
    
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
    
    async def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """Authenticate user and return it with a fresh session token."""
        if not email or not password:
            raise_validation_error("Email and password required")
        
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise_unauthorized("Invalid credentials")
        
        if not user.is_active:
            raise_unauthorized("User account is deactivated")
        
        token = create_session_token(session_payload(user))
        await self.user_repo.update_last_login(user.id)
        return user, token
