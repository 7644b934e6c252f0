"""
User service - sales user management and admin bootstrap.
"""
import logging
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.core.exceptions import raise_already_exists, raise_validation_error
from leadcrm.core.security import get_password_hash
from leadcrm.repositories.user_repo import UserRepository
from leadcrm.models.user import User, ADMIN, SALES, SALES_ROLE_ALIASES
from leadcrm.schemas.user import UserResponse

logger = logging.getLogger(__name__)


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.full_name or user.email,
        email=user.email,
        role=user.normalized_role or SALES,
    )


class UserService:
    """Service for user operations."""
    
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
    
    async def list_sales_users(self) -> List[User]:
        """All active users holding a sales role (any legacy spelling)."""
        return await self.user_repo.list_by_roles(SALES_ROLE_ALIASES)
    
    async def create_sales_user(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = SALES
    ) -> User:
        """Create a sales user. Admin accounts cannot be created here."""
        if not name or not email or not password:
            raise_validation_error("Name, email, and password are required")
        if role != SALES:
            raise_validation_error("Only sales users can be created here")
        
        email = email.strip().lower()
        if await self.user_repo.get_by_email(email):
            raise_already_exists("User", "email", email)
        
        user = await self.user_repo.create({
            "email": email,
            "password_hash": get_password_hash(password),
            "full_name": name.strip(),
            "role": SALES,
        })
        logger.info(f"Sales user {email} created")
        return user
    
    async def ensure_admin(self, email: str, password: str, name: str = "Admin") -> User:
        """Create the bootstrap admin unless a user with that email exists."""
        email = email.strip().lower()
        existing = await self.user_repo.get_by_email(email)
        if existing:
            return existing
        
        user = await self.user_repo.create({
            "email": email,
            "password_hash": get_password_hash(password),
            "full_name": name,
            "role": ADMIN,
        })
        logger.info(f"Bootstrap admin {email} created")
        return user
