"""
User repository.
"""
from typing import Optional, List, Iterable
import uuid

from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.core.timestamps import utcnow
from leadcrm.models.user import User
from leadcrm.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(User, session)
    
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email.strip().lower())
        result = await self.session.exec(query)
        return result.first()
    
    async def list_by_roles(self, roles: Iterable[str]) -> List[User]:
        """Active users whose stored role is one of the given strings."""
        query = (
            select(User)
            .where(col(User.role).in_(list(roles)), User.is_active == True)
            .order_by(col(User.created_at))
        )
        result = await self.session.exec(query)
        return list(result.all())
    
    async def update_last_login(self, user_id: uuid.UUID) -> None:
        """Update user's last login timestamp."""
        user = await self.get(user_id)
        if user:
            user.last_login_at = utcnow()
            self.session.add(user)
            await self.session.commit()
