"""
User API routes (admin only).
"""
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.database import get_session
from leadcrm.config import settings
from leadcrm.services.user_service import UserService, user_response
from leadcrm.schemas.user import UserCreate, UserListResponse, UserDetailResponse
from leadcrm.api.deps import get_current_admin
from leadcrm.models.user import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_sales_users(
    current_user: User = Depends(get_current_admin),
    session: AsyncSession = Depends(get_session)
):
    """List sales users available for assignment."""
    user_service = UserService(session)
    users = await user_service.list_sales_users()
    return UserListResponse(users=[user_response(u) for u in users])


@router.post("", response_model=UserDetailResponse, status_code=201)
async def create_sales_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_admin),
    session: AsyncSession = Depends(get_session)
):
    """Create a sales user."""
    user_service = UserService(session)
    user = await user_service.create_sales_user(
        user_data.name,
        user_data.email,
        user_data.password,
        user_data.role
    )
    return UserDetailResponse(user=user_response(user))
