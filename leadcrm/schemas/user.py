"""
User schemas.
"""
import uuid
from typing import Optional, List
from pydantic import BaseModel, EmailStr


class UserResponse(BaseModel):
    """User as exposed to the dashboard (role already normalized)."""
    id: uuid.UUID
    name: str
    email: str
    role: str


class UserCreate(BaseModel):
    """Create a sales user."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[str] = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jane Seller",
                "email": "jane@company.com",
                "password": "securepassword123",
                "role": "sales"
            }
        }


class UserListResponse(BaseModel):
    users: List[UserResponse]


class UserDetailResponse(BaseModel):
    user: UserResponse
