"""
Authentication schemas.
"""
from typing import Optional
from pydantic import BaseModel

from leadcrm.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """User login request."""
    email: Optional[str] = None
    password: Optional[str] = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@company.com",
                "password": "securepassword123"
            }
        }


class LoginResponse(BaseModel):
    ok: bool = True
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
