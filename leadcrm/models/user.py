"""
User model and role helpers.
Admins manage leads; sales users work the leads assigned to them.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from leadcrm.core.timestamps import timestamp_field


ADMIN = "admin"
SALES = "sales"

# Legacy spellings stored for sales accounts
SALES_ROLE_ALIASES = ("sales", "sales_user")


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Collapse stored role strings to 'admin' or 'sales'; None if unknown."""
    if role == ADMIN:
        return ADMIN
    if role in SALES_ROLE_ALIASES:
        return SALES
    return None


class User(SQLModel, table=True):
    """
    User model with authentication and profile info.
    The role is fixed at creation time.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    
    # Auth
    email: str = Field(unique=True, index=True)
    password_hash: str
    
    # Profile
    full_name: Optional[str] = None
    role: str = Field(default=SALES, index=True)  # admin, sales (legacy: sales_user)
    
    is_active: bool = Field(default=True)
    
    # Timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
    last_login_at: Optional[datetime] = timestamp_field(nullable=True)
    
    @property
    def normalized_role(self) -> Optional[str]:
        return normalize_role(self.role)
    
    @property
    def is_admin(self) -> bool:
        return self.normalized_role == ADMIN
    
    @property
    def is_sales(self) -> bool:
        return self.normalized_role == SALES
