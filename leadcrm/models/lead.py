"""
Lead model - core entity of the CRM.
Follow-up notes are stored as ten flat slot columns on the lead row.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from leadcrm.core.timestamps import timestamp_field


class Lead(SQLModel, table=True):
    """
    Lead entity - a prospective customer.
    Optionally assigned to a sales user and optionally closed with a deal amount.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    
    # Contact info
    full_name: str = Field(default="", index=True)
    email: str = Field(unique=True, index=True)  # stored lower-cased
    phone: Optional[str] = None
    company: Optional[str] = Field(default=None, index=True)
    
    # Qualification
    platform: Optional[str] = None
    preferred_call_time: Optional[str] = None
    start_timeline: Optional[str] = None
    has_website: Optional[bool] = None  # None when the answer was not yes/no
    business_details: Optional[str] = None
    
    # Assignment
    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)
    
    # Deal outcome
    closed_amount: Optional[float] = None
    closed_month: Optional[str] = None  # ISO timestamp or YYYY-MM
    
    # Follow-up slots, filled lowest first and never overwritten
    follow_up_1: Optional[str] = None
    follow_up_2: Optional[str] = None
    follow_up_3: Optional[str] = None
    follow_up_4: Optional[str] = None
    follow_up_5: Optional[str] = None
    follow_up_6: Optional[str] = None
    follow_up_7: Optional[str] = None
    follow_up_8: Optional[str] = None
    follow_up_9: Optional[str] = None
    follow_up_10: Optional[str] = None
    
    # Timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
