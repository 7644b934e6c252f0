"""
Lead schemas.
"""
import uuid
from typing import Optional, List, Any
from datetime import datetime
from pydantic import BaseModel

from leadcrm.schemas.common import CamelModel, OkResponse


class NoteResponse(CamelModel):
    """A filled follow-up slot."""
    id: str  # "f<slot>"
    slot: int
    user_id: Optional[uuid.UUID] = None
    content: str
    created_at: datetime


class LeadResponse(CamelModel):
    """Lead as shown on the dashboard."""
    id: uuid.UUID
    name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    platform: str = ""
    preferred_time: str = ""
    start_timeline: str = ""
    has_website: Optional[bool] = None
    business_details: str = ""
    assigned_to: Optional[uuid.UUID] = None
    closed_amount: Optional[float] = None
    closed_month: Optional[str] = None
    commission: Optional[float] = None
    recurring_commission: Optional[float] = None
    notes: List[NoteResponse] = []
    created_at: datetime
    updated_at: datetime


class LeadFilter(BaseModel):
    """Lead filtering options."""
    assigned_to: Optional[uuid.UUID] = None
    unassigned: bool = False
    search: Optional[str] = None  # Search in name, email, phone, company


class LeadListResponse(BaseModel):
    leads: List[LeadResponse]


class LeadDetailResponse(BaseModel):
    lead: LeadResponse


class LeadImportResponse(BaseModel):
    """Spreadsheet import result."""
    added: int


class NoteCreate(BaseModel):
    content: Optional[str] = None


class NoteListResponse(BaseModel):
    notes: List[NoteResponse]


class NoteDetailResponse(BaseModel):
    note: NoteResponse


class CloseDealRequest(CamelModel):
    """Close a deal; amount may arrive as a number or a numeric string."""
    amount: Any = None
    closed_month: Optional[str] = None
    
    class Config:
        json_schema_extra = {
            "example": {"amount": 1000, "closedMonth": "2026-09"}
        }


class CloseDealResponse(CamelModel):
    ok: bool = True
    closed_amount: float
    closed_month: str


class AssignRequest(CamelModel):
    """Assign one lead to one sales user."""
    lead_id: Optional[str] = None
    user_id: Optional[str] = None


class BulkAssignRequest(CamelModel):
    """Alternate leads between two sales users."""
    user_a: Optional[str] = None
    user_b: Optional[str] = None
    lead_ids: Optional[List[str]] = None
    
    class Config:
        json_schema_extra = {
            "example": {
                "userA": "0b6c1c1e-6b8f-4bde-9d3c-1f6f0f1a2b3c",
                "userB": "7d1e2f3a-4b5c-6d7e-8f90-a1b2c3d4e5f6",
                "leadIds": []
            }
        }


class BulkAssignResponse(OkResponse):
    assigned: int
    total: int
