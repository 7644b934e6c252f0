"""
Leads API routes.
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.database import get_session
from leadcrm.config import settings
from leadcrm.core.exceptions import raise_validation_error
from leadcrm.services.lead_service import LeadService, lead_response, note_response
from leadcrm.services.assignment_service import AssignmentService
from leadcrm.schemas.common import OkResponse
from leadcrm.schemas.lead import (
    LeadFilter, LeadListResponse, LeadDetailResponse, LeadImportResponse,
    NoteCreate, NoteListResponse, NoteDetailResponse,
    CloseDealRequest, CloseDealResponse,
    AssignRequest, BulkAssignRequest, BulkAssignResponse
)
from leadcrm.api.deps import get_current_user, get_current_admin
from leadcrm.models.user import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/leads", tags=["leads"])


@router.get("", response_model=LeadListResponse)
async def list_leads(
    search: Optional[str] = None,
    assigned_to: Optional[uuid.UUID] = None,
    unassigned: bool = False,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List leads. Sales users only see leads assigned to them."""
    filters = LeadFilter(search=search, assigned_to=assigned_to, unassigned=unassigned)
    
    lead_service = LeadService(session)
    leads = await lead_service.list(current_user, filters)
    return LeadListResponse(leads=[lead_response(lead) for lead in leads])


@router.post("", response_model=LeadImportResponse)
async def import_leads(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_admin),
    session: AsyncSession = Depends(get_session)
):
    """Import leads from a CSV or Excel file."""
    if file is None:
        raise_validation_error('CSV/Excel file required in form field "file"')
    content = await file.read()
    
    lead_service = LeadService(session)
    added = await lead_service.import_file(current_user, file.filename or "", content)
    return LeadImportResponse(added=added)


@router.post("/assign", response_model=OkResponse)
async def assign_lead(
    request: AssignRequest,
    current_user: User = Depends(get_current_admin),
    session: AsyncSession = Depends(get_session)
):
    """Assign one lead to a sales user."""
    assignment_service = AssignmentService(session)
    await assignment_service.assign(request.lead_id, request.user_id)
    return OkResponse()


@router.post("/assign/bulk", response_model=BulkAssignResponse)
async def bulk_assign_leads(
    request: BulkAssignRequest,
    current_user: User = Depends(get_current_admin),
    session: AsyncSession = Depends(get_session)
):
    """Alternate leads between two sales users."""
    assignment_service = AssignmentService(session)
    result = await assignment_service.assign_alternating(
        request.user_a,
        request.user_b,
        request.lead_ids
    )
    return BulkAssignResponse(**result)


@router.get("/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Get a lead by ID."""
    lead_service = LeadService(session)
    lead = await lead_service.get(current_user, lead_id)
    return LeadDetailResponse(lead=lead_response(lead))


@router.get("/{lead_id}/notes", response_model=NoteListResponse)
async def list_notes(
    lead_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List the follow-up notes of a lead."""
    lead_service = LeadService(session)
    notes = await lead_service.list_notes(current_user, lead_id)
    return NoteListResponse(notes=[note_response(n) for n in notes])


@router.post("/{lead_id}/notes", response_model=NoteDetailResponse)
async def add_note(
    lead_id: uuid.UUID,
    note_data: NoteCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Add a follow-up note in the next free slot."""
    lead_service = LeadService(session)
    note = await lead_service.add_note(current_user, lead_id, note_data.content)
    return NoteDetailResponse(note=note_response(note))


@router.post("/{lead_id}/closed", response_model=CloseDealResponse)
async def close_deal(
    lead_id: uuid.UUID,
    deal_data: CloseDealRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Record the closed deal amount and month."""
    lead_service = LeadService(session)
    lead = await lead_service.close_deal(
        current_user,
        lead_id,
        deal_data.amount,
        deal_data.closed_month
    )
    return CloseDealResponse(closed_amount=lead.closed_amount, closed_month=lead.closed_month)
