"""
Lead service - listing, import, follow-up notes and deal closing.
"""
import uuid
import logging
from typing import Optional, List
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.core.exceptions import PersistenceError, raise_not_found, raise_forbidden
from leadcrm.core.timestamps import utcnow
from leadcrm.repositories.lead_repo import LeadRepository
from leadcrm.models.lead import Lead
from leadcrm.models.user import User
from leadcrm.schemas.lead import LeadFilter, LeadResponse, NoteResponse
from leadcrm.services.commission import (
    calculate_commission,
    default_closed_month,
    parse_closed_amount,
)
from leadcrm.services.follow_ups import FollowUpLedger, FollowUpNote
from leadcrm.services.lead_import import decode_upload, select_new_leads

logger = logging.getLogger(__name__)


def note_response(note: FollowUpNote) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        slot=note.slot,
        user_id=note.user_id,
        content=note.content,
        created_at=note.created_at,
    )


def lead_response(lead: Lead, today: Optional[date] = None) -> LeadResponse:
    """Build the dashboard view of a lead, including derived commissions."""
    commission = calculate_commission(lead.closed_amount, lead.closed_month, today)
    return LeadResponse(
        id=lead.id,
        name=lead.full_name or "",
        email=lead.email or "",
        phone=lead.phone or "",
        company=lead.company or "",
        platform=lead.platform or "",
        preferred_time=lead.preferred_call_time or "",
        start_timeline=lead.start_timeline or "",
        has_website=lead.has_website,
        business_details=lead.business_details or "",
        assigned_to=lead.assigned_to,
        closed_amount=lead.closed_amount,
        closed_month=lead.closed_month,
        commission=float(commission.primary) if commission.primary is not None else None,
        recurring_commission=float(commission.recurring) if commission.recurring is not None else None,
        notes=[note_response(n) for n in FollowUpLedger(lead)],
        created_at=lead.created_at,
        updated_at=lead.updated_at,
    )


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)

    async def get_authorized(self, user: User, lead_id: uuid.UUID) -> Lead:
        """
        Load a lead the caller may act on.

        Admins get 404 for a missing lead. Sales users get 403 for any lead
        that is not assigned to them, whether or not it exists.
        """
        lead = await self.lead_repo.get(lead_id)
        if user.is_admin:
            if not lead:
                raise_not_found("Lead", str(lead_id))
            return lead

        if not lead or lead.assigned_to != user.id:
            raise_forbidden()
        return lead

    async def list(self, user: User, filters: Optional[LeadFilter] = None) -> List[Lead]:
        """List leads; sales users only ever see their own."""
        filters = filters or LeadFilter()
        if not user.is_admin:
            filters = LeadFilter(assigned_to=user.id, search=filters.search)
        return await self.lead_repo.search(filters)

    async def get(self, user: User, lead_id: uuid.UUID) -> Lead:
        """Get a lead by ID."""
        return await self.get_authorized(user, lead_id)

    async def import_file(self, user: User, filename: str, content: bytes) -> int:
        """Import leads from a CSV/XLSX upload. Returns the number added."""
        rows = decode_upload(filename, content)
        try:
            known_emails = await self.lead_repo.get_known_emails()

            new_leads = select_new_leads(rows, known_emails)
            if not new_leads:
                return 0

            created = await self.lead_repo.bulk_create(new_leads)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"Lead import failed: {e}")

        logger.info(f"User {user.id} imported {len(created)} leads from '{filename}'")
        return len(created)

    async def list_notes(self, user: User, lead_id: uuid.UUID) -> List[FollowUpNote]:
        lead = await self.get_authorized(user, lead_id)
        return FollowUpLedger(lead).notes()

    async def add_note(self, user: User, lead_id: uuid.UUID, content: Optional[str]) -> FollowUpNote:
        """Append a follow-up note in the lowest empty slot."""
        lead = await self.get_authorized(user, lead_id)
        slot, text = FollowUpLedger(lead).reserve(content)

        lead = await self.lead_repo.set_follow_up(lead_id, slot, text)
        return FollowUpNote(
            slot=slot,
            content=text,
            created_at=lead.updated_at,
            user_id=user.id,
        )

    async def close_deal(
        self,
        user: User,
        lead_id: uuid.UUID,
        amount,
        closed_month: Optional[str] = None
    ) -> Lead:
        """Record the deal outcome; the month defaults to the current one."""
        await self.get_authorized(user, lead_id)
        value = parse_closed_amount(amount)

        month = str(closed_month).strip() if closed_month is not None else ""
        if not month:
            month = default_closed_month(utcnow())

        lead = await self.lead_repo.close_deal(lead_id, value, month)
        logger.info(f"Lead {lead_id} closed at {value} for {month}")
        return lead
