"""
Lead repository with search and bulk operations.
"""
import uuid
from typing import Optional, List, Set

from sqlmodel import select, or_, col
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.models.lead import Lead
from leadcrm.repositories.base import BaseRepository
from leadcrm.schemas.lead import LeadFilter


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)
    
    async def search(self, filters: Optional[LeadFilter] = None) -> List[Lead]:
        """Search leads, oldest first."""
        query = select(Lead)
        
        if filters:
            if filters.assigned_to:
                query = query.where(Lead.assigned_to == filters.assigned_to)
            if filters.unassigned:
                query = query.where(col(Lead.assigned_to).is_(None))
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        col(Lead.full_name).ilike(search_term),
                        col(Lead.email).ilike(search_term),
                        col(Lead.phone).ilike(search_term),
                        col(Lead.company).ilike(search_term)
                    )
                )
        
        query = query.order_by(col(Lead.created_at))
        result = await self.session.exec(query)
        return list(result.all())
    
    async def list_unassigned(self) -> List[Lead]:
        """Leads nobody owns yet, in creation order."""
        return await self.search(LeadFilter(unassigned=True))
    
    async def get_known_emails(self) -> Set[str]:
        """Lower-cased emails of every stored lead (for deduplication)."""
        result = await self.session.exec(select(Lead.email))
        return {(email or "").strip().lower() for email in result.all()}
    
    async def bulk_create(self, leads_data: List[dict]) -> List[Lead]:
        """Create multiple leads in one commit."""
        leads = []
        for data in leads_data:
            lead = Lead(**data)
            self.session.add(lead)
            leads.append(lead)
        
        await self.session.commit()
        for lead in leads:
            await self.session.refresh(lead)
        
        return leads
    
    async def assign(self, lead_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Lead]:
        """Set the lead owner, overwriting any previous one."""
        return await self.update(lead_id, {"assigned_to": user_id})
    
    async def set_follow_up(self, lead_id: uuid.UUID, slot: int, content: str) -> Optional[Lead]:
        """Write a follow-up note into the given slot column."""
        return await self.update(lead_id, {f"follow_up_{slot}": content})
    
    async def close_deal(
        self,
        lead_id: uuid.UUID,
        amount: float,
        closed_month: str
    ) -> Optional[Lead]:
        """Record the closed deal amount and month."""
        return await self.update(lead_id, {
            "closed_amount": amount,
            "closed_month": closed_month
        })
