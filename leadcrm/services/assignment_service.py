"""
Assignment service - hands leads to sales users.
"""
import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcrm.core.exceptions import raise_not_found, raise_validation_error
from leadcrm.models.lead import Lead
from leadcrm.models.user import User
from leadcrm.repositories.lead_repo import LeadRepository
from leadcrm.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_id(raw: Any) -> Optional[uuid.UUID]:
    """Parse an identifier sent by the dashboard; None if malformed."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw).strip())
    except (TypeError, ValueError, AttributeError):
        return None


def alternate(items: Sequence[T], user_a: uuid.UUID, user_b: uuid.UUID) -> List[Tuple[T, uuid.UUID]]:
    """Pair items with owners: even positions go to user_a, odd to user_b."""
    return [
        (item, user_a if index % 2 == 0 else user_b)
        for index, item in enumerate(items)
    ]


class AssignmentService:
    """Service for single and alternating lead assignment."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.user_repo = UserRepository(session)

    async def _get_sales_user(self, user_id: Optional[uuid.UUID]) -> Optional[User]:
        if user_id is None:
            return None
        user = await self.user_repo.get(user_id)
        if not user or not user.is_sales:
            return None
        return user

    async def assign(self, lead_id_raw: Any, user_id_raw: Any) -> Lead:
        """Assign one lead to a sales user, replacing any previous owner."""
        if not lead_id_raw or not user_id_raw:
            raise_validation_error("leadId and userId required")

        user_id = parse_id(user_id_raw)
        user = await self.user_repo.get(user_id) if user_id else None
        if not user:
            raise_not_found("Target user")
        if not user.is_sales:
            raise_not_found("Target sales user")

        lead_id = parse_id(lead_id_raw)
        if lead_id is None:
            raise_validation_error("Invalid leadId")

        lead = await self.lead_repo.get(lead_id)
        if not lead:
            raise_not_found("Lead", str(lead_id))

        lead = await self.lead_repo.assign(lead_id, user.id)
        logger.info(f"Lead {lead_id} assigned to {user.id}")
        return lead

    async def assign_alternating(
        self,
        user_a_raw: Any,
        user_b_raw: Any,
        lead_ids_raw: Optional[List[Any]] = None
    ) -> dict:
        """
        Split leads between two sales users in strict alternation.

        Explicit lead ids are used in the order given; otherwise every
        unassigned lead is used in creation order. A failed update is
        counted out but does not stop the batch.
        """
        if not user_a_raw or not user_b_raw:
            raise_validation_error("userA and userB required")

        user_a_id, user_b_id = parse_id(user_a_raw), parse_id(user_b_raw)
        if str(user_a_raw).strip() == str(user_b_raw).strip() or (
            user_a_id is not None and user_a_id == user_b_id
        ):
            raise_validation_error("Choose two different employees")

        user_a = await self._get_sales_user(user_a_id)
        user_b = await self._get_sales_user(user_b_id)
        if not user_a or not user_b:
            raise_validation_error("Invalid sales employees")

        if lead_ids_raw:
            target_ids = [lid for lid in (parse_id(raw) for raw in lead_ids_raw) if lid]
        else:
            target_ids = [lead.id for lead in await self.lead_repo.list_unassigned()]

        if not target_ids:
            raise_validation_error("No target leads to assign")

        assigned = 0
        for lead_id, owner_id in alternate(target_ids, user_a.id, user_b.id):
            try:
                lead = await self.lead_repo.assign(lead_id, owner_id)
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.warning(f"Bulk assignment of lead {lead_id} failed: {e}")
                continue
            if lead is None:
                logger.warning(f"Bulk assignment skipped missing lead {lead_id}")
                continue
            assigned += 1

        logger.info(f"Bulk assignment: {assigned}/{len(target_ids)} leads assigned")
        return {"ok": True, "assigned": assigned, "total": len(target_ids)}
