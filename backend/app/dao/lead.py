"""
Lead Data Access Objects.

WHY: Closing a lead always writes two rows (the lead itself and its status
change audit row). Keeping both behind one DAO method means callers cannot
forget the audit row.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.lead import Lead, LeadStatus, LeadStatusChange


class LeadDAO(BaseDAO[Lead]):
    """
    Data Access Object for Lead model.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    async def change_status(
        self,
        lead: Lead,
        to_status: LeadStatus,
        stage: Optional[str],
        changed_by: Optional[int],
        note: Optional[str] = None,
    ) -> LeadStatusChange:
        """
        Move a lead to a new status and record the change.

        Args:
            lead: Loaded lead instance
            to_status: New status
            stage: New pipeline stage marker (None leaves it unchanged)
            changed_by: Acting user id
            note: Free-text reason

        Returns:
            The appended LeadStatusChange row
        """
        from_status = lead.status.value if lead.status else None

        lead.status = to_status
        if stage is not None:
            lead.stage = stage
        await self.save(lead)

        change = LeadStatusChange(
            lead_id=lead.id,
            from_status=from_status,
            to_status=to_status.value,
            changed_by=changed_by,
            note=note,
        )
        self.session.add(change)
        await self.session.flush()
        return change

    async def get_status_changes(self, lead_id: int) -> List[LeadStatusChange]:
        """
        Audit trail for a lead, oldest first.

        Args:
            lead_id: Lead ID

        Returns:
            Status change rows
        """
        result = await self.session.execute(
            select(LeadStatusChange)
            .where(LeadStatusChange.lead_id == lead_id)
            .order_by(LeadStatusChange.created_at, LeadStatusChange.id)
        )
        return list(result.scalars().all())
