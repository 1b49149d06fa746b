"""
DAOs for CRM records the proposal flow reads: customers, RFPs, site surveys.

WHY: These records are owned by other parts of the CRM. The proposal
engine only reads them, so their DAOs stay thin.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.customer import Customer
from app.models.source_document import Rfp, SiteSurvey


class CustomerDAO(BaseDAO[Customer]):
    def __init__(self, session: AsyncSession):
        super().__init__(Customer, session)


class RfpDAO(BaseDAO[Rfp]):
    def __init__(self, session: AsyncSession):
        super().__init__(Rfp, session)


class SiteSurveyDAO(BaseDAO[SiteSurvey]):
    """
    Data Access Object for SiteSurvey model.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(SiteSurvey, session)

    async def get_for_lead(self, lead_id: int) -> Optional[SiteSurvey]:
        """
        Most recent site survey attached to a lead.

        WHY: An RFP reaches its site survey through the lead; when one exists
        it is the preferred idempotency key for the proposal.

        Args:
            lead_id: Lead ID

        Returns:
            Latest site survey for the lead, or None
        """
        result = await self.session.execute(
            select(SiteSurvey)
            .where(SiteSurvey.lead_id == lead_id)
            .order_by(SiteSurvey.created_at.desc(), SiteSurvey.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
