"""
Proposal Data Access Object (DAO).

WHAT: Database operations for the Proposal model.

WHY: "One proposal per source document" is backed by partial unique
indexes on the source keys. Writers look the proposal up through
find_for_source and insert through create_for_source, which turns a lost
insert race into an update of the existing row.

HOW: Extends BaseDAO with:
- Source document lookup (site survey preferred, RFP fallback)
- Race-safe insert keyed on the source document
- Lead-based queries
"""

import logging
from typing import Any, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.proposal import Proposal


logger = logging.getLogger(__name__)


class ProposalDAO(BaseDAO[Proposal]):
    """
    Data Access Object for Proposal model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize ProposalDAO.

        Args:
            session: Async database session
        """
        super().__init__(Proposal, session)

    async def get_latest_by_site_survey(self, site_survey_id: int) -> Optional[Proposal]:
        """
        Latest proposal generated from a site survey.

        WHY: "Latest" rather than "the" proposal so that rows written
        before the unique index existed still resolve deterministically.
        """
        result = await self.session.execute(
            select(Proposal)
            .where(Proposal.site_survey_id == site_survey_id)
            .order_by(Proposal.created_at.desc(), Proposal.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_latest_by_rfp(self, rfp_id: int) -> Optional[Proposal]:
        """Latest proposal generated from an RFP."""
        result = await self.session.execute(
            select(Proposal)
            .where(Proposal.rfp_id == rfp_id)
            .order_by(Proposal.created_at.desc(), Proposal.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_for_source(
        self,
        site_survey_id: Optional[int] = None,
        rfp_id: Optional[int] = None,
    ) -> Optional[Proposal]:
        """
        Find the live proposal for a source document.

        WHAT: Looks up by site survey when one is given, otherwise by RFP.

        WHY: The site survey is the preferred key. When a site survey is
        given the RFP is not consulted, so an RFP-only proposal is never
        hijacked by a different survey.

        Args:
            site_survey_id: Preferred key
            rfp_id: Fallback key

        Returns:
            Existing proposal or None
        """
        if site_survey_id is not None:
            return await self.get_latest_by_site_survey(site_survey_id)
        if rfp_id is not None:
            return await self.get_latest_by_rfp(rfp_id)
        return None

    async def create_for_source(self, **kwargs: Any) -> Tuple[Proposal, bool]:
        """
        Insert a proposal unless its source document already has one.

        WHY: Callers look the source up first, but a concurrent request for
        the same source can insert between that lookup and this write (the
        ERP call sits in between). The unique source indexes reject the
        second insert, which then resolves to the row that got there first.

        HOW: The INSERT runs in a SAVEPOINT, so a rejected insert leaves the
        caller's transaction usable.

        Args:
            **kwargs: Field values for the new proposal

        Returns:
            (proposal, created); created is False when an existing row is returned

        Raises:
            IntegrityError: Any violation not explained by an existing source row
        """
        proposal = Proposal(**kwargs)
        try:
            async with self.session.begin_nested():
                self.session.add(proposal)
                await self.session.flush()
        except IntegrityError:
            existing = await self.find_for_source(
                site_survey_id=kwargs.get("site_survey_id"),
                rfp_id=kwargs.get("rfp_id"),
            )
            if existing is None:
                raise
            logger.info(
                "Proposal for source (site_survey=%s, rfp=%s) already exists as %s",
                kwargs.get("site_survey_id"),
                kwargs.get("rfp_id"),
                existing.id,
            )
            return existing, False

        await self.session.refresh(proposal)
        return proposal, True

    async def get_by_lead(self, lead_id: int) -> List[Proposal]:
        """
        All proposals for a lead, newest first.

        Args:
            lead_id: Lead ID

        Returns:
            Proposals
        """
        result = await self.session.execute(
            select(Proposal)
            .where(Proposal.lead_id == lead_id)
            .order_by(Proposal.created_at.desc(), Proposal.id.desc())
        )
        return list(result.scalars().all())
