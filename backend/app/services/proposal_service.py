"""
Proposal generation service.

WHAT: Builds or refreshes a proposal's content from an RFP.

WHY: Sales regenerate proposals many times while an RFP is negotiated.
Each regeneration must update the one proposal that belongs to the source
document, and keep a trace of the document it replaces.

HOW:
1. Load the RFP, its lead, and the lead's latest site survey
2. Build content sections (caller text wins, otherwise a summary of the
   RFP equipment)
3. find_for_source(site survey, else RFP)
4. Update in place with a revision note, or create a DRAFT through
   create_for_source (a lost insert race falls through to the update)
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import RfpNotFoundError
from app.dao.crm import CustomerDAO, SiteSurveyDAO, RfpDAO
from app.dao.lead import LeadDAO
from app.dao.proposal import ProposalDAO
from app.models.proposal import Proposal, ProposalStage, ProposalStatus
from app.models.source_document import Rfp, SiteSurvey


logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    "project_title",
    "project_description",
    "project_scope",
    "project_duration",
    "project_start_date",
    "project_end_date",
)

CONTENT_FIELDS = (
    "infrastructure_desc",
    "technical_desc",
    "products_desc",
    "services_desc",
    "scope_of_work",
)


def split_equipment(
    equipment: List[Mapping[str, Any]],
) -> Tuple[List[Mapping[str, Any]], List[Mapping[str, Any]]]:
    """
    Split RFP equipment into (products, services).

    An entry is a service when its type (or item_type) is "service" or it
    carries a service_id; everything else is a product.
    """
    products, services = [], []
    for item in equipment or []:
        kind = item.get("type") or item.get("item_type")
        if kind == "service" or (kind is None and item.get("service_id")):
            services.append(item)
        else:
            products.append(item)
    return products, services


def _label(value: Any) -> Optional[str]:
    # Brand / category may be nested objects in RFP payloads
    if isinstance(value, Mapping):
        return value.get("name")
    return value


def _describe(items: List[Mapping[str, Any]], default_name: str) -> Optional[str]:
    lines = []
    for item in items:
        line = f"- {item.get('quantity') or 1} x {item.get('name') or default_name}"
        brand = _label(item.get("brand"))
        if brand:
            line += f" ({brand})"
        lines.append(line)
    return "\n".join(lines) or None


def build_content(
    rfp: Rfp,
    customer_name: str,
    site_survey: Optional[SiteSurvey],
    overrides: Mapping[str, Any],
) -> Dict[str, Optional[str]]:
    """
    Build the generated content sections.

    WHY: Deterministic so regenerating with the same inputs gives the same
    text; caller-supplied sections always win.

    Args:
        rfp: Source RFP
        customer_name: Customer display name
        site_survey: Lead's site survey, if any
        overrides: Caller-supplied section texts

    Returns:
        Dict with one entry per CONTENT_FIELDS key
    """
    products, services = split_equipment(rfp.equipment)
    title = overrides.get("project_title") or rfp.title

    generated = {
        "infrastructure_desc": site_survey.description if site_survey else None,
        "technical_desc": (
            f"{title} for {customer_name}: {len(products)} product line(s) "
            f"and {len(services)} service line(s)."
        ),
        "products_desc": _describe(products, "Product"),
        "services_desc": _describe(services, "Service"),
        "scope_of_work": overrides.get("project_scope") or rfp.description,
    }
    return {
        key: overrides.get(key) if overrides.get(key) else generated[key]
        for key in CONTENT_FIELDS
    }


class ProposalService:
    """
    Service for generating proposals from source documents.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.proposal_dao = ProposalDAO(session)
        self.rfp_dao = RfpDAO(session)
        self.lead_dao = LeadDAO(session)
        self.customer_dao = CustomerDAO(session)
        self.site_survey_dao = SiteSurveyDAO(session)

    async def generate_from_rfp(
        self,
        rfp_id: int,
        payload: Mapping[str, Any],
        actor_id: Optional[int],
    ) -> Proposal:
        """
        Create or refresh the proposal for an RFP.

        Args:
            rfp_id: Source RFP
            payload: Project metadata and optional content section texts
            actor_id: Acting user (generated_by on new proposals)

        Returns:
            The created or updated proposal

        Raises:
            RfpNotFoundError: If the RFP doesn't exist
        """
        rfp = await self.rfp_dao.get_by_id(rfp_id)
        if not rfp:
            raise RfpNotFoundError(
                message=f"RFP with id {rfp_id} not found",
                resource_type="Rfp",
                resource_id=rfp_id,
            )

        site_survey = None
        if rfp.lead_id is not None:
            site_survey = await self.site_survey_dao.get_for_lead(rfp.lead_id)

        customer = await self.customer_dao.get_by_id(rfp.customer_id)
        content = build_content(rfp, customer.name if customer else "", site_survey, payload)
        project = {key: payload.get(key) for key in PROJECT_FIELDS if payload.get(key) is not None}

        site_survey_id = site_survey.id if site_survey else None
        existing = await self.proposal_dao.find_for_source(
            site_survey_id=site_survey_id,
            rfp_id=rfp.id,
        )

        if existing is None:
            proposal, created = await self.proposal_dao.create_for_source(
                rfp_id=rfp.id,
                lead_id=rfp.lead_id,
                site_survey_id=site_survey_id,
                customer_id=rfp.customer_id,
                contact_id=rfp.contact_id,
                status=ProposalStatus.DRAFT,
                stage=ProposalStage.CONTENT_GENERATION,
                generated_by=actor_id,
                **project,
                **content,
            )
            if created:
                logger.info("Proposal %s created from RFP %s by user %s", proposal.id, rfp.id, actor_id)
                return proposal
            existing = proposal

        if existing.word_document_url:
            revision = (
                f"--- Revision {datetime.utcnow().isoformat()} ---\n"
                f"Old Document: {existing.word_document_url}"
            )
            existing.notes = f"{existing.notes}\n\n{revision}" if existing.notes else revision
        existing.rfp_id = rfp.id
        for field_name, value in {**project, **content}.items():
            setattr(existing, field_name, value)
        existing.stage = ProposalStage.CONTENT_GENERATION
        proposal = await self.proposal_dao.save(existing)
        logger.info("Proposal %s regenerated from RFP %s", proposal.id, rfp.id)
        return proposal
