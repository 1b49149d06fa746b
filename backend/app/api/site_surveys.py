"""
Site survey API endpoints.

WHAT: Generate the ERP proposal for a site survey's equipment.

WHY: The site survey is the preferred key for "one proposal per source".
Posting the same survey twice updates its proposal instead of creating a
second one.

HOW: ErpSyncService upserts the proposal after the ERP confirms the
document; the proposal then moves to SENT through the lifecycle service.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.exceptions import ErpSyncError, SiteSurveyNotFoundError, ValidationError
from app.dao.crm import CustomerDAO, SiteSurveyDAO
from app.db.session import get_db
from app.models.proposal import ProposalStatus
from app.models.user import User
from app.schemas.proposal import ErpSyncResponse, SiteSurveyProposalRequest
from app.services.erp_sync import ErpSyncService, ProposalSource
from app.services.proposal_lifecycle import ProposalLifecycleService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/site-surveys", tags=["site-surveys"])


@router.post(
    "/{site_survey_id}/generate-proposal",
    response_model=ErpSyncResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate ERP proposal from site survey",
)
async def generate_proposal_from_site_survey(
    site_survey_id: int,
    data: SiteSurveyProposalRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ErpSyncResponse:
    """
    Create the ERP document for a site survey and upsert its proposal.

    Raises:
        SiteSurveyNotFoundError (404): Unknown site survey
        ValidationError (400): Survey without customer, or customer without TRDR
        MissingErpCodesError (400): Lines without ERP code (missing_codes)
        ErpSyncError (502): ERP rejected the document or was unreachable
    """
    site_survey = await SiteSurveyDAO(db).get_by_id(site_survey_id)
    if site_survey is None:
        raise SiteSurveyNotFoundError(
            message=f"Site survey with id {site_survey_id} not found",
            resource_type="SiteSurvey",
            resource_id=site_survey_id,
        )

    customer = None
    if site_survey.customer_id is not None:
        customer = await CustomerDAO(db).get_by_id(site_survey.customer_id)
    if customer is None:
        raise ValidationError(
            message="Site survey is not linked to a customer",
            field="customer_id",
        )

    equipment = [item.as_line() for item in data.equipment]
    logger.info(
        "Generating ERP proposal for site survey %s (%d lines)",
        site_survey.id,
        len(equipment),
    )

    sync = await ErpSyncService(db).create_or_update(
        customer,
        equipment,
        ProposalSource(
            site_survey_id=site_survey.id,
            lead_id=site_survey.lead_id,
            contact_id=site_survey.contact_id,
            title=site_survey.title,
        ),
        comments=data.comments or f"Proposal for {site_survey.title} - Generated from CRM",
        series=data.series,
        actor_id=current_user.id,
    )
    if not sync.success:
        raise ErpSyncError(message=sync.error, errorcode=sync.errorcode)

    # WHY: The ERP document exists now. Its identifiers are committed before
    # the status change so a failed transition cannot discard them.
    await db.commit()

    result = await ProposalLifecycleService(db).transition(
        sync.proposal.id,
        ProposalStatus.SENT,
        actor_id=current_user.id,
        note=f"ERP quote {sync.proposal_number}",
    )
    return ErpSyncResponse(
        message="Proposal created successfully in ERP",
        proposal_id=result.proposal.id,
        proposal_number=sync.proposal_number,
        status=result.proposal.status,
        erp_data=sync.erp_data,
        created=sync.created,
        items_count=len(equipment),
    )
