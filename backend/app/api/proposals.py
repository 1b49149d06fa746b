"""
Proposal lifecycle API endpoints.

WHAT: Read a proposal, move it through its status lifecycle, post it to
the ERP, and record deliveries to the customer.

WHY: Status changes carry side effects (dates, notes, lead conversion,
project creation) that must be applied the same way whichever client
triggers them, so all of it lives behind ProposalLifecycleService.

HOW: FastAPI router with:
- Lifecycle transitions via ProposalLifecycleService
- ERP posting via ErpSyncService, then a transition to APPROVED
- Send tracking via ProposalLifecycleService.record_delivery
"""

import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.exceptions import ErpSyncError, ResourceNotFoundError, ValidationError
from app.dao.crm import CustomerDAO, RfpDAO
from app.db.session import get_db
from app.models.proposal import Proposal, ProposalStatus
from app.models.user import User
from app.schemas.proposal import (
    ErpSyncRequest,
    ErpSyncResponse,
    ProjectResponse,
    ProposalDeliveryRequest,
    ProposalResponse,
    ProposalStatusUpdate,
    ProposalTransitionResponse,
)
from app.services.erp_sync import ErpSyncService, ProposalSource
from app.services.proposal_lifecycle import (
    ConversionOptions,
    ProposalLifecycleService,
    TransitionResult,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["proposals"])


def _transition_to_response(result: TransitionResult) -> ProposalTransitionResponse:
    """
    Convert a TransitionResult to its response schema.
    """
    return ProposalTransitionResponse(
        proposal=ProposalResponse.model_validate(result.proposal),
        project=ProjectResponse.model_validate(result.project) if result.project else None,
        lead_converted=result.lead_converted,
        changed=result.changed,
    )


async def _equipment_for(db: AsyncSession, proposal: Proposal) -> List[Dict[str, Any]]:
    """
    Equipment to post for an existing proposal.

    WHY: Proposals generated from an RFP carry no snapshot until their
    first ERP sync; the RFP's equipment list is the fallback.
    """
    if proposal.equipment:
        return list(proposal.equipment)
    if proposal.rfp_id is not None:
        rfp = await RfpDAO(db).get_by_id(proposal.rfp_id)
        if rfp is not None:
            return list(rfp.equipment)
    return []


@router.get(
    "/{proposal_id}",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Get proposal",
)
async def get_proposal(
    proposal_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProposalResponse:
    """
    Get proposal by ID.

    Raises:
        ProposalNotFoundError (404): If proposal not found
    """
    proposal = await ProposalLifecycleService(db).get_proposal(proposal_id)
    return ProposalResponse.model_validate(proposal)


@router.put(
    "/{proposal_id}/status",
    response_model=ProposalTransitionResponse,
    status_code=status.HTTP_200_OK,
    summary="Change proposal status",
)
async def update_proposal_status(
    proposal_id: int,
    data: ProposalStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProposalTransitionResponse:
    """
    Move a proposal to a new status.

    WHAT: Applies stamps and a status note. ACCEPTED / WON with a lead
    also closes the lead as won and creates its project, atomically.

    Raises:
        ValidationError (400): Unknown status
        ProposalNotFoundError (404): If proposal not found
    """
    result = await ProposalLifecycleService(db).transition(
        proposal_id,
        data.status,
        actor_id=current_user.id,
        note=data.note,
        conversion=ConversionOptions(
            project_manager_id=data.project_manager_id,
            project_title=data.project_title,
            project_description=data.project_description,
            start_date=data.project_start_date,
            end_date=data.project_end_date,
        ),
    )
    return _transition_to_response(result)


@router.post(
    "/{proposal_id}/send-to-erp",
    response_model=ErpSyncResponse,
    status_code=status.HTTP_200_OK,
    summary="Post proposal to the ERP",
)
async def send_proposal_to_erp(
    proposal_id: int,
    data: Optional[ErpSyncRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ErpSyncResponse:
    """
    Create the ERP document for an existing proposal.

    WHAT: On success stores the ERP identifiers on the proposal and moves
    it to APPROVED (stage ERP_INTEGRATION).

    Raises:
        ValidationError (400): No equipment, or customer without TRDR
        MissingErpCodesError (400): Lines without ERP code (missing_codes)
        ErpSyncError (502): ERP rejected the document or was unreachable
    """
    data = data or ErpSyncRequest()
    lifecycle = ProposalLifecycleService(db)
    proposal = await lifecycle.get_proposal(proposal_id)

    customer = await CustomerDAO(db).get_by_id(proposal.customer_id)
    if customer is None:
        raise ResourceNotFoundError(
            message=f"Customer with id {proposal.customer_id} not found",
            resource_type="Customer",
            resource_id=proposal.customer_id,
        )

    if data.equipment:
        equipment = [item.as_line() for item in data.equipment]
    else:
        equipment = await _equipment_for(db, proposal)
    if not equipment:
        raise ValidationError(
            message="No products or services found in proposal",
            field="equipment",
        )

    comments = data.comments
    if not comments and proposal.project_title:
        comments = f"Proposal: {proposal.project_title}"

    sync = await ErpSyncService(db).create_or_update(
        customer,
        equipment,
        ProposalSource(
            site_survey_id=proposal.site_survey_id,
            rfp_id=proposal.rfp_id,
            lead_id=proposal.lead_id,
            contact_id=proposal.contact_id,
        ),
        comments=comments,
        series=data.series,
        actor_id=current_user.id,
        proposal=proposal,
    )
    if not sync.success:
        raise ErpSyncError(message=sync.error, errorcode=sync.errorcode)

    # WHY: The ERP document exists now. Its identifiers are committed before
    # the status change so a failed transition cannot discard them.
    await db.commit()

    result = await lifecycle.transition(
        proposal.id,
        ProposalStatus.APPROVED,
        actor_id=current_user.id,
        note=f"ERP quote {sync.proposal_number}",
    )
    return ErpSyncResponse(
        message=f"Proposal created in ERP with quote number {sync.proposal_number}",
        proposal_id=result.proposal.id,
        proposal_number=sync.proposal_number,
        status=result.proposal.status,
        erp_data=sync.erp_data,
        created=sync.created,
        items_count=len(equipment),
    )


@router.post(
    "/{proposal_id}/deliveries",
    response_model=ProposalTransitionResponse,
    status_code=status.HTTP_200_OK,
    summary="Record proposal delivery",
)
async def record_proposal_delivery(
    proposal_id: int,
    data: ProposalDeliveryRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProposalTransitionResponse:
    """
    Record that the proposal document was sent to the customer.

    Raises:
        ValidationError (400): No recipients, or no document generated
        ProposalNotFoundError (404): If proposal not found
    """
    result = await ProposalLifecycleService(db).record_delivery(
        proposal_id,
        data.recipient_emails,
        actor_id=current_user.id,
    )
    return _transition_to_response(result)
