"""
RFP API endpoints.

WHAT: Generate (or regenerate) the proposal that answers an RFP.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.proposal import ProposalResponse, RfpProposalRequest
from app.services.proposal_service import ProposalService


router = APIRouter(prefix="/rfps", tags=["rfps"])


@router.post(
    "/{rfp_id}/generate-proposal",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate proposal from RFP",
)
async def generate_proposal_from_rfp(
    rfp_id: int,
    data: RfpProposalRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProposalResponse:
    """
    Create the RFP's proposal, or refresh the existing one.

    WHY: One proposal per source document. Regenerating updates the same
    row and keeps the replaced document URL in the notes.

    Raises:
        RfpNotFoundError (404): If the RFP doesn't exist
    """
    proposal = await ProposalService(db).generate_from_rfp(
        rfp_id,
        data.model_dump(exclude_none=True),
        actor_id=current_user.id,
    )
    return ProposalResponse.model_validate(proposal)
