"""
ERP synchronization service.

WHAT: Posts a proposal's equipment to the ERP and persists the ERP's
document identifiers on the matching local proposal.

WHY: Two rules must hold together:
1. Nothing is written locally unless the ERP confirmed the document
2. A source document (site survey, or RFP when there is no survey) never
   ends up with two proposals; regenerating updates the existing row

HOW:
1. Customer must carry a TRDR (checked before any network call)
2. Map and validate lines; any line without an ERP code aborts the call
3. Look up the existing proposal for the source BEFORE the remote call
4. Call the ERP (single attempt)
5. On success update that proposal in place, or create a new one; an
   insert that loses a race for the source key updates the winner instead

The session is only flushed here. The request's get_db dependency owns
the commit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import MissingErpCodesError, ValidationError
from app.dao.proposal import ProposalDAO
from app.models.customer import Customer
from app.models.proposal import ErpSyncStatus, Proposal, ProposalStage, ProposalStatus
from app.services.erp_client import ErpClient, ErpProposalRequest, ErpProposalResult
from app.services.erp_mapping import map_equipment_lines, validate_lines


logger = logging.getLogger(__name__)

# Equipment keys kept in the proposal snapshot
SNAPSHOT_KEYS = (
    "id",
    "type",
    "name",
    "brand",
    "category",
    "quantity",
    "price",
    "margin",
    "total_price",
    "erp_code",
)


@dataclass
class ProposalSource:
    """
    Where a proposal comes from.

    WHY: site_survey_id is the preferred idempotency key, rfp_id the
    fallback. The remaining fields only fill in a newly created proposal.
    """

    site_survey_id: Optional[int] = None
    rfp_id: Optional[int] = None
    lead_id: Optional[int] = None
    contact_id: Optional[int] = None
    title: Optional[str] = None


@dataclass
class ErpSyncResult:
    """
    Outcome of create_or_update.

    On failure, proposal is None and nothing was written locally.
    """

    success: bool
    proposal: Optional[Proposal] = None
    proposal_number: Optional[str] = None
    erp_data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    errorcode: Optional[int] = None
    created: bool = False


def equipment_snapshot(equipment: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Copy equipment entries, keeping only the keys stored on the proposal."""
    return [
        {key: item.get(key) for key in SNAPSHOT_KEYS if key in item}
        for item in equipment
    ]


def erp_summary(result: ErpProposalResult) -> Dict[str, Any]:
    """
    Client-facing summary of a successful ERP call.

    Returns:
        fincode, findoc, series, series_num, turnover, vat_amount, total
    """
    return {
        "fincode": result.proposal_number,
        "findoc": result.findoc,
        "series": result.series,
        "series_num": result.series_num,
        "turnover": float(result.turnover),
        "vat_amount": float(result.vat_amount),
        "total": float(result.total),
    }


class ErpSyncService:
    """
    Service that keeps local proposals in step with ERP documents.
    """

    def __init__(self, session: AsyncSession, client: Optional[ErpClient] = None):
        """
        Initialize service.

        Args:
            session: Async database session
            client: ERP client (defaults to one built from settings)
        """
        self.session = session
        self.proposal_dao = ProposalDAO(session)
        self.client = client or ErpClient()

    async def create_or_update(
        self,
        customer: Customer,
        equipment: List[Mapping[str, Any]],
        source: ProposalSource,
        comments: Optional[str] = None,
        series: Optional[str] = None,
        actor_id: Optional[int] = None,
        proposal: Optional[Proposal] = None,
    ) -> ErpSyncResult:
        """
        Create the ERP document and upsert the local proposal.

        Args:
            customer: Customer the document is issued to
            equipment: Equipment entries (see erp_mapping.map_equipment_line)
            source: Source document keys
            comments: ERP document comments
            series: ERP document series (defaults to ERP_QUOTE_SERIES)
            actor_id: Acting user (stamped as generated_by on new proposals)
            proposal: Proposal to update; when None it is looked up by source

        Returns:
            ErpSyncResult

        Raises:
            ValidationError: Customer has no TRDR or there are no lines
            MissingErpCodesError: Some lines have no ERP code
        """
        if not customer.trdr:
            raise ValidationError(
                message="Customer does not have an ERP TRDR code. Sync the customer with the ERP first.",
                field="trdr",
                customer_id=customer.id,
            )

        lines = map_equipment_lines(equipment)
        if not lines:
            raise ValidationError(message="No equipment data provided", field="equipment")

        validation = validate_lines(lines)
        if not validation.valid:
            logger.warning(
                "ERP sync aborted: %d line(s) without ERP code", len(validation.missing_codes)
            )
            raise MissingErpCodesError(validation.missing_codes)

        # WHY: looked up before the remote call so a retry after a failed
        # write still targets the same row
        existing = proposal or await self.proposal_dao.find_for_source(
            site_survey_id=source.site_survey_id,
            rfp_id=source.rfp_id,
        )

        result = await self.client.create_proposal(
            ErpProposalRequest(
                series=series or settings.ERP_QUOTE_SERIES,
                trdr=str(customer.trdr),
                lines=lines,
                comments=comments,
            )
        )

        if not result.success:
            logger.warning(
                "ERP sync failed for customer %s: %s (errorcode=%s)",
                customer.id,
                result.error,
                result.errorcode,
            )
            return ErpSyncResult(success=False, error=result.error, errorcode=result.errorcode)

        values = {
            "erp_quote_number": result.proposal_number,
            "erp_series": result.series,
            "erp_series_num": result.series_num,
            "erp_findoc": result.findoc,
            "erp_saldocnum": result.saldocnum or result.findoc,
            "erp_turnover": result.turnover,
            "erp_vat_amount": result.vat_amount,
            "erp_sync_status": ErpSyncStatus.SYNCED,
            "erp_response": result.raw,
            "equipment": equipment_snapshot(equipment),
            "totals": {
                "turnover": float(result.turnover),
                "vat_amount": float(result.vat_amount),
                "grand_total": float(result.total),
            },
            "stage": ProposalStage.ERP_INTEGRATION,
        }

        created = False
        if existing is None:
            record, created = await self.proposal_dao.create_for_source(
                customer_id=customer.id,
                contact_id=source.contact_id,
                lead_id=source.lead_id,
                rfp_id=source.rfp_id,
                site_survey_id=source.site_survey_id,
                project_title=source.title,
                status=ProposalStatus.DRAFT,
                generated_by=actor_id,
                **values,
            )
            if created:
                record.append_note(f"Created in ERP as {result.proposal_number}")
                record = await self.proposal_dao.save(record)
                logger.info("Proposal %s created from ERP document %s", record.id, result.proposal_number)
            else:
                # A concurrent request created the proposal during the ERP call
                existing = record

        if not created:
            previous = existing.erp_quote_number
            for field_name, value in values.items():
                setattr(existing, field_name, value)
            if source.title and not existing.project_title:
                existing.project_title = source.title
            if previous and previous != result.proposal_number:
                existing.append_note(
                    f"ERP document reissued: {previous} replaced by {result.proposal_number}"
                )
            else:
                existing.append_note(f"Synced to ERP as {result.proposal_number}")
            record = await self.proposal_dao.save(existing)
            logger.info("Proposal %s updated from ERP document %s", record.id, result.proposal_number)

        return ErpSyncResult(
            success=True,
            proposal=record,
            proposal_number=result.proposal_number,
            erp_data=erp_summary(result),
            created=created,
        )
