"""
Pydantic schemas for proposal endpoints.

WHAT: Request/response schemas for proposal lifecycle, ERP sync and
generation endpoints.

WHY: Schemas define API contracts for proposal operations:
1. Reject unknown statuses at the edge (400, before any mutation)
2. Validate equipment lines sent for ERP posting
3. Document API for OpenAPI/Swagger

HOW: Uses Pydantic v2 with Field validators and ORM mode for SQLAlchemy
integration. Status values are the lowercase enum values; uppercase names
("WON") are accepted and normalized.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from pydantic import BaseModel, Field, field_validator

from app.models.proposal import ErpSyncStatus, ProposalStage, ProposalStatus
from app.models.project import ProjectStatus


class EquipmentItem(BaseModel):
    """
    One equipment line (product or service).

    WHY: erp_code (or mtrl) is the ERP material code; lines without one
    are accepted here and reported by the ERP line validator.
    """

    id: int | str | None = Field(default=None, description="Internal product/service id")
    type: str = Field(default="product", description='"product" or "service"')
    name: str | None = Field(default=None, max_length=500)
    brand: Any = None
    category: Any = None
    quantity: float = Field(default=1, gt=0)
    price: float = Field(default=0, ge=0, description="Unit price")
    margin: float | None = None
    total_price: float | None = None
    erp_code: str | None = Field(default=None, description="ERP material code (MTRL)")
    mtrl: str | None = Field(default=None, description="Alias of erp_code")

    def as_line(self) -> dict[str, Any]:
        """Plain dict for the ERP mapper and the proposal snapshot."""
        return self.model_dump(exclude_none=True)


class ProposalResponse(BaseModel):
    """
    Proposal response schema.

    WHAT: Structure for proposal data in API responses.
    """

    id: int
    customer_id: int
    contact_id: int | None = None
    lead_id: int | None = None
    rfp_id: int | None = None
    site_survey_id: int | None = None

    project_title: str | None = None
    project_description: str | None = None
    project_scope: str | None = None
    project_duration: str | None = None
    project_start_date: datetime | None = None
    project_end_date: datetime | None = None

    infrastructure_desc: str | None = None
    technical_desc: str | None = None
    products_desc: str | None = None
    services_desc: str | None = None
    scope_of_work: str | None = None

    equipment: list[dict[str, Any]] | None = None
    totals: dict[str, Any] | None = None

    status: ProposalStatus
    stage: ProposalStage | None = None

    erp_quote_number: str | None = None
    erp_series: str | None = None
    erp_series_num: str | None = None
    erp_findoc: str | None = None
    erp_saldocnum: str | None = None
    erp_turnover: float | None = None
    erp_vat_amount: float | None = None
    erp_sync_status: ErpSyncStatus

    word_document_url: str | None = None
    pdf_document_url: str | None = None
    sent_to_emails: list[str] | None = None
    sent_count: int = 0
    last_sent_date: datetime | None = None
    submitted_date: datetime | None = None

    approved_date: datetime | None = None
    rejected_date: datetime | None = None
    won_date: datetime | None = None
    notes: str | None = None
    generated_by: int | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("erp_turnover", "erp_vat_amount", mode="before")
    @classmethod
    def money_to_float(cls, v: Any) -> Any:
        """Numeric columns load as Decimal."""
        return float(v) if isinstance(v, Decimal) else v

    model_config = {"from_attributes": True}


class ProposalStatusUpdate(BaseModel):
    """
    Status transition request.

    WHAT: Target status plus optional overrides for the project created
    when the proposal is accepted or won.
    """

    status: ProposalStatus = Field(..., description="Target status")
    note: str | None = Field(default=None, max_length=2000)
    project_manager_id: int | None = Field(default=None, description="Assigned as Project Manager")
    project_title: str | None = Field(default=None, max_length=255)
    project_description: str | None = Field(default=None, max_length=10000)
    project_start_date: datetime | None = None
    project_end_date: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept enum names ("WON") as well as values ("won")."""
        return v.lower() if isinstance(v, str) else v

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "won",
                "note": "Signed by customer",
                "project_manager_id": 4,
            }
        }
    }


class ProjectAssignmentResponse(BaseModel):
    """Project team member."""

    user_id: int
    role: str

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    """Project created by a lead conversion."""

    id: int
    name: str
    description: str | None = None
    status: ProjectStatus
    lead_id: int | None = None
    contact_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    assignments: list[ProjectAssignmentResponse] = []

    model_config = {"from_attributes": True}


class ProposalTransitionResponse(BaseModel):
    """Result of a status transition."""

    proposal: ProposalResponse
    project: ProjectResponse | None = None
    lead_converted: bool = False
    changed: bool = Field(..., description="False when the proposal already had the target status")


class ProposalDeliveryRequest(BaseModel):
    """Send-tracking request."""

    recipient_emails: list[str] = Field(..., min_length=1, description="Addresses the document was sent to")


class ErpSyncRequest(BaseModel):
    """
    Options for posting an existing proposal to the ERP.

    WHY: Equipment defaults to the proposal snapshot, then to the RFP's
    equipment list.
    """

    series: str | None = Field(default=None, max_length=20, description="ERP document series")
    comments: str | None = Field(default=None, max_length=2000)
    equipment: list[EquipmentItem] | None = None


class SiteSurveyProposalRequest(BaseModel):
    """
    Proposal generation request for a site survey.
    """

    equipment: list[EquipmentItem] = Field(..., min_length=1)
    series: str | None = Field(default=None, max_length=20)
    comments: str | None = Field(default=None, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "example": {
                "equipment": [
                    {"id": 12, "type": "product", "name": "Switch 24p", "quantity": 2, "price": 310.0, "erp_code": "1001"},
                    {"id": 3, "type": "service", "name": "Installation", "quantity": 1, "price": 150.0, "erp_code": "9001"},
                ],
                "series": "7001",
            }
        }
    }


class ErpSyncResponse(BaseModel):
    """Result of a successful ERP sync."""

    success: bool = True
    message: str
    proposal_id: int
    proposal_number: str | None = None
    status: ProposalStatus
    erp_data: dict[str, Any]
    created: bool = False
    items_count: int


class RfpProposalRequest(BaseModel):
    """
    Proposal generation request for an RFP.

    WHAT: Project metadata plus optional content sections; sections left
    empty are generated from the RFP equipment.
    """

    project_title: str | None = Field(default=None, max_length=255)
    project_description: str | None = Field(default=None, max_length=10000)
    project_scope: str | None = Field(default=None, max_length=10000)
    project_duration: str | None = Field(default=None, max_length=100)
    project_start_date: datetime | None = None
    project_end_date: datetime | None = None
    infrastructure_desc: str | None = None
    technical_desc: str | None = None
    products_desc: str | None = None
    services_desc: str | None = None
    scope_of_work: str | None = None
