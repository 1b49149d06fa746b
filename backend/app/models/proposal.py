"""
Proposal model for priced commercial offers.

WHAT: SQLAlchemy model representing a proposal (quote) to a customer.

WHY: Proposals are the commercial document that:
1. Links a customer to the RFP / site survey it answers
2. Holds the priced equipment snapshot
3. Tracks commercial status (status) and pipeline progress (stage) separately
4. Carries the ERP document identifiers once the quote is posted

HOW: Uses SQLAlchemy 2.0 with:
- Status enum for the commercial lifecycle
- Stage enum for pipeline progress (not governed by status rules)
- JSON for the equipment snapshot, totals and the raw ERP response
- Partial unique indexes on the source keys: one proposal per site survey,
  and one per RFP among proposals without a site survey
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    JSON,
    text,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base, enum_column_type


class ProposalStatus(str, Enum):
    """
    Proposal commercial status.

    WHY: Tracks proposal through business process:
    - DRAFT: Being prepared
    - IN_REVIEW: Internal review before sending
    - APPROVED: Approved internally / posted to ERP
    - SENT: Delivered to the customer
    - ACCEPTED: Customer accepted
    - REVISED: Superseded by a revision
    - REJECTED: Customer declined
    - WON: Deal closed
    - LOST: Deal lost
    - EXPIRED: Validity period passed
    """

    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    SENT = "sent"
    ACCEPTED = "accepted"
    REVISED = "revised"
    REJECTED = "rejected"
    WON = "won"
    LOST = "lost"
    EXPIRED = "expired"


class ProposalStage(str, Enum):
    """Pipeline progress marker, independent of commercial status."""

    CONTENT_GENERATION = "content_generation"
    DOCUMENT_GENERATION = "document_generation"
    ERP_INTEGRATION = "erp_integration"
    SENT_TO_CUSTOMER = "sent_to_customer"


class ErpSyncStatus(str, Enum):
    """Whether the proposal has been posted to the ERP."""

    NOT_SYNCED = "not_synced"
    SYNCED = "synced"
    FAILED = "failed"


class Proposal(Base):
    """
    Customer proposal model.

    Attributes:
        id: Primary key
        customer_id: Customer (required)
        contact_id / lead_id / rfp_id / site_survey_id: Optional links
        project_*: Project metadata used when the proposal converts to a project
        *_desc / scope_of_work: Generated content sections
        equipment: JSON snapshot of priced lines
        totals: JSON {"turnover", "vat_amount", "grand_total"}
        status / stage: Lifecycle markers
        erp_*: ERP document identifiers and raw response
        word_document_url / pdf_document_url: Generated documents
        sent_to_emails / sent_count / last_sent_date: Send tracking
        submitted_date / approved_date / rejected_date / won_date: Stamps
        notes: Append-only free-text log
        generated_by: User who generated the proposal
    """

    __tablename__ = "proposals"
    __table_args__ = (
        Index(
            "uq_proposals_site_survey_id",
            "site_survey_id",
            unique=True,
            postgresql_where=text("site_survey_id IS NOT NULL"),
            sqlite_where=text("site_survey_id IS NOT NULL"),
        ),
        # RFP is the key only when there is no site survey
        Index(
            "uq_proposals_rfp_id",
            "rfp_id",
            unique=True,
            postgresql_where=text("site_survey_id IS NULL AND rfp_id IS NOT NULL"),
            sqlite_where=text("site_survey_id IS NULL AND rfp_id IS NOT NULL"),
        ),
    )

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    # Links
    customer_id: Mapped[int] = Column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Customer the proposal is addressed to",
    )
    contact_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    lead_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("leads.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Originating lead",
    )
    rfp_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("rfps.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Originating RFP (fallback idempotency key)",
    )
    site_survey_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("site_surveys.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Originating site survey (preferred idempotency key)",
    )

    # Project metadata
    project_title: Mapped[Optional[str]] = Column(String(255), nullable=True)
    project_description: Mapped[Optional[str]] = Column(Text, nullable=True)
    project_scope: Mapped[Optional[str]] = Column(Text, nullable=True)
    project_duration: Mapped[Optional[str]] = Column(String(100), nullable=True)
    project_start_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    project_end_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    # Generated content
    infrastructure_desc: Mapped[Optional[str]] = Column(Text, nullable=True)
    technical_desc: Mapped[Optional[str]] = Column(Text, nullable=True)
    products_desc: Mapped[Optional[str]] = Column(Text, nullable=True)
    services_desc: Mapped[Optional[str]] = Column(Text, nullable=True)
    scope_of_work: Mapped[Optional[str]] = Column(Text, nullable=True)

    # Priced lines
    equipment: Mapped[Optional[List[Dict[str, Any]]]] = Column(
        JSON,
        nullable=True,
        default=list,
        comment="Equipment snapshot",
    )
    totals: Mapped[Optional[Dict[str, Any]]] = Column(JSON, nullable=True)

    # Lifecycle
    status: Mapped[ProposalStatus] = Column(
        enum_column_type(ProposalStatus, "proposalstatus"),
        nullable=False,
        default=ProposalStatus.DRAFT,
        comment="Commercial status",
    )
    stage: Mapped[Optional[ProposalStage]] = Column(
        enum_column_type(ProposalStage, "proposalstage"),
        nullable=True,
        comment="Pipeline progress marker",
    )

    # ERP correlation
    erp_quote_number: Mapped[Optional[str]] = Column(
        String(100),
        nullable=True,
        index=True,
        comment="ERP FINCODE",
    )
    erp_series: Mapped[Optional[str]] = Column(String(20), nullable=True)
    erp_series_num: Mapped[Optional[str]] = Column(String(50), nullable=True)
    erp_findoc: Mapped[Optional[str]] = Column(String(50), nullable=True, comment="ERP internal document id")
    erp_saldocnum: Mapped[Optional[str]] = Column(String(50), nullable=True)
    erp_turnover: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    erp_vat_amount: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    erp_sync_status: Mapped[ErpSyncStatus] = Column(
        enum_column_type(ErpSyncStatus, "erpsyncstatus"),
        nullable=False,
        default=ErpSyncStatus.NOT_SYNCED,
    )
    erp_response: Mapped[Optional[Dict[str, Any]]] = Column(
        JSON,
        nullable=True,
        comment="Raw ERP response for audit",
    )

    # Documents
    word_document_url: Mapped[Optional[str]] = Column(String(1000), nullable=True)
    pdf_document_url: Mapped[Optional[str]] = Column(String(1000), nullable=True)

    # Send tracking
    sent_to_emails: Mapped[Optional[List[str]]] = Column(JSON, nullable=True)
    sent_count: Mapped[int] = Column(Integer, nullable=False, default=0)
    last_sent_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    submitted_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    # Status stamps
    approved_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    rejected_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    won_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    notes: Mapped[Optional[str]] = Column(Text, nullable=True, comment="Append-only activity notes")

    generated_by: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        comment="Record creation timestamp",
    )
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        comment="Last modification timestamp",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Proposal(id={self.id}, customer_id={self.customer_id}, status={self.status})>"

    @property
    def is_synced(self) -> bool:
        return self.erp_sync_status == ErpSyncStatus.SYNCED

    def append_note(self, text: str, at: Optional[datetime] = None) -> None:
        """
        Append a timestamped entry to the notes log.

        WHY: Notes are an activity log; previous entries are never rewritten.

        Args:
            text: Entry text
            at: Timestamp (defaults to now, UTC)
        """
        stamp = (at or datetime.utcnow()).isoformat()
        entry = f"[{stamp}] {text}"
        self.notes = f"{self.notes}\n\n{entry}" if self.notes else entry
