"""
Lead and lead status change models.

WHAT: Sales opportunities and their audit trail of status changes.

WHY: A lead is referenced, not owned, by a proposal. When the customer
accepts the proposal the lead is closed as won, and the change is recorded
in lead_status_changes so the pipeline history stays reconstructable.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin, enum_column_type


class LeadStatus(str, Enum):
    """Commercial status of a lead."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    LOST = "lost"


# Pipeline stage markers (free-form; only the one written by this service is named)
LEAD_STAGE_CLOSED_WON = "OPP_CLOSED_WON"


class Lead(Base, PrimaryKeyMixin, TimestampMixin):
    """Sales opportunity."""

    __tablename__ = "leads"

    title = Column(String(255), nullable=False)
    status = Column(
        enum_column_type(LeadStatus, "leadstatus"),
        nullable=False,
        default=LeadStatus.NEW,
    )
    stage = Column(String(50), nullable=True, comment="Pipeline stage marker")

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    assignee_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Sales owner",
    )

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, title={self.title}, status={self.status})>"


class LeadStatusChange(Base, PrimaryKeyMixin):
    """
    Append-only audit row for a lead status change.
    """

    __tablename__ = "lead_status_changes"

    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(String(50), nullable=True)
    to_status = Column(String(50), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LeadStatusChange(lead_id={self.lead_id}, "
            f"{self.from_status} -> {self.to_status})>"
        )
