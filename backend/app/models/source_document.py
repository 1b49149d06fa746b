"""
Source document models: RFPs and site surveys.

WHY: A proposal originates from one of these. They are the idempotency key
for proposal generation: one live proposal per site survey, or per RFP when
no site survey exists.

HOW: Both carry an ``equipment`` JSON list in the same shape:
[{"name": str, "product_id": int, "erp_code": str, "quantity": float,
  "unit_price": float, "type": "product" | "service"}]
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Rfp(Base, PrimaryKeyMixin, TimestampMixin):
    """Request for proposal received from a customer."""

    __tablename__ = "rfps"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)

    # WHY: JSON (not JSONB) keeps the model usable on SQLite for tests
    requirements = Column(JSON, nullable=True, comment="Parsed requirements incl. equipment list")

    @property
    def equipment(self) -> list:
        return list((self.requirements or {}).get("equipment") or [])

    def __repr__(self) -> str:
        return f"<Rfp(id={self.id}, title={self.title})>"


class SiteSurvey(Base, PrimaryKeyMixin, TimestampMixin):
    """On-site survey whose equipment list feeds a proposal."""

    __tablename__ = "site_surveys"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    equipment = Column(JSON, nullable=True, default=list, comment="Surveyed equipment lines")

    def __repr__(self) -> str:
        return f"<SiteSurvey(id={self.id}, title={self.title})>"
