"""
Customer and contact models.

WHY: Customers are master data synchronized from the ERP. The one field
this service depends on is ``trdr``, the ERP trading-partner id: a
proposal cannot be posted to the ERP for a customer that lacks it.
"""

from sqlalchemy import Column, Integer, String, ForeignKey

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Customer(Base, PrimaryKeyMixin, TimestampMixin):
    """Customer (trading partner)."""

    __tablename__ = "customers"

    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)

    # WHY: Nullable because customers can exist in CRM before the ERP knows them
    trdr = Column(String(50), nullable=True, index=True, comment="ERP trading-partner id")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name}, trdr={self.trdr})>"


class Contact(Base, PrimaryKeyMixin, TimestampMixin):
    """Person at a customer."""

    __tablename__ = "contacts"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    customer_id = Column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, name={self.name})>"
