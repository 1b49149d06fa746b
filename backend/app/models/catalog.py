"""
Catalog reference models: brands, manufacturers and categories.

WHY: Markup rules target one of these entities. They are master data owned
by the catalog/ERP import process; this service only reads them to validate
rule targets and to display rule target names.
"""

from sqlalchemy import Column, String

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Brand(Base, PrimaryKeyMixin, TimestampMixin):
    """Product brand (e.g. a vendor's product line)."""

    __tablename__ = "brands"

    name = Column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Brand(id={self.id}, name={self.name})>"


class Manufacturer(Base, PrimaryKeyMixin, TimestampMixin):
    """Product manufacturer."""

    __tablename__ = "manufacturers"

    name = Column(String(255), nullable=False, index=True)
    code = Column(String(100), nullable=True, comment="ERP manufacturer code")

    def __repr__(self) -> str:
        return f"<Manufacturer(id={self.id}, name={self.name})>"


class Category(Base, PrimaryKeyMixin, TimestampMixin):
    """Product category."""

    __tablename__ = "categories"

    name = Column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"
