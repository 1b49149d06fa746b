"""
Product and product pricing history models.

WHAT: The pricing-relevant slice of a catalog product, plus an append-only
history of every cost or manual price change.

WHY: Sale prices are derived from cost through markup rules, but sales can
pin a manual B2B or retail price. Pricing disputes ("why did this quote
say 120?") are answered from the history table, so history rows are
written on every change and never edited.

HOW: Numeric(12, 2) money columns; brand/manufacturer/category FKs are
the keys markup rules match on.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Numeric,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base


class Product(Base):
    """
    Catalog product (pricing slice).

    Attributes:
        id: Primary key
        name: Display name
        code: Internal product code
        erp_code: ERP material identifier (MTRL); required to post lines to the ERP
        cost: Purchase cost (>= 0)
        manual_b2b_price: Optional pinned B2B price
        manual_retail_price: Optional pinned retail price
        brand_id / manufacturer_id / category_id: Markup rule match keys
    """

    __tablename__ = "products"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    name: Mapped[str] = Column(String(255), nullable=False, comment="Product name")
    code: Mapped[Optional[str]] = Column(
        String(100),
        nullable=True,
        index=True,
        comment="Internal product code",
    )
    erp_code: Mapped[Optional[str]] = Column(
        String(100),
        nullable=True,
        index=True,
        comment="ERP material id (MTRL)",
    )

    cost: Mapped[Optional[Decimal]] = Column(
        Numeric(12, 2),
        nullable=True,
        comment="Purchase cost",
    )
    manual_b2b_price: Mapped[Optional[Decimal]] = Column(
        Numeric(12, 2),
        nullable=True,
        comment="Manual B2B price override",
    )
    manual_retail_price: Mapped[Optional[Decimal]] = Column(
        Numeric(12, 2),
        nullable=True,
        comment="Manual retail price override",
    )

    brand_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("brands.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    manufacturer_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("manufacturers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    category_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Product(id={self.id}, name={self.name}, cost={self.cost})>"


class ProductPricingHistory(Base):
    """
    Append-only record of a product's cost and effective prices at a point in time.

    WHY: b2b_price and retail_price store the *effective* prices after the
    change (manual override, or rule-derived), so the row answers "what did
    we charge" without replaying rule history.
    """

    __tablename__ = "product_pricing_history"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    product_id: Mapped[int] = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cost: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    b2b_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    retail_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    reason: Mapped[Optional[str]] = Column(Text, nullable=True, comment="Why the price changed")
    changed_by: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who made the change",
    )

    created_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ProductPricingHistory(id={self.id}, product_id={self.product_id}, "
            f"b2b={self.b2b_price}, retail={self.retail_price})>"
        )
