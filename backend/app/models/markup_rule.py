"""
Markup rule model.

WHAT: A pricing rule that maps a product scope (brand, manufacturer,
category, or everything) to B2B/retail markup percentages and optional
min/max price bounds.

WHY: Sale prices follow commercial policy that changes more often than the
catalog: "all Cisco gear at 20%", "everything else at 35%, never under 10".
Rules let admins express that without touching products.

HOW: A single table with a type discriminator. Non-global rules carry the
id of the targeted entity in target_id; global rules always store NULL.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    Numeric,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base, enum_column_type


class MarkupRuleType(str, Enum):
    """
    Scope a markup rule applies to.

    Order here is also the tie-break order on equal priority
    (most specific first).
    """

    BRAND = "brand"
    MANUFACTURER = "manufacturer"
    CATEGORY = "category"
    GLOBAL = "global"


class MarkupRule(Base):
    """
    Markup rule.

    Attributes:
        id: Primary key
        name: Admin-facing label
        description: Optional notes
        type: Scope kind
        target_id: Brand/manufacturer/category id (NULL for global)
        priority: Higher wins
        b2b_markup_percent / retail_markup_percent: 0..1000
        min_b2b_price / max_b2b_price / min_retail_price / max_retail_price: Optional bounds
        is_active: Inactive rules are ignored by the resolver
    """

    __tablename__ = "markup_rules"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    name: Mapped[str] = Column(String(255), nullable=False, comment="Rule name")
    description: Mapped[Optional[str]] = Column(Text, nullable=True)

    type: Mapped[MarkupRuleType] = Column(
        enum_column_type(MarkupRuleType, "markupruletype"),
        nullable=False,
        comment="Scope kind",
    )
    target_id: Mapped[Optional[int]] = Column(
        Integer,
        nullable=True,
        index=True,
        comment="Brand/manufacturer/category id; NULL for global rules",
    )
    priority: Mapped[int] = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Higher priority wins",
    )

    b2b_markup_percent: Mapped[Decimal] = Column(
        Numeric(7, 2),
        nullable=False,
        default=0,
    )
    retail_markup_percent: Mapped[Decimal] = Column(
        Numeric(7, 2),
        nullable=False,
        default=0,
    )

    min_b2b_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    max_b2b_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    min_retail_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    max_retail_price: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)

    is_active: Mapped[bool] = Column(Boolean, nullable=False, default=True)

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
        return (
            f"<MarkupRule(id={self.id}, type={self.type}, target_id={self.target_id}, "
            f"priority={self.priority})>"
        )

    @property
    def is_global(self) -> bool:
        return self.type == MarkupRuleType.GLOBAL
