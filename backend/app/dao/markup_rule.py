"""
Markup rule Data Access Object (DAO).

WHAT: Database operations for the MarkupRule model.

WHY: The price resolver is a pure function over a rule list. This DAO is
where that list comes from: ordered for admin screens, and narrowed to the
rules that could possibly apply to one product for pricing.
"""

from typing import List
from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.markup_rule import MarkupRule, MarkupRuleType
from app.models.product import Product


class MarkupRuleDAO(BaseDAO[MarkupRule]):
    """
    Data Access Object for MarkupRule model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize MarkupRuleDAO.

        Args:
            session: Async database session
        """
        super().__init__(MarkupRule, session)

    async def list_ordered(self, skip: int = 0, limit: int = 100) -> List[MarkupRule]:
        """
        List all rules, highest priority first, newest first within a priority.

        Args:
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Ordered list of rules (active and inactive)
        """
        result = await self.session.execute(
            select(MarkupRule)
            .order_by(
                MarkupRule.priority.desc(),
                MarkupRule.created_at.desc(),
                MarkupRule.id.desc(),
            )
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_active_rules(self) -> List[MarkupRule]:
        """
        Get every active rule.

        WHY: Used when pricing a whole product list; filtering per product
        happens in the resolver, which keeps one query for N products.

        Returns:
            Active rules ordered by id (stable input order for the resolver)
        """
        result = await self.session.execute(
            select(MarkupRule).where(MarkupRule.is_active.is_(True)).order_by(MarkupRule.id)
        )
        return list(result.scalars().all())

    async def get_applicable_rules(self, product: Product) -> List[MarkupRule]:
        """
        Get active rules that could apply to a product.

        WHAT: Global rules plus rules targeting the product's brand,
        manufacturer or category.

        Args:
            product: Product to price

        Returns:
            Candidate rules ordered by id; the resolver picks the winner
        """
        conditions = [MarkupRule.type == MarkupRuleType.GLOBAL]
        scoped = (
            (MarkupRuleType.BRAND, product.brand_id),
            (MarkupRuleType.MANUFACTURER, product.manufacturer_id),
            (MarkupRuleType.CATEGORY, product.category_id),
        )
        for rule_type, target_id in scoped:
            if target_id is not None:
                conditions.append(
                    and_(MarkupRule.type == rule_type, MarkupRule.target_id == target_id)
                )

        result = await self.session.execute(
            select(MarkupRule)
            .where(MarkupRule.is_active.is_(True), or_(*conditions))
            .order_by(MarkupRule.id)
        )
        return list(result.scalars().all())
