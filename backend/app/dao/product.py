"""
Product and pricing history Data Access Objects.

WHAT: Database operations for products and their append-only pricing history.

WHY: Every cost or manual price change must leave a history row. Keeping
the history DAO append-only (update/delete raise) makes it impossible for
service code to rewrite the audit trail by accident.
"""

from typing import Any, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PricingHistoryImmutableError
from app.dao.base import BaseDAO
from app.models.product import Product, ProductPricingHistory


class ProductDAO(BaseDAO[Product]):
    """
    Data Access Object for Product model.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Product, session)

    async def get_by_erp_code(self, erp_code: str) -> Optional[Product]:
        """Look up a product by its ERP material id (MTRL)."""
        return await self.get_by_field("erp_code", erp_code)

    async def list_by_name(self, skip: int = 0, limit: int = 100) -> List[Product]:
        """
        List products alphabetically.

        Args:
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Products ordered by name
        """
        result = await self.session.execute(
            select(Product).order_by(Product.name, Product.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())


class ProductPricingHistoryDAO:
    """
    Append-only DAO for product pricing history.

    WHY: Not a BaseDAO subclass on purpose: the generic update/delete
    methods must not exist for this table.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, **kwargs: Any) -> ProductPricingHistory:
        """
        Append a history row.

        Args:
            **kwargs: product_id, cost, b2b_price, retail_price, reason, changed_by

        Returns:
            Created history row
        """
        entry = ProductPricingHistory(**kwargs)
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_for_product(
        self,
        product_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ProductPricingHistory]:
        """
        History rows for a product, newest first.

        Args:
            product_id: Product ID
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            History rows
        """
        result = await self.session.execute(
            select(ProductPricingHistory)
            .where(ProductPricingHistory.product_id == product_id)
            .order_by(ProductPricingHistory.created_at.desc(), ProductPricingHistory.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update(self, entry_id: int, **kwargs: Any) -> None:
        """
        Attempt to update a history row (BLOCKED).

        Raises:
            PricingHistoryImmutableError: Always raised
        """
        raise PricingHistoryImmutableError(
            "Pricing history rows cannot be updated",
            entry_id=entry_id,
        )

    async def delete(self, entry_id: int) -> None:
        """
        Attempt to delete a history row (BLOCKED).

        Raises:
            PricingHistoryImmutableError: Always raised
        """
        raise PricingHistoryImmutableError(
            "Pricing history rows cannot be deleted",
            entry_id=entry_id,
        )
