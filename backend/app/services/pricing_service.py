"""
Product pricing service.

WHAT: Prices products against the stored markup rules and records every
cost or manual price change in the pricing history.

WHY: The resolver is pure; this service is the seam where rules are loaded
and where a price change becomes an audit row. Admin endpoints and
proposal pricing both go through it.

HOW: API -> PricingService -> (MarkupRuleDAO, ProductDAO,
ProductPricingHistoryDAO) + resolve_price.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProductNotFoundError, ValidationError
from app.dao.markup_rule import MarkupRuleDAO
from app.dao.product import ProductDAO, ProductPricingHistoryDAO
from app.models.product import Product, ProductPricingHistory
from app.services.pricing import ResolvedPrice, resolve_price, to_decimal


logger = logging.getLogger(__name__)

DEFAULT_PRICE_CHANGE_REASON = "Manual price update"

# Product columns a pricing update may touch
PRICING_FIELDS = ("cost", "manual_b2b_price", "manual_retail_price")


@dataclass
class PricingUpdateResult:
    """Outcome of update_product_pricing."""

    product: Product
    pricing: ResolvedPrice
    history_entry: Optional[ProductPricingHistory]

    @property
    def changed(self) -> bool:
        return self.history_entry is not None


class PricingService:
    """
    Service for product pricing.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rule_dao = MarkupRuleDAO(session)
        self.product_dao = ProductDAO(session)
        self.history_dao = ProductPricingHistoryDAO(session)

    async def _get_product(self, product_id: int) -> Product:
        product = await self.product_dao.get_by_id(product_id)
        if not product:
            raise ProductNotFoundError(
                message=f"Product with id {product_id} not found",
                resource_type="Product",
                resource_id=product_id,
            )
        return product

    async def price_product(self, product: Product) -> ResolvedPrice:
        """
        Resolve prices for one product.

        Args:
            product: Loaded product

        Returns:
            ResolvedPrice
        """
        rules = await self.rule_dao.get_applicable_rules(product)
        return resolve_price(product, rules)

    async def list_priced_products(
        self,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Tuple[Product, ResolvedPrice]]:
        """
        List products with their resolved prices.

        WHY: Loads the active rule set once and lets the resolver filter per
        product, instead of one rule query per product.

        Args:
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            (product, pricing) pairs ordered by product name
        """
        products = await self.product_dao.list_by_name(skip=skip, limit=limit)
        rules = await self.rule_dao.get_active_rules()
        return [(product, resolve_price(product, rules)) for product in products]

    async def update_product_pricing(
        self,
        product_id: int,
        changes: Dict[str, Any],
        reason: Optional[str],
        changed_by: Optional[int],
    ) -> PricingUpdateResult:
        """
        Update a product's cost and/or manual prices.

        WHAT: Applies only the fields present in ``changes`` (None clears a
        manual override), then appends a history row with the new cost and
        the effective prices, if anything actually changed.

        Args:
            product_id: Product to update
            changes: Subset of cost, manual_b2b_price, manual_retail_price
            reason: Why the price changed (defaults to "Manual price update")
            changed_by: Acting user id

        Returns:
            PricingUpdateResult

        Raises:
            ProductNotFoundError: If the product doesn't exist
            ValidationError: If cost is cleared or negative, or a price is negative
        """
        product = await self._get_product(product_id)

        unknown = set(changes) - set(PRICING_FIELDS)
        if unknown:
            raise ValidationError(
                message="Unsupported pricing fields",
                fields=sorted(unknown),
            )
        if "cost" in changes and changes["cost"] is None:
            raise ValidationError(message="Cost cannot be cleared", field="cost")

        modified = False
        for field_name, raw in changes.items():
            value = to_decimal(raw)
            if value is not None and value < 0:
                raise ValidationError(
                    message=f"{field_name} cannot be negative",
                    field=field_name,
                )
            current = to_decimal(getattr(product, field_name))
            if current != value:
                setattr(product, field_name, value)
                modified = True

        history_entry = None
        if modified:
            product = await self.product_dao.save(product)

        pricing = await self.price_product(product)

        if modified:
            history_entry = await self.history_dao.append(
                product_id=product.id,
                cost=product.cost,
                b2b_price=pricing.b2b_price,
                retail_price=pricing.retail_price,
                reason=reason or DEFAULT_PRICE_CHANGE_REASON,
                changed_by=changed_by,
            )
            logger.info(
                "Pricing updated for product %s by user %s: cost=%s b2b=%s retail=%s",
                product.id,
                changed_by,
                product.cost,
                pricing.b2b_price,
                pricing.retail_price,
            )

        return PricingUpdateResult(product=product, pricing=pricing, history_entry=history_entry)

    async def get_history(
        self,
        product_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ProductPricingHistory]:
        """
        Pricing history of a product, newest first.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        await self._get_product(product_id)
        return await self.history_dao.list_for_product(product_id, skip=skip, limit=limit)


def decimal_or_none(value: Optional[Decimal]) -> Optional[float]:
    """Convert a money value for JSON responses."""
    return float(value) if value is not None else None
