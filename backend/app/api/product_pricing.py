"""
Product pricing administration API endpoints.

WHAT: Priced product listing, cost / manual price updates, and the
pricing history of a product.

WHY: Admins need to see the price the resolver actually produces (and the
rule behind it) next to the stored cost, and every price change must leave
an audit row.

HOW: FastAPI router -> PricingService -> resolver + DAOs. ADMIN and
MANAGER only.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import require_pricing_admin
from app.db.session import get_db
from app.models.product import Product
from app.models.user import User
from app.schemas.pricing import (
    AppliedRuleSummary,
    PricingHistoryResponse,
    ProductPricingListResponse,
    ProductPricingResponse,
    ProductPricingUpdate,
    ProductPricingUpdateResponse,
)
from app.services.pricing import ResolvedPrice
from app.services.pricing_service import PricingService, decimal_or_none


router = APIRouter(prefix="/admin/products", tags=["product-pricing"])


def _pricing_to_response(product: Product, pricing: ResolvedPrice) -> ProductPricingResponse:
    """
    Combine a product row and its resolved prices.
    """
    rule = pricing.applied_rule
    applied_rule: Optional[AppliedRuleSummary] = None
    if rule is not None:
        applied_rule = AppliedRuleSummary(
            id=rule.id,
            name=rule.name,
            type=rule.type.value,
            priority=rule.priority,
        )

    return ProductPricingResponse(
        id=product.id,
        name=product.name,
        code=product.code,
        erp_code=product.erp_code,
        brand_id=product.brand_id,
        manufacturer_id=product.manufacturer_id,
        category_id=product.category_id,
        cost=decimal_or_none(product.cost),
        manual_b2b_price=decimal_or_none(product.manual_b2b_price),
        manual_retail_price=decimal_or_none(product.manual_retail_price),
        b2b_price=float(pricing.b2b_price),
        retail_price=float(pricing.retail_price),
        b2b_margin_percent=float(pricing.b2b_margin_percent),
        retail_margin_percent=float(pricing.retail_margin_percent),
        applied_rule=applied_rule,
    )


@router.get(
    "/pricing",
    response_model=ProductPricingListResponse,
    status_code=status.HTTP_200_OK,
    summary="List products with resolved prices",
)
async def list_product_pricing(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> ProductPricingListResponse:
    """
    List products ordered by name with their effective prices.
    """
    service = PricingService(db)
    priced = await service.list_priced_products(skip=skip, limit=limit)
    total = await service.product_dao.count()
    return ProductPricingListResponse(
        items=[_pricing_to_response(product, pricing) for product, pricing in priced],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.put(
    "/{product_id}/pricing",
    response_model=ProductPricingUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update product cost and manual prices",
)
async def update_product_pricing(
    product_id: int,
    data: ProductPricingUpdate,
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> ProductPricingUpdateResponse:
    """
    Update cost and/or manual price overrides.

    WHAT: Only fields present in the request body are applied. A history
    row (cost plus effective prices) is appended when anything changed.

    Raises:
        ProductNotFoundError (404): Unknown product
        ValidationError (400): Cost cleared
    """
    changes = data.model_dump(exclude_unset=True)
    reason = changes.pop("reason", None)

    result = await PricingService(db).update_product_pricing(
        product_id,
        changes,
        reason=reason,
        changed_by=current_user.id,
    )
    return ProductPricingUpdateResponse(
        product=_pricing_to_response(result.product, result.pricing),
        changed=result.changed,
        history_id=result.history_entry.id if result.history_entry else None,
    )


@router.get(
    "/{product_id}/pricing/history",
    response_model=list[PricingHistoryResponse],
    status_code=status.HTTP_200_OK,
    summary="Product pricing history",
)
async def get_product_pricing_history(
    product_id: int,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> list[PricingHistoryResponse]:
    """
    Pricing history rows, newest first.
    """
    history = await PricingService(db).get_history(product_id, skip=skip, limit=limit)
    return [
        PricingHistoryResponse(
            id=row.id,
            product_id=row.product_id,
            cost=decimal_or_none(row.cost),
            b2b_price=decimal_or_none(row.b2b_price),
            retail_price=decimal_or_none(row.retail_price),
            reason=row.reason,
            changed_by=row.changed_by,
            created_at=row.created_at,
        )
        for row in history
    ]
