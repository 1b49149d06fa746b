"""
Pydantic schemas for product pricing endpoints.

WHAT: Priced product listings, pricing updates and pricing history.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class AppliedRuleSummary(BaseModel):
    """The markup rule that priced a product."""

    id: int
    name: str
    type: str
    priority: int


class ProductPricingResponse(BaseModel):
    """
    Product with its resolved prices.

    WHAT: Stored cost and manual overrides next to the effective prices
    and the rule that produced them.
    """

    id: int
    name: str
    code: str | None = None
    erp_code: str | None = None
    brand_id: int | None = None
    manufacturer_id: int | None = None
    category_id: int | None = None
    cost: float | None = None
    manual_b2b_price: float | None = None
    manual_retail_price: float | None = None
    b2b_price: float = Field(..., description="Effective B2B price")
    retail_price: float = Field(..., description="Effective retail price")
    b2b_margin_percent: float
    retail_margin_percent: float
    applied_rule: AppliedRuleSummary | None = None


class ProductPricingListResponse(BaseModel):
    """Priced product list."""

    items: list[ProductPricingResponse]
    total: int
    skip: int
    limit: int


class ProductPricingUpdate(BaseModel):
    """
    Pricing update request.

    WHY: Partial update. Sending manual_b2b_price=null clears the
    override; omitting it leaves it unchanged.
    """

    cost: float | None = Field(default=None, ge=0)
    manual_b2b_price: float | None = Field(default=None, ge=0)
    manual_retail_price: float | None = Field(default=None, ge=0)
    reason: str | None = Field(default=None, max_length=1000, description="Why the price changed")

    model_config = {
        "json_schema_extra": {
            "example": {
                "cost": 82.5,
                "manual_retail_price": None,
                "reason": "Supplier price list Q3",
            }
        }
    }


class ProductPricingUpdateResponse(BaseModel):
    """Result of a pricing update."""

    product: ProductPricingResponse
    changed: bool = Field(..., description="False when nothing changed (no history row)")
    history_id: int | None = None


class PricingHistoryResponse(BaseModel):
    """One pricing history row."""

    id: int
    product_id: int
    cost: float | None = None
    b2b_price: float | None = None
    retail_price: float | None = None
    reason: str | None = None
    changed_by: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
