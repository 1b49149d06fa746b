"""
Pydantic schemas for markup rule administration.

WHAT: Request/response schemas for the markup rule endpoints.

WHY: Markups are bounded (0-1000%) and prices non-negative at the API
edge, so the service only has to enforce the cross-field rules (target
exists, min not above max).
"""

from datetime import datetime
from pydantic import BaseModel, Field

from app.models.markup_rule import MarkupRuleType


class MarkupRuleBase(BaseModel):
    """Fields shared by create requests and responses."""

    name: str = Field(..., min_length=1, max_length=255, description="Rule name")
    description: str | None = Field(default=None, max_length=2000)
    type: MarkupRuleType = Field(..., description="Scope: brand, manufacturer, category or global")
    target_id: int | None = Field(
        default=None,
        description="Brand/manufacturer/category id (ignored for global rules)",
    )
    priority: int = Field(default=0, description="Higher priority wins")
    b2b_markup_percent: float = Field(default=0, ge=0, le=1000)
    retail_markup_percent: float = Field(default=0, ge=0, le=1000)
    min_b2b_price: float | None = Field(default=None, ge=0)
    max_b2b_price: float | None = Field(default=None, ge=0)
    min_retail_price: float | None = Field(default=None, ge=0)
    max_retail_price: float | None = Field(default=None, ge=0)
    is_active: bool = Field(default=True)


class MarkupRuleCreate(MarkupRuleBase):
    """
    Markup rule creation request.
    """

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Ubiquiti B2B",
                "type": "brand",
                "target_id": 3,
                "priority": 10,
                "b2b_markup_percent": 20,
                "retail_markup_percent": 45,
                "min_b2b_price": 15,
            }
        }
    }


class MarkupRuleUpdate(BaseModel):
    """
    Markup rule update request.

    WHY: Partial update; only fields the client sends are applied
    (model_dump(exclude_unset=True)), so null can clear a bound.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    type: MarkupRuleType | None = None
    target_id: int | None = None
    priority: int | None = None
    b2b_markup_percent: float | None = Field(default=None, ge=0, le=1000)
    retail_markup_percent: float | None = Field(default=None, ge=0, le=1000)
    min_b2b_price: float | None = Field(default=None, ge=0)
    max_b2b_price: float | None = Field(default=None, ge=0)
    min_retail_price: float | None = Field(default=None, ge=0)
    max_retail_price: float | None = Field(default=None, ge=0)
    is_active: bool | None = None


class MarkupRuleResponse(MarkupRuleBase):
    """Markup rule as returned by the API."""

    id: int
    target_name: str = Field(..., description='Target display name ("All Products" for global)')
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MarkupRuleListResponse(BaseModel):
    """Markup rule list, highest priority first."""

    items: list[MarkupRuleResponse]
    total: int
