"""
Markup rule administration API endpoints.

WHAT: CRUD for the markup rules the price resolver reads.

WHY: Markups drive every quoted price, so only ADMIN and MANAGER may
change them. The role check runs as a dependency, before any data access.

HOW: FastAPI router -> MarkupRuleService -> MarkupRuleDAO / MarkupTargetDAO.
"""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import require_pricing_admin
from app.db.session import get_db
from app.models.markup_rule import MarkupRule
from app.models.user import User
from app.schemas.markup_rule import (
    MarkupRuleCreate,
    MarkupRuleListResponse,
    MarkupRuleResponse,
    MarkupRuleUpdate,
)
from app.services.markup_rule_service import MarkupRuleService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/markup-rules", tags=["markup-rules"])


def _rule_to_response(rule: MarkupRule, target_name: str) -> MarkupRuleResponse:
    """
    Convert MarkupRule model to MarkupRuleResponse schema.

    WHY: target_name is not a column; it is resolved per rule type.
    """
    return MarkupRuleResponse(
        id=rule.id,
        name=rule.name,
        description=rule.description,
        type=rule.type,
        target_id=rule.target_id,
        priority=rule.priority,
        b2b_markup_percent=float(rule.b2b_markup_percent or 0),
        retail_markup_percent=float(rule.retail_markup_percent or 0),
        min_b2b_price=_money(rule.min_b2b_price),
        max_b2b_price=_money(rule.max_b2b_price),
        min_retail_price=_money(rule.min_retail_price),
        max_retail_price=_money(rule.max_retail_price),
        is_active=rule.is_active,
        target_name=target_name,
        created_at=rule.created_at,
        updated_at=rule.updated_at,
    )


def _money(value):
    return float(value) if value is not None else None


@router.get(
    "",
    response_model=MarkupRuleListResponse,
    status_code=status.HTTP_200_OK,
    summary="List markup rules",
)
async def list_markup_rules(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> MarkupRuleListResponse:
    """
    List markup rules, highest priority first, then newest first.
    """
    service = MarkupRuleService(db)
    pairs = await service.list_rules(skip=skip, limit=limit)
    total = await service.rule_dao.count()
    return MarkupRuleListResponse(
        items=[_rule_to_response(rule, name) for rule, name in pairs],
        total=total,
    )


@router.post(
    "",
    response_model=MarkupRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create markup rule",
)
async def create_markup_rule(
    data: MarkupRuleCreate,
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> MarkupRuleResponse:
    """
    Create a markup rule.

    Raises:
        ValidationError (400): Non-global rule without target, or min > max
        MarkupTargetNotFoundError (404): Target entity doesn't exist
    """
    service = MarkupRuleService(db)
    rule = await service.create_rule(data.model_dump())
    logger.info("User %s created markup rule %s", current_user.id, rule.id)
    return _rule_to_response(rule, await service.target_name(rule))


@router.get(
    "/{rule_id}",
    response_model=MarkupRuleResponse,
    status_code=status.HTTP_200_OK,
    summary="Get markup rule",
)
async def get_markup_rule(
    rule_id: int,
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> MarkupRuleResponse:
    service = MarkupRuleService(db)
    rule = await service.get_rule(rule_id)
    return _rule_to_response(rule, await service.target_name(rule))


@router.put(
    "/{rule_id}",
    response_model=MarkupRuleResponse,
    status_code=status.HTTP_200_OK,
    summary="Update markup rule",
)
async def update_markup_rule(
    rule_id: int,
    data: MarkupRuleUpdate,
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> MarkupRuleResponse:
    """
    Update a markup rule (partial).

    Switching a rule to global clears its target.
    """
    service = MarkupRuleService(db)
    rule = await service.update_rule(rule_id, data.model_dump(exclude_unset=True))
    logger.info("User %s updated markup rule %s", current_user.id, rule.id)
    return _rule_to_response(rule, await service.target_name(rule))


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete markup rule",
)
async def delete_markup_rule(
    rule_id: int,
    current_user: User = Depends(require_pricing_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = MarkupRuleService(db)
    await service.delete_rule(rule_id)
    logger.info("User %s deleted markup rule %s", current_user.id, rule_id)
