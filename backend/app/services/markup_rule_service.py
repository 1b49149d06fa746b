"""
Markup rule management service.

WHAT: Create, update, delete and list markup rules with target validation.

WHY: A rule that points at a brand that doesn't exist silently never
matches, which is worse than an error. Validation here guarantees every
non-global rule targets a real entity of the matching kind, and that
global rules never carry a target.
"""

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    MarkupRuleNotFoundError,
    MarkupTargetNotFoundError,
    ValidationError,
)
from app.dao.catalog import MarkupTargetDAO
from app.dao.markup_rule import MarkupRuleDAO
from app.models.markup_rule import MarkupRule, MarkupRuleType
from app.services.pricing import validate_pricing_constraints


logger = logging.getLogger(__name__)

_BOUND_PAIRS = (
    ("min_b2b_price", "max_b2b_price", "b2b_markup_percent"),
    ("min_retail_price", "max_retail_price", "retail_markup_percent"),
)


class MarkupRuleService:
    """
    Service for markup rule administration.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rule_dao = MarkupRuleDAO(session)
        self.target_dao = MarkupTargetDAO(session)

    async def get_rule(self, rule_id: int) -> MarkupRule:
        """
        Load a rule or raise 404.

        Raises:
            MarkupRuleNotFoundError: If the rule doesn't exist
        """
        rule = await self.rule_dao.get_by_id(rule_id)
        if not rule:
            raise MarkupRuleNotFoundError(
                message=f"Markup rule with id {rule_id} not found",
                resource_type="MarkupRule",
                resource_id=rule_id,
            )
        return rule

    async def _validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a full rule field set and normalize the target.

        WHY: Runs on the merged state (existing row + changes) so a partial
        update cannot produce an invalid rule.

        Raises:
            ValidationError: Non-global rule without target, or min > max
            MarkupTargetNotFoundError: Target doesn't exist
        """
        rule_type = MarkupRuleType(data["type"])

        if rule_type == MarkupRuleType.GLOBAL:
            data["target_id"] = None
        else:
            target_id = data.get("target_id")
            if target_id is None:
                raise ValidationError(
                    message=f"target_id is required for {rule_type.value} rules",
                    field="target_id",
                )
            target = await self.target_dao.get_target(rule_type, target_id)
            if target is None:
                raise MarkupTargetNotFoundError(
                    message=f"{rule_type.value.capitalize()} with id {target_id} not found",
                    resource_type=rule_type.value,
                    resource_id=target_id,
                )

        for min_field, max_field, markup_field in _BOUND_PAIRS:
            check = validate_pricing_constraints(
                cost=None,
                markup_percent=data.get(markup_field),
                min_price=data.get(min_field),
                max_price=data.get(max_field),
            )
            if not check.is_valid:
                raise ValidationError(
                    message=check.errors[0],
                    errors=check.errors,
                    field=min_field,
                )

        data["type"] = rule_type
        return data

    async def create_rule(self, data: Dict[str, Any]) -> MarkupRule:
        """
        Create a markup rule.

        Args:
            data: Rule fields (type, target_id, priority, markups, bounds, ...)

        Returns:
            Created rule
        """
        data = await self._validate(dict(data))
        rule = await self.rule_dao.create(**data)
        logger.info(
            "Markup rule %s created (type=%s target=%s priority=%s)",
            rule.id,
            rule.type.value,
            rule.target_id,
            rule.priority,
        )
        return rule

    async def update_rule(self, rule_id: int, changes: Dict[str, Any]) -> MarkupRule:
        """
        Update a markup rule with partial changes.

        Args:
            rule_id: Rule to update
            changes: Fields explicitly sent by the caller

        Returns:
            Updated rule
        """
        rule = await self.get_rule(rule_id)

        merged = {
            column.name: getattr(rule, column.name)
            for column in MarkupRule.__table__.columns
            if column.name not in ("id", "created_at", "updated_at")
        }
        merged.update(changes)
        merged = await self._validate(merged)

        for field_name, value in merged.items():
            setattr(rule, field_name, value)
        rule = await self.rule_dao.save(rule)
        logger.info("Markup rule %s updated", rule.id)
        return rule

    async def delete_rule(self, rule_id: int) -> None:
        """
        Delete a markup rule.

        Raises:
            MarkupRuleNotFoundError: If the rule doesn't exist
        """
        await self.get_rule(rule_id)
        await self.rule_dao.delete(rule_id)
        logger.info("Markup rule %s deleted", rule_id)

    async def target_name(self, rule: MarkupRule) -> str:
        """Display name of the rule's target ("All Products" for global)."""
        return await self.target_dao.get_target_name(rule.type, rule.target_id)

    async def list_rules(
        self,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Tuple[MarkupRule, str]]:
        """
        List rules with their target names.

        Returns:
            (rule, target_name) pairs, highest priority first, newest first
        """
        rules = await self.rule_dao.list_ordered(skip=skip, limit=limit)
        return [(rule, await self.target_name(rule)) for rule in rules]
