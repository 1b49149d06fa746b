"""
Catalog reference DAOs (brands, manufacturers, categories).

WHY: Markup rules point at one of these by id. Rule validation and rule
listing need to resolve a (type, id) pair to an entity without caring
which table it lives in.
"""

from typing import Dict, Optional, Type
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.base import Base
from app.models.catalog import Brand, Manufacturer, Category
from app.models.markup_rule import MarkupRuleType


# Rule type -> entity holding the target
TARGET_MODELS: Dict[MarkupRuleType, Type[Base]] = {
    MarkupRuleType.BRAND: Brand,
    MarkupRuleType.MANUFACTURER: Manufacturer,
    MarkupRuleType.CATEGORY: Category,
}


class BrandDAO(BaseDAO[Brand]):
    def __init__(self, session: AsyncSession):
        super().__init__(Brand, session)


class ManufacturerDAO(BaseDAO[Manufacturer]):
    def __init__(self, session: AsyncSession):
        super().__init__(Manufacturer, session)


class CategoryDAO(BaseDAO[Category]):
    def __init__(self, session: AsyncSession):
        super().__init__(Category, session)


class MarkupTargetDAO:
    """
    Resolves markup rule targets across the three catalog tables.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_target(self, rule_type: MarkupRuleType, target_id: Optional[int]):
        """
        Load the entity a rule targets.

        Args:
            rule_type: Rule scope kind
            target_id: Target entity id

        Returns:
            Brand, Manufacturer or Category instance; None for global
            rules, missing ids, or ids that don't exist
        """
        model = TARGET_MODELS.get(rule_type)
        if model is None or target_id is None:
            return None
        return await self.session.get(model, target_id)

    async def get_target_name(self, rule_type: MarkupRuleType, target_id: Optional[int]) -> str:
        """
        Display name for a rule's target.

        Returns:
            "All Products" for global rules, the entity name when found,
            otherwise "Unknown"
        """
        if rule_type == MarkupRuleType.GLOBAL:
            return "All Products"
        target = await self.get_target(rule_type, target_id)
        return target.name if target is not None else "Unknown"
