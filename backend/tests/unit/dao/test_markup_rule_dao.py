"""
Unit tests for MarkupRule DAO.

WHAT: Tests for rule listing order and candidate rule lookup.

WHY: The admin list and the resolver both depend on these queries:
1. Admins see rules highest priority first
2. Only active rules that could target a product reach the resolver

HOW: Uses pytest-asyncio with in-memory SQLite database for isolation.
"""

import pytest
from decimal import Decimal

from app.dao.catalog import MarkupTargetDAO
from app.dao.markup_rule import MarkupRuleDAO
from app.models.markup_rule import MarkupRuleType
from tests.factories import (
    BrandFactory,
    CategoryFactory,
    MarkupRuleFactory,
    ProductFactory,
)


class TestListOrdered:
    """Tests for the admin listing order."""

    @pytest.mark.asyncio
    async def test_highest_priority_first(self, db_session):
        low = await MarkupRuleFactory.create(db_session, name="Low", priority=1)
        high = await MarkupRuleFactory.create(db_session, name="High", priority=10)
        mid = await MarkupRuleFactory.create(db_session, name="Mid", priority=5)

        rules = await MarkupRuleDAO(db_session).list_ordered()

        assert [r.id for r in rules] == [high.id, mid.id, low.id]

    @pytest.mark.asyncio
    async def test_newest_first_within_priority(self, db_session):
        first = await MarkupRuleFactory.create(db_session, name="First", priority=3)
        second = await MarkupRuleFactory.create(db_session, name="Second", priority=3)

        rules = await MarkupRuleDAO(db_session).list_ordered()

        assert [r.id for r in rules] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_includes_inactive_rules(self, db_session):
        await MarkupRuleFactory.create(db_session, is_active=False)

        rules = await MarkupRuleDAO(db_session).list_ordered()

        assert len(rules) == 1


class TestGetApplicableRules:
    """Tests for candidate rule lookup."""

    @pytest.mark.asyncio
    async def test_returns_global_and_matching_scoped_rules(self, db_session):
        """
        Test rule candidates for a product.

        WHY: A rule for another brand must never be a candidate.
        """
        brand = await BrandFactory.create(db_session, name="Hikvision")
        other_brand = await BrandFactory.create(db_session, name="Dahua")
        category = await CategoryFactory.create(db_session)
        product = await ProductFactory.create(
            db_session, brand_id=brand.id, category_id=category.id
        )

        global_rule = await MarkupRuleFactory.create(db_session, name="Global")
        brand_rule = await MarkupRuleFactory.create(
            db_session, name="Brand", type=MarkupRuleType.BRAND, target_id=brand.id
        )
        category_rule = await MarkupRuleFactory.create(
            db_session, name="Category", type=MarkupRuleType.CATEGORY, target_id=category.id
        )
        await MarkupRuleFactory.create(
            db_session, name="Other brand", type=MarkupRuleType.BRAND, target_id=other_brand.id
        )

        rules = await MarkupRuleDAO(db_session).get_applicable_rules(product)

        assert {r.id for r in rules} == {global_rule.id, brand_rule.id, category_rule.id}

    @pytest.mark.asyncio
    async def test_excludes_inactive_rules(self, db_session):
        product = await ProductFactory.create(db_session)
        await MarkupRuleFactory.create(db_session, is_active=False)

        assert await MarkupRuleDAO(db_session).get_applicable_rules(product) == []

    @pytest.mark.asyncio
    async def test_active_rules_only(self, db_session):
        active = await MarkupRuleFactory.create(db_session, b2b_markup_percent=Decimal("10"))
        await MarkupRuleFactory.create(db_session, is_active=False)

        rules = await MarkupRuleDAO(db_session).get_active_rules()

        assert [r.id for r in rules] == [active.id]


class TestMarkupTargetDAO:
    """Tests for rule target resolution."""

    @pytest.mark.asyncio
    async def test_target_names(self, db_session):
        brand = await BrandFactory.create(db_session, name="Axis")
        dao = MarkupTargetDAO(db_session)

        assert await dao.get_target_name(MarkupRuleType.GLOBAL, None) == "All Products"
        assert await dao.get_target_name(MarkupRuleType.BRAND, brand.id) == "Axis"
        assert await dao.get_target_name(MarkupRuleType.BRAND, 9999) == "Unknown"

    @pytest.mark.asyncio
    async def test_target_kind_must_match(self, db_session):
        """A brand id is not a category."""
        brand = await BrandFactory.create(db_session)

        target = await MarkupTargetDAO(db_session).get_target(MarkupRuleType.CATEGORY, brand.id)

        assert target is None
