"""
Unit tests for Product and ProductPricingHistory DAOs.

WHAT: Tests for product lookups and the append-only pricing history.

WHY: Pricing history is an audit trail. Appends must work and updates or
deletes must be refused, so price disputes can always be reconstructed.

HOW: Uses pytest-asyncio with in-memory SQLite database for isolation.
"""

import pytest
from decimal import Decimal

from app.core.exceptions import PricingHistoryImmutableError
from app.dao.product import ProductDAO, ProductPricingHistoryDAO
from tests.factories import ProductFactory, UserFactory


class TestProductDAO:
    """Tests for ProductDAO."""

    @pytest.mark.asyncio
    async def test_get_by_erp_code(self, db_session):
        product = await ProductFactory.create(db_session, erp_code="MTRL-1")

        found = await ProductDAO(db_session).get_by_erp_code("MTRL-1")

        assert found.id == product.id

    @pytest.mark.asyncio
    async def test_list_by_name(self, db_session):
        await ProductFactory.create(db_session, name="Switch")
        await ProductFactory.create(db_session, name="Camera")

        products = await ProductDAO(db_session).list_by_name()

        assert [p.name for p in products] == ["Camera", "Switch"]


class TestPricingHistoryDAO:
    """Tests for the append-only history."""

    @pytest.mark.asyncio
    async def test_append_and_list_newest_first(self, db_session):
        user = await UserFactory.create(db_session)
        product = await ProductFactory.create(db_session)
        dao = ProductPricingHistoryDAO(db_session)

        first = await dao.append(
            product_id=product.id,
            cost=Decimal("100.00"),
            b2b_price=Decimal("120.00"),
            retail_price=Decimal("140.00"),
            reason="Initial",
            changed_by=user.id,
        )
        second = await dao.append(
            product_id=product.id,
            cost=Decimal("110.00"),
            b2b_price=Decimal("132.00"),
            retail_price=Decimal("154.00"),
            reason="Supplier increase",
            changed_by=user.id,
        )

        history = await dao.list_for_product(product.id)

        assert [h.id for h in history] == [second.id, first.id]
        assert history[0].reason == "Supplier increase"

    @pytest.mark.asyncio
    async def test_update_is_refused(self, db_session):
        product = await ProductFactory.create(db_session)
        dao = ProductPricingHistoryDAO(db_session)
        entry = await dao.append(product_id=product.id, cost=Decimal("1.00"))

        with pytest.raises(PricingHistoryImmutableError) as exc_info:
            await dao.update(entry.id, cost=Decimal("2.00"))

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_is_refused(self, db_session):
        product = await ProductFactory.create(db_session)
        dao = ProductPricingHistoryDAO(db_session)
        entry = await dao.append(product_id=product.id, cost=Decimal("1.00"))

        with pytest.raises(PricingHistoryImmutableError):
            await dao.delete(entry.id)

        assert len(await dao.list_for_product(product.id)) == 1
