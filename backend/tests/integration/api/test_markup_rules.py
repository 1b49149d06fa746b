"""
Integration tests for markup rule API endpoints.

WHAT: Tests the admin CRUD endpoints end to end.

WHY: Verifies that:
1. Only ADMIN and MANAGER users can manage rules
2. Target validation errors map to 400/404
3. Responses carry the resolved target name

HOW: Uses the httpx test client against the FastAPI app with SQLite.
"""

import pytest

from app.models.markup_rule import MarkupRuleType
from tests.factories import BrandFactory, MarkupRuleFactory, auth_headers


BASE_URL = "/api/admin/markup-rules"


class TestAccessControl:
    """Role checks on every endpoint."""

    @pytest.mark.asyncio
    async def test_regular_user_forbidden(self, client, test_user):
        response = await client.get(BASE_URL, headers=auth_headers(test_user))

        assert response.status_code == 403
        assert response.json()["error"] == "AuthorizationError"

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get(BASE_URL)

        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_manager_allowed(self, client, test_manager):
        response = await client.get(BASE_URL, headers=auth_headers(test_manager))

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}


class TestCrud:
    """CRUD round trip as ADMIN."""

    @pytest.mark.asyncio
    async def test_create_brand_rule(self, client, db_session, test_admin):
        brand = await BrandFactory.create(db_session, name="Ubiquiti")

        response = await client.post(
            BASE_URL,
            headers=auth_headers(test_admin),
            json={
                "name": "Ubiquiti B2B",
                "type": "brand",
                "target_id": brand.id,
                "priority": 10,
                "b2b_markup_percent": 20,
                "retail_markup_percent": 45,
                "min_b2b_price": 10,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "brand"
        assert data["target_id"] == brand.id
        assert data["target_name"] == "Ubiquiti"
        assert data["b2b_markup_percent"] == 20.0
        assert data["min_b2b_price"] == 10.0

    @pytest.mark.asyncio
    async def test_create_global_rule_drops_target(self, client, test_admin):
        response = await client.post(
            BASE_URL,
            headers=auth_headers(test_admin),
            json={"name": "Default", "type": "global", "target_id": 5, "b2b_markup_percent": 15},
        )

        assert response.status_code == 201
        assert response.json()["target_id"] is None
        assert response.json()["target_name"] == "All Products"

    @pytest.mark.asyncio
    async def test_create_with_missing_target(self, client, test_admin):
        response = await client.post(
            BASE_URL,
            headers=auth_headers(test_admin),
            json={"name": "Ghost", "type": "category", "target_id": 999},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_with_inverted_bounds(self, client, test_admin):
        response = await client.post(
            BASE_URL,
            headers=auth_headers(test_admin),
            json={
                "name": "Broken",
                "type": "global",
                "min_retail_price": 500,
                "max_retail_price": 100,
            },
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_negative_markup_rejected(self, client, test_admin):
        response = await client.post(
            BASE_URL,
            headers=auth_headers(test_admin),
            json={"name": "Negative", "type": "global", "b2b_markup_percent": -5},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_ordered_by_priority(self, client, db_session, test_admin):
        await MarkupRuleFactory.create(db_session, name="Low", priority=1)
        await MarkupRuleFactory.create(db_session, name="High", priority=9)

        response = await client.get(BASE_URL, headers=auth_headers(test_admin))

        data = response.json()
        assert data["total"] == 2
        assert [item["name"] for item in data["items"]] == ["High", "Low"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, db_session, test_admin):
        rule = await MarkupRuleFactory.create(db_session, name="Old", priority=1)
        headers = auth_headers(test_admin)

        response = await client.put(
            f"{BASE_URL}/{rule.id}", headers=headers, json={"name": "New", "priority": 4}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "New"
        assert response.json()["priority"] == 4
        assert response.json()["type"] == MarkupRuleType.GLOBAL.value

        response = await client.delete(f"{BASE_URL}/{rule.id}", headers=headers)
        assert response.status_code == 204

        response = await client.get(f"{BASE_URL}/{rule.id}", headers=headers)
        assert response.status_code == 404
