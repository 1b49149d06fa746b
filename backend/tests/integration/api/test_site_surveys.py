"""
Integration tests for site survey proposal generation.

WHAT: Tests POST /site-surveys/{id}/generate-proposal.

WHY: The site survey is the idempotency key for ERP proposals. Posting
the same survey twice must update one proposal, and lines without ERP
codes must be rejected before the ERP is called.

HOW: Uses the httpx test client against the FastAPI app with SQLite.
The ERP client is mocked; no network access.
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from sqlalchemy import func, select

from app.models.proposal import Proposal
from app.services.erp_client import ErpClient, ErpProposalResult
from tests.factories import (
    CustomerFactory,
    LeadFactory,
    SiteSurveyFactory,
    auth_headers,
)


EQUIPMENT = [
    {"id": 12, "type": "product", "name": "Switch 24p", "quantity": 2, "price": 310.0, "erp_code": "1001"},
    {"id": 3, "type": "service", "name": "Installation", "quantity": 1, "price": 150.0, "erp_code": "9001"},
]


def erp_success(number: str) -> ErpProposalResult:
    return ErpProposalResult(
        success=True,
        proposal_number=number,
        findoc="321",
        series="7001",
        series_num="12",
        turnover=Decimal("770"),
        vat_amount=Decimal("184.80"),
        raw={"success": True, "FINCODE": number},
    )


def url(site_survey_id: int) -> str:
    return f"/api/site-surveys/{site_survey_id}/generate-proposal"


class TestGenerateProposal:
    """Tests for the site survey endpoint."""

    @pytest.mark.asyncio
    async def test_creates_sent_proposal(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        lead = await LeadFactory.create(db_session, customer_id=customer.id)
        survey = await SiteSurveyFactory.create(
            db_session, customer_id=customer.id, lead_id=lead.id, title="Warehouse"
        )
        create_proposal = AsyncMock(return_value=erp_success("ΠΡΦ0000403"))

        with patch.object(ErpClient, "create_proposal", create_proposal):
            response = await client.post(
                url(survey.id), headers=auth_headers(test_user), json={"equipment": EQUIPMENT}
            )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Proposal created successfully in ERP"
        assert data["proposal_number"] == "ΠΡΦ0000403"
        assert data["status"] == "sent"
        assert data["created"] is True
        assert data["items_count"] == 2
        assert data["erp_data"]["total"] == 954.8

        request = create_proposal.await_args.args[0]
        assert request.comments == "Proposal for Warehouse - Generated from CRM"
        assert [line.sodtype for line in request.lines] == ["52", "51"]

    @pytest.mark.asyncio
    async def test_second_post_updates_same_proposal(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        survey = await SiteSurveyFactory.create(db_session, customer_id=customer.id)
        create_proposal = AsyncMock(side_effect=[erp_success("Q-1"), erp_success("Q-2")])

        with patch.object(ErpClient, "create_proposal", create_proposal):
            first = await client.post(
                url(survey.id), headers=auth_headers(test_user), json={"equipment": EQUIPMENT}
            )
            second = await client.post(
                url(survey.id), headers=auth_headers(test_user), json={"equipment": EQUIPMENT[:1]}
            )

        assert first.json()["proposal_id"] == second.json()["proposal_id"]
        assert second.json()["created"] is False
        assert second.json()["proposal_number"] == "Q-2"
        count = (await db_session.execute(select(func.count()).select_from(Proposal))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_missing_codes(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        survey = await SiteSurveyFactory.create(db_session, customer_id=customer.id)
        create_proposal = AsyncMock()

        with patch.object(ErpClient, "create_proposal", create_proposal):
            response = await client.post(
                url(survey.id),
                headers=auth_headers(test_user),
                json={"equipment": [{"name": "Camera X"}, {"name": "Cable Y"}]},
            )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "MissingErpCodesError"
        assert data["details"]["missing_codes"] == ["Camera X", "Cable Y"]
        create_proposal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_customer_without_trdr(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session, trdr=None)
        survey = await SiteSurveyFactory.create(db_session, customer_id=customer.id)

        response = await client.post(
            url(survey.id), headers=auth_headers(test_user), json={"equipment": EQUIPMENT}
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "trdr"

    @pytest.mark.asyncio
    async def test_survey_without_customer(self, client, db_session, test_user):
        survey = await SiteSurveyFactory.create(db_session)

        response = await client.post(
            url(survey.id), headers=auth_headers(test_user), json={"equipment": EQUIPMENT}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_survey(self, client, test_user):
        response = await client.post(
            url(999), headers=auth_headers(test_user), json={"equipment": EQUIPMENT}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_equipment_rejected(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        survey = await SiteSurveyFactory.create(db_session, customer_id=customer.id)

        response = await client.post(
            url(survey.id), headers=auth_headers(test_user), json={"equipment": []}
        )

        assert response.status_code == 400
