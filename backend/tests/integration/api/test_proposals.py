"""
Integration tests for proposal API endpoints.

WHAT: Tests status changes, ERP posting and delivery recording over HTTP.

WHY: Verifies that:
1. Status input is validated and case-insensitive
2. Acceptance returns the created project
3. ERP failures surface as 502 and leave the proposal untouched, while a
   confirmed ERP document survives a failed status change
4. Lines without ERP codes are rejected with their names

HOW: Uses the httpx test client against the FastAPI app with SQLite.
The ERP client is mocked; no network access.
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from app.core.exceptions import ValidationError
from app.db.session import get_db
from app.main import app
from app.models.proposal import ProposalStatus
from app.services.erp_client import ErpClient, ErpProposalResult
from app.services.proposal_lifecycle import ProposalLifecycleService
from tests.factories import (
    CustomerFactory,
    LeadFactory,
    ProposalFactory,
    RfpFactory,
    auth_headers,
)


BASE_URL = "/api/proposals"

EQUIPMENT = [
    {"id": 1, "type": "product", "name": "Camera", "erp_code": "1001", "quantity": 2, "price": 150},
]


def erp_success(number: str = "QUO-0100") -> ErpProposalResult:
    return ErpProposalResult(
        success=True,
        proposal_number=number,
        findoc="900",
        series="7001",
        series_num="100",
        turnover=Decimal("300"),
        vat_amount=Decimal("72"),
        raw={"success": True, "FINCODE": number},
    )


class TestGetProposal:
    @pytest.mark.asyncio
    async def test_get(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)

        response = await client.get(f"{BASE_URL}/{proposal.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        assert response.json()["status"] == "draft"
        assert response.json()["erp_sync_status"] == "not_synced"

    @pytest.mark.asyncio
    async def test_not_found(self, client, test_user):
        response = await client.get(f"{BASE_URL}/999", headers=auth_headers(test_user))

        assert response.status_code == 404
        assert response.json()["error"] == "ProposalNotFoundError"


class TestUpdateStatus:
    """Tests for PUT /proposals/{id}/status."""

    @pytest.mark.asyncio
    async def test_uppercase_status_accepted(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)

        response = await client.put(
            f"{BASE_URL}/{proposal.id}/status",
            headers=auth_headers(test_user),
            json={"status": "IN_REVIEW", "note": "Please check"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["changed"] is True
        assert data["proposal"]["status"] == "in_review"
        assert "Status changed from DRAFT to IN_REVIEW: Please check" in data["proposal"]["notes"]

    @pytest.mark.asyncio
    async def test_unknown_status(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)

        response = await client.put(
            f"{BASE_URL}/{proposal.id}/status",
            headers=auth_headers(test_user),
            json={"status": "archived"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_accept_creates_project(self, client, db_session, test_user, test_manager):
        customer = await CustomerFactory.create(db_session)
        lead = await LeadFactory.create(db_session, customer_id=customer.id, assignee_id=test_user.id)
        proposal = await ProposalFactory.create(
            db_session, customer_id=customer.id, lead_id=lead.id, status=ProposalStatus.SENT
        )

        response = await client.put(
            f"{BASE_URL}/{proposal.id}/status",
            headers=auth_headers(test_user),
            json={
                "status": "accepted",
                "project_manager_id": test_manager.id,
                "project_title": "Delivery project",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["lead_converted"] is True
        assert data["proposal"]["approved_date"] is not None
        project = data["project"]
        assert project["name"] == "Delivery project"
        assert project["status"] == "active"
        assert project["assignments"] == [
            {"user_id": test_manager.id, "role": "Project Manager"},
            {"user_id": test_user.id, "role": "Member"},
        ]


class TestSendToErp:
    """Tests for POST /proposals/{id}/send-to-erp."""

    @pytest.mark.asyncio
    async def test_success_moves_to_approved(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(
            db_session, customer_id=customer.id, equipment=EQUIPMENT
        )

        with patch.object(ErpClient, "create_proposal", AsyncMock(return_value=erp_success())) as call:
            response = await client.post(
                f"{BASE_URL}/{proposal.id}/send-to-erp", headers=auth_headers(test_user)
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["proposal_number"] == "QUO-0100"
        assert data["status"] == "approved"
        assert data["created"] is False
        assert data["items_count"] == 1
        assert data["erp_data"]["total"] == 372.0
        assert call.await_args.args[0].comments == "Proposal: Warehouse CCTV"

        detail = await client.get(f"{BASE_URL}/{proposal.id}", headers=auth_headers(test_user))
        assert detail.json()["erp_quote_number"] == "QUO-0100"
        assert detail.json()["erp_sync_status"] == "synced"
        assert detail.json()["erp_turnover"] == 300.0

    @pytest.mark.asyncio
    async def test_falls_back_to_rfp_equipment(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        rfp = await RfpFactory.create(db_session, customer_id=customer.id, equipment=EQUIPMENT)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id, rfp_id=rfp.id)

        with patch.object(ErpClient, "create_proposal", AsyncMock(return_value=erp_success())):
            response = await client.post(
                f"{BASE_URL}/{proposal.id}/send-to-erp", headers=auth_headers(test_user)
            )

        assert response.status_code == 200
        assert response.json()["items_count"] == 1

    @pytest.mark.asyncio
    async def test_no_equipment(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)

        response = await client.post(
            f"{BASE_URL}/{proposal.id}/send-to-erp", headers=auth_headers(test_user)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No products or services found in proposal"

    @pytest.mark.asyncio
    async def test_missing_codes(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)
        create_proposal = AsyncMock(return_value=erp_success())

        with patch.object(ErpClient, "create_proposal", create_proposal):
            response = await client.post(
                f"{BASE_URL}/{proposal.id}/send-to-erp",
                headers=auth_headers(test_user),
                json={"equipment": [{"name": "Camera X"}, {"name": "Cable", "erp_code": "7"}]},
            )

        assert response.status_code == 400
        assert response.json()["details"]["missing_codes"] == ["Camera X"]
        create_proposal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_erp_failure_is_502(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(
            db_session, customer_id=customer.id, equipment=EQUIPMENT
        )
        failure = ErpProposalResult.failure("Customer is blocked", errorcode=13)

        with patch.object(ErpClient, "create_proposal", AsyncMock(return_value=failure)):
            response = await client.post(
                f"{BASE_URL}/{proposal.id}/send-to-erp", headers=auth_headers(test_user)
            )

        assert response.status_code == 502
        data = response.json()
        assert data["message"] == "Customer is blocked"
        assert data["details"]["errorcode"] == 13

        detail = await client.get(f"{BASE_URL}/{proposal.id}", headers=auth_headers(test_user))
        assert detail.json()["status"] == "draft"
        assert detail.json()["erp_quote_number"] is None

    @pytest.mark.asyncio
    async def test_erp_identifiers_survive_failed_transition(self, client, db_session, test_user):
        """
        Test that a confirmed ERP document is kept when the status change fails.

        WHY: The ERP quote exists remotely once the call succeeds. Losing its
        number locally would make the next send create a second quote.
        """
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(
            db_session, customer_id=customer.id, equipment=EQUIPMENT
        )

        async def rolling_back_db():
            try:
                yield db_session
            except Exception:
                await db_session.rollback()
                raise

        app.dependency_overrides[get_db] = rolling_back_db
        transition = AsyncMock(side_effect=ValidationError(message="Transition rejected"))

        with patch.object(ErpClient, "create_proposal", AsyncMock(return_value=erp_success())):
            with patch.object(ProposalLifecycleService, "transition", transition):
                response = await client.post(
                    f"{BASE_URL}/{proposal.id}/send-to-erp", headers=auth_headers(test_user)
                )

        assert response.status_code == 400
        detail = await client.get(f"{BASE_URL}/{proposal.id}", headers=auth_headers(test_user))
        assert detail.json()["erp_quote_number"] == "QUO-0100"
        assert detail.json()["erp_sync_status"] == "synced"
        assert detail.json()["status"] == "draft"


class TestDeliveries:
    """Tests for POST /proposals/{id}/deliveries."""

    @pytest.mark.asyncio
    async def test_record_delivery(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(
            db_session,
            customer_id=customer.id,
            status=ProposalStatus.APPROVED,
            pdf_document_url="https://files.example.com/p.pdf",
        )

        response = await client.post(
            f"{BASE_URL}/{proposal.id}/deliveries",
            headers=auth_headers(test_user),
            json={"recipient_emails": ["buyer@customer.example", "Buyer@customer.example"]},
        )

        assert response.status_code == 200
        data = response.json()["proposal"]
        assert data["status"] == "sent"
        assert data["sent_count"] == 1
        assert data["sent_to_emails"] == ["buyer@customer.example"]
        assert data["stage"] == "sent_to_customer"

    @pytest.mark.asyncio
    async def test_without_document(self, client, db_session, test_user):
        customer = await CustomerFactory.create(db_session)
        proposal = await ProposalFactory.create(db_session, customer_id=customer.id)

        response = await client.post(
            f"{BASE_URL}/{proposal.id}/deliveries",
            headers=auth_headers(test_user),
            json={"recipient_emails": ["buyer@customer.example"]},
        )

        assert response.status_code == 400
