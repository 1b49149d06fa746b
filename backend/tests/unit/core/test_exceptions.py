"""
Tests for custom exception hierarchy.

WHY: Comprehensive exception testing ensures:
1. Exceptions serialize correctly without leaking sensitive data
2. HTTP status codes map correctly
3. ERP failures surface their errorcode and missing line names
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
    MissingErpCodesError,
    ResourceNotFoundError,
    ProposalNotFoundError,
    MarkupRuleNotFoundError,
    MarkupTargetNotFoundError,
    PricingHistoryImmutableError,
    ExternalServiceError,
    ErpSyncError,
)
from app.core.exception_handlers import app_exception_handler


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        """Verify default message is used when none provided."""
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_status_code(self):
        """Verify custom status code overrides class default."""
        exc = AppException(status_code=418)
        assert exc.status_code == 418

    def test_to_dict_basic(self):
        """Verify exception serializes to dict correctly."""
        exc = AppException(message="Test error", proposal_id=123)
        result = exc.to_dict()

        assert result["error"] == "AppException"
        assert result["message"] == "Test error"
        assert result["status_code"] == 500
        assert result["details"] == {"proposal_id": 123}

    def test_to_dict_filters_sensitive_data(self):
        """Verify credentials never reach the serialized body."""
        exc = AppException(
            message="Test error",
            proposal_id=123,
            password="secret123",
            username="erp-user",
            token="abc123",
            api_key="key123",
            regular_field="visible",
        )
        result = exc.to_dict()

        for name in ("password", "username", "token", "api_key"):
            assert name not in result["details"]
        assert result["details"]["proposal_id"] == 123
        assert result["details"]["regular_field"] == "visible"

    def test_to_dict_no_context(self):
        """Verify to_dict works with no context data."""
        assert AppException(message="Test error").to_dict()["details"] is None


class TestStatusCodes:
    """Status code mapping of the hierarchy."""

    @pytest.mark.parametrize(
        "exc_class, expected",
        [
            (AuthenticationError, 401),
            (TokenExpiredError, 401),
            (TokenInvalidError, 401),
            (AuthorizationError, 403),
            (ValidationError, 400),
            (ResourceNotFoundError, 404),
            (ProposalNotFoundError, 404),
            (MarkupRuleNotFoundError, 404),
            (MarkupTargetNotFoundError, 404),
            (PricingHistoryImmutableError, 403),
            (ExternalServiceError, 502),
            (ErpSyncError, 502),
        ],
    )
    def test_status_code(self, exc_class, expected):
        assert exc_class().status_code == expected


class TestMissingErpCodesError:
    """Validation error listing lines without an ERP code."""

    def test_is_validation_error(self):
        exc = MissingErpCodesError(["Camera X", "Cable Y"])
        assert isinstance(exc, ValidationError)
        assert exc.status_code == 400

    def test_lists_missing_codes_in_details(self):
        """Every offending line name is reported, in order."""
        exc = MissingErpCodesError(["Camera X", "Cable Y"])
        result = exc.to_dict()

        assert result["message"] == "Some products are missing ERP codes"
        assert result["details"]["missing_codes"] == ["Camera X", "Cable Y"]
        assert exc.missing_codes == ["Camera X", "Cable Y"]


class TestErpSyncError:
    """Boundary error for ERP failures."""

    def test_carries_erp_message_and_errorcode(self):
        exc = ErpSyncError(message="Customer is blocked", errorcode=409)
        result = exc.to_dict()

        assert result["message"] == "Customer is blocked"
        assert result["details"] == {"errorcode": 409}

    def test_default_message(self):
        assert ErpSyncError().message == "Failed to create proposal in ERP"


class TestExceptionHandlerIntegration:
    """Test exception handler integration with FastAPI."""

    @pytest.fixture
    def app(self):
        """Create test FastAPI app with exception handlers."""
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)

        @app.get("/missing-codes")
        async def missing_codes():
            raise MissingErpCodesError(["Camera X"])

        @app.get("/sensitive")
        async def sensitive():
            raise ErpSyncError(message="ERP down", password="should-be-filtered", errorcode=500)

        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_missing_codes_response(self, client):
        """Verify the 400 body carries details.missing_codes."""
        response = client.get("/missing-codes")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "MissingErpCodesError"
        assert data["details"]["missing_codes"] == ["Camera X"]

    def test_handler_filters_sensitive_data(self, client):
        """Verify exception handler filters sensitive data from response."""
        response = client.get("/sensitive")

        assert response.status_code == 502
        data = response.json()
        assert "password" not in data["details"]
        assert data["details"]["errorcode"] == 500
