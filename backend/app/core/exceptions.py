"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages

IMPORTANT: NEVER use base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, List, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        # WHY: ERP credentials and bearer tokens must never reach a response body
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "username"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when authentication fails.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppException):
    """
    Raised when user lacks permissions for an action.

    WHY: Distinguishing authorization (403) from authentication (401) helps
    frontends show appropriate messages ("You don't have permission" vs
    "Please log in").

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is malformed or has invalid signature."""

    default_message = "Token is invalid"


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    WHY: Validation errors should return 400 Bad Request with details
    about which fields failed validation, helping users correct their input.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class MissingErpCodesError(ValidationError):
    """
    Raised when proposal lines cannot be posted because they lack an ERP code.

    WHY: The ERP rejects lines without a MTRL. Listing every offending line
    name lets the user fix all of them in one pass instead of one per retry.

    HTTP Status: 400 Bad Request
    """

    default_message = "Some products are missing ERP codes"

    def __init__(self, missing_codes: List[str], message: Optional[str] = None):
        super().__init__(
            message or self.default_message,
            missing_codes=list(missing_codes),
        )
        self.missing_codes = list(missing_codes)


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class ProposalNotFoundError(ResourceNotFoundError):
    """Raised when a proposal doesn't exist."""

    default_message = "Proposal not found"


class MarkupRuleNotFoundError(ResourceNotFoundError):
    """Raised when a markup rule doesn't exist."""

    default_message = "Markup rule not found"


class ProductNotFoundError(ResourceNotFoundError):
    """Raised when a product doesn't exist."""

    default_message = "Product not found"


class RfpNotFoundError(ResourceNotFoundError):
    """Raised when an RFP doesn't exist."""

    default_message = "RFP not found"


class SiteSurveyNotFoundError(ResourceNotFoundError):
    """Raised when a site survey doesn't exist."""

    default_message = "Site survey not found"


class MarkupTargetNotFoundError(ResourceNotFoundError):
    """
    Raised when a markup rule points at a brand, manufacturer or category
    that does not exist.
    """

    default_message = "Markup rule target not found"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class PricingHistoryImmutableError(AppException):
    """
    Raised when attempting to update or delete a pricing history row.

    WHY: Pricing history is an audit trail. Once written it is never
    modified, otherwise price disputes cannot be reconstructed.

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "Pricing history is append-only and cannot be modified"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    WHY: External API failures should return 502 Bad Gateway, indicating
    the problem is with an upstream service, not our application.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class ErpSyncError(ExternalServiceError):
    """
    Raised at the HTTP boundary when the ERP rejects or fails a proposal.

    WHY: The sync client returns failures as values so local state is never
    touched; the router converts them into this error so the caller sees the
    ERP message and its errorcode.

    HTTP Status: 502 Bad Gateway
    """

    default_message = "Failed to create proposal in ERP"
