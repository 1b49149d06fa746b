"""
ERP web service client (SoftOne).

WHAT: HTTP client that posts a proposal (sales quote) document to the ERP
and returns the ERP's financial identifiers.

WHY: The ERP is the system of record for quotes. A proposal only has an
official number (FINCODE) once the ERP has accepted it.

Protocol notes:
- Credentials travel in the JSON body and come from settings only
- The response body is windows-1253 (Greek single-byte), not UTF-8. It is
  read as bytes and decoded by decode_erp_response() before JSON parsing
- A body with ``success: false`` is a business error, not a transport error
- One attempt, bounded timeout, no retry. The caller decides whether to retry

HOW: Uses httpx.AsyncClient. Every failure (business, HTTP status, timeout,
connection, unreadable body) is returned as a failed ErpProposalResult;
nothing raises past create_proposal, so callers never persist on failure by
accident.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.services.erp_mapping import ErpLine, lines_to_wire
from app.services.pricing import to_decimal


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

CREATE_DOCUMENT_ENDPOINT = "/JS/webservice.utilities/getOrderDoc"

DEFAULT_FAILURE_MESSAGE = "Failed to create proposal in ERP"


# ============================================================================
# Encoding boundary
# ============================================================================


def decode_erp_response(raw: bytes, encoding: Optional[str] = None) -> str:
    """
    Decode a raw ERP response body to text.

    WHY: The ERP answers in windows-1253. Reading the body as UTF-8 turns
    every Greek letter into a replacement character, corrupting customer
    names and quote codes such as "ΠΡΦ0000403".

    Args:
        raw: Response body bytes
        encoding: Codec name (defaults to settings.ERP_RESPONSE_ENCODING)

    Returns:
        Decoded text; bytes undefined in the code page become U+FFFD
    """
    return raw.decode(encoding or settings.ERP_RESPONSE_ENCODING, errors="replace")


# ============================================================================
# Request / result types
# ============================================================================


@dataclass
class ErpProposalRequest:
    """
    Proposal document to create in the ERP.

    Attributes:
        series: Document series (e.g. "7001" for quotes)
        trdr: Customer's ERP trading-partner id
        lines: Validated lines (every line has an MTRL)
        comments: Free-text document comments
    """

    series: str
    trdr: str
    lines: List[ErpLine]
    comments: Optional[str] = None


@dataclass
class ErpProposalResult:
    """
    Outcome of an ERP proposal call.

    On success the ERP identifiers are filled and ``raw`` holds the whole
    parsed response. On failure ``error`` and (where known) ``errorcode``
    describe why.
    """

    success: bool
    proposal_number: Optional[str] = None
    findoc: Optional[str] = None
    saldocnum: Optional[str] = None
    series: Optional[str] = None
    series_num: Optional[str] = None
    turnover: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    raw: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    errorcode: Optional[int] = None

    @property
    def total(self) -> Decimal:
        return self.turnover + self.vat_amount

    @classmethod
    def failure(cls, error: str, errorcode: Optional[int] = None, raw: Optional[Dict[str, Any]] = None) -> "ErpProposalResult":
        return cls(success=False, error=error, errorcode=errorcode, raw=raw or {})

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ErpProposalResult":
        """
        Build a success result from a parsed ERP body.

        WHY: FINCODE is the human-readable quote number; older ERP builds only
        return SERIESNUM. FINDOC falls back to SALDOCNUM the same way.
        """
        proposal_number = data.get("FINCODE") or data.get("SERIESNUM")
        findoc = data.get("FINDOC") or data.get("SALDOCNUM")
        return cls(
            success=True,
            proposal_number=_as_str(proposal_number),
            findoc=_as_str(findoc),
            saldocnum=_as_str(data.get("SALDOCNUM")),
            series=_as_str(data.get("SERIES")),
            series_num=_as_str(data.get("SERIESNUM")),
            turnover=to_decimal(data.get("TURNOVR")) or Decimal("0"),
            vat_amount=to_decimal(data.get("VATAMNT")) or Decimal("0"),
            raw=data,
        )


def _as_str(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


# ============================================================================
# Client
# ============================================================================


class ErpClient:
    """
    Async HTTP client for the ERP web services.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        encoding: Optional[str] = None,
    ):
        """
        Initialize client; every argument defaults to the ERP_* settings.
        """
        self._base_url = (base_url or settings.ERP_BASE_URL).rstrip("/")
        self._username = username if username is not None else settings.ERP_USERNAME
        self._password = password if password is not None else settings.ERP_PASSWORD
        self._timeout = timeout or settings.ERP_TIMEOUT_SECONDS
        self._encoding = encoding or settings.ERP_RESPONSE_ENCODING

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{CREATE_DOCUMENT_ENDPOINT}"

    def build_request_body(self, request: ErpProposalRequest) -> Dict[str, Any]:
        """
        Build the JSON body for the create-document call.

        Args:
            request: Proposal document

        Returns:
            Request body including credentials
        """
        return {
            "username": self._username,
            "password": self._password,
            "SERIES": request.series,
            "TRDR": request.trdr,
            "COMMENTS": request.comments or settings.ERP_DEFAULT_COMMENTS,
            "MTRLINES": lines_to_wire(request.lines),
        }

    async def create_proposal(self, request: ErpProposalRequest) -> ErpProposalResult:
        """
        Create a proposal document in the ERP.

        Args:
            request: Proposal document (lines already validated)

        Returns:
            ErpProposalResult; never raises for ERP or transport failures
        """
        if not (self._base_url and self._username and self._password):
            logger.error("ERP call skipped: credentials are not configured")
            return ErpProposalResult.failure("ERP credentials are not configured")

        body = self.build_request_body(request)
        logger.info(
            "Creating ERP proposal: series=%s trdr=%s lines=%d",
            request.series,
            request.trdr,
            len(request.lines),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
            ) as client:
                response = await client.post(self.endpoint, json=body)

        except httpx.TimeoutException:
            logger.warning("ERP request timed out after %ss", self._timeout)
            return ErpProposalResult.failure(
                f"ERP request timed out after {self._timeout:g} seconds"
            )
        except httpx.RequestError as e:
            logger.warning("ERP connection error: %s", e)
            return ErpProposalResult.failure(f"ERP connection error: {e}")

        logger.info("ERP responded with HTTP %s", response.status_code)

        if not 200 <= response.status_code < 300:
            return ErpProposalResult.failure(
                f"ERP HTTP error: status {response.status_code}",
                errorcode=response.status_code,
            )

        try:
            data = json.loads(decode_erp_response(response.content, self._encoding))
        except ValueError:
            logger.warning("ERP returned a body that is not JSON")
            return ErpProposalResult.failure("ERP returned an unreadable response")

        if not isinstance(data, dict):
            return ErpProposalResult.failure("ERP returned an unexpected response")

        if not data.get("success"):
            error = data.get("error") or data.get("message") or DEFAULT_FAILURE_MESSAGE
            errorcode = data.get("errorcode") or 500
            logger.warning("ERP rejected proposal (errorcode=%s): %s", errorcode, error)
            return ErpProposalResult.failure(str(error), errorcode=errorcode, raw=data)

        result = ErpProposalResult.from_response(data)
        if not result.proposal_number:
            logger.warning("ERP accepted proposal but returned no proposal number")
        logger.info(
            "ERP proposal created: number=%s findoc=%s turnover=%s vat=%s",
            result.proposal_number,
            result.findoc,
            result.turnover,
            result.vat_amount,
        )
        return result
