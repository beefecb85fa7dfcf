# ============================================================================
# Ledger Staking Gateway v1.0.0
# Ledger Client - JSON API Request Executor
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Single boundary for every ledger JSON API interaction
#
# MANDATE:
#   - Bearer token acquired from the TokenLeaseManager before every call
#   - Request body serialized for write-style methods only
#   - Exactly one attempt per call (no retry, no backoff)
#   - Every failure normalized to LedgerError
#
# Error Codes:
#   - <ledger code>:             Ledger answered with a structured error
#   - LEDGER_HTTP_ERROR:         Non-success status without structured body
#   - LEDGER_TRANSPORT_ERROR:    Connection failure or timeout
#   - LEDGER_INVALID_RESPONSE:   Success status with undecodable body
#
# ============================================================================

import logging
from typing import Any, Dict, Optional

import requests
from requests.exceptions import Timeout, ConnectionError as RequestsConnectionError

from app.ledger.errors import LedgerError
from app.ledger.token_lease import TokenLeaseManager
from app.observability.metrics import record_ledger_request

logger = logging.getLogger(__name__)


WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})


class LedgerClient:
    """
    Ledger JSON API Client.

    Attaches the bearer token, issues the call against
    <base_url>/v2/<endpoint>, and converts every non-success outcome into a
    LedgerError with a uniform shape.

    Reliability Level: CORE
    Retry Policy: None (single attempt)

    Example Usage:
        with LedgerClient(ledger_url, leases) as client:
            end = client.invoke("state/ledger-end", method="GET")
    """

    API_PREFIX = "v2"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        base_url: str,
        token_manager: TokenLeaseManager,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_manager = token_manager
        self.timeout = timeout
        self._session = session or requests.Session()

        logger.info(
            f"[LEDGER-CLI] Client initialized | "
            f"base_url={self.base_url} | timeout={timeout}s"
        )

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{self.API_PREFIX}/{endpoint.lstrip('/')}"

    def invoke(
        self,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        method: str = "POST",
        correlation_id: Optional[str] = None,
    ) -> Any:
        """
        Execute one ledger call and return the parsed JSON response.

        Reliability Level: CORE
        Side Effects: Token refresh (if lease expired), HTTP request

        Args:
            endpoint: Path relative to /v2/ (e.g. "state/active-contracts")
            body: JSON payload (sent only for write-style methods)
            method: HTTP method
            correlation_id: Audit trail identifier

        Returns:
            Parsed JSON body

        Raises:
            AuthError: If the bearer token cannot be acquired
            LedgerError: If the call fails for any reason
        """
        token = self.token_manager.acquire_token(correlation_id=correlation_id)

        method = method.upper()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        kwargs: Dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if body is not None and method in WRITE_METHODS:
            kwargs["json"] = body

        url = self.url_for(endpoint)
        logger.debug(
            f"[LEDGER-CLI] {method} {endpoint} | correlation_id={correlation_id}"
        )

        try:
            response = self._session.request(method, url, **kwargs)
        except (Timeout, RequestsConnectionError) as e:
            record_ledger_request(method, endpoint, "LEDGER_TRANSPORT_ERROR")
            logger.error(
                f"[LEDGER-CLI-003] Transport failure | "
                f"{method} {endpoint} | error={e} | "
                f"correlation_id={correlation_id}"
            )
            raise LedgerError(
                f"Ledger unreachable: {e}", code="LEDGER_TRANSPORT_ERROR"
            ) from e
        except requests.RequestException as e:
            record_ledger_request(method, endpoint, "LEDGER_TRANSPORT_ERROR")
            raise LedgerError(
                f"Ledger request failed: {e}", code="LEDGER_TRANSPORT_ERROR"
            ) from e

        if response.status_code >= 400:
            error = _error_from_response(response)
            record_ledger_request(method, endpoint, error.error_code)
            logger.error(
                f"[LEDGER-CLI-001] Ledger error | "
                f"{method} {endpoint} | status={response.status_code} | "
                f"code={error.error_code} | message={error.message} | "
                f"correlation_id={correlation_id}"
            )
            raise error

        try:
            data = response.json()
        except ValueError as e:
            record_ledger_request(method, endpoint, "LEDGER_INVALID_RESPONSE")
            raise LedgerError(
                f"Ledger returned a non-JSON body for {endpoint}",
                status_code=502,
                code="LEDGER_INVALID_RESPONSE",
                raw_details=response.text[:500],
            ) from e

        record_ledger_request(method, endpoint, "success")
        return data

    def close(self) -> None:
        """Close HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _error_from_response(response: requests.Response) -> LedgerError:
    """Build a LedgerError from the ledger's structured error body if any."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and (body.get("code") or body.get("cause") or body.get("message")):
        message = body.get("message") or body.get("cause") or body.get("code")
        return LedgerError(
            str(message),
            status_code=status,
            code=str(body.get("code") or "LEDGER_HTTP_ERROR"),
            raw_details=body,
        )

    return LedgerError(
        f"Ledger responded with HTTP {status}: {response.reason or 'error'}",
        status_code=status,
        code="LEDGER_HTTP_ERROR",
        raw_details=body if body is not None else (response.text[:500] or None),
    )
