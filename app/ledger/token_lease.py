# ============================================================================
# Ledger Staking Gateway v1.0.0
# Token Lease Manager - Client-Credentials Bearer Lease
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Obtains and caches the bearer token used for every ledger call
#
# MANDATE:
#   - Credentials NEVER appear in logs
#   - A stale token is NEVER substituted when an exchange fails
#   - Lease replaced wholesale (compare-and-swap), never partially updated
#   - Concurrent refreshes cost at most a redundant exchange
#
# Lease Expiry:
#   expires_at = now + expires_in - safety_margin
#   (margin becomes lifetime / 2 when the lifetime does not exceed it)
#
# Error Codes:
#   - AUTH_FAILED: Token exchange failed or returned no access_token
#
# ============================================================================

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from app.ledger.errors import AuthError
from app.observability.metrics import record_token_refresh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialLease:
    """
    Immutable bearer-token lease.

    expires_at is an epoch timestamp that already has the safety margin
    subtracted.
    """
    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TokenLeaseManager:
    """
    Client-Credentials Token Lease Manager.

    Holds exactly one lease per instance; the application wires a single
    instance per process. Reading the current lease is a plain reference
    read. Installing a fresh lease happens under a mutex and only succeeds
    when the fresh lease expires later than the installed one, so racing
    refreshes always converge on the newest valid lease.

    Reliability Level: CORE
    Thread Safety: Mutex on lease swap; exchanges run outside the lock
    Side Effects: HTTP POST to the auth authority on refresh

    Example Usage:
        leases = TokenLeaseManager(
            auth_url="https://auth.example.com/oauth/token",
            client_id="gateway",
            client_secret=secret,
            audience="https://ledger.example.com",
        )
        token = leases.acquire_token()
    """

    DEFAULT_SAFETY_MARGIN_SECONDS = 60
    DEFAULT_TOKEN_LIFETIME_SECONDS = 300
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        auth_url: str,
        client_id: str,
        client_secret: str,
        audience: Optional[str] = None,
        safety_margin_seconds: int = DEFAULT_SAFETY_MARGIN_SECONDS,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.auth_url = auth_url
        self.client_id = client_id
        self._client_secret = client_secret
        self.audience = audience
        self.safety_margin_seconds = safety_margin_seconds
        self.timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

        self._lease: Optional[CredentialLease] = None
        self._lock = threading.Lock()

    @property
    def lease(self) -> Optional[CredentialLease]:
        """Currently installed lease (may be expired)."""
        return self._lease

    def acquire_token(self, correlation_id: Optional[str] = None) -> str:
        """
        Return a bearer token, refreshing the lease when needed.

        Reliability Level: CORE
        Side Effects: May perform a client-credentials exchange

        Returns:
            Bearer token string

        Raises:
            AuthError: If the exchange fails (no stale token is returned)
        """
        lease = self._lease
        if lease is not None and lease.is_valid(self._clock()):
            return lease.token

        fresh = self._exchange(correlation_id)
        return self._install(fresh).token

    def _install(self, fresh: CredentialLease) -> CredentialLease:
        with self._lock:
            current = self._lease
            if (
                current is not None
                and current.expires_at >= fresh.expires_at
                and current.is_valid(self._clock())
            ):
                # A concurrent refresh already installed a newer valid lease
                return current
            self._lease = fresh
            return fresh

    def _exchange(self, correlation_id: Optional[str]) -> CredentialLease:
        payload: Dict[str, Any] = {
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "grant_type": "client_credentials",
        }
        if self.audience:
            payload["audience"] = self.audience

        requested_at = self._clock()

        try:
            response = self._session.post(
                self.auth_url, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            record_token_refresh("failure")
            logger.error(
                f"[LEASE-001] Token exchange transport failure | "
                f"auth_url={self.auth_url} | error={e} | "
                f"correlation_id={correlation_id}"
            )
            raise AuthError(f"Token exchange failed: {e}") from e

        if response.status_code >= 400:
            record_token_refresh("failure")
            detail = _auth_error_detail(response)
            logger.error(
                f"[LEASE-001] Token exchange rejected | "
                f"status={response.status_code} | detail={detail} | "
                f"correlation_id={correlation_id}"
            )
            raise AuthError(
                f"Token exchange rejected ({response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            record_token_refresh("failure")
            raise AuthError("Token exchange returned a non-JSON body") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            record_token_refresh("failure")
            raise AuthError("Token exchange response has no access_token")

        try:
            lifetime = int(data.get("expires_in"))
        except (TypeError, ValueError):
            logger.warning(
                f"[LEASE] expires_in missing or invalid, using "
                f"{self.DEFAULT_TOKEN_LIFETIME_SECONDS}s | "
                f"correlation_id={correlation_id}"
            )
            lifetime = self.DEFAULT_TOKEN_LIFETIME_SECONDS

        margin = self.safety_margin_seconds
        if lifetime <= margin:
            logger.warning(
                f"[LEASE] Granted lifetime {lifetime}s does not exceed the "
                f"{margin}s safety margin, using half the lifetime | "
                f"correlation_id={correlation_id}"
            )
            margin = lifetime / 2
        expires_at = requested_at + lifetime - margin
        record_token_refresh("success")
        logger.info(
            f"[LEASE] Token refreshed | lifetime={lifetime}s | "
            f"safety_margin={self.safety_margin_seconds}s | "
            f"correlation_id={correlation_id}"
        )
        return CredentialLease(token=token, expires_at=expires_at)

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()


def _auth_error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or "unknown error"
    if isinstance(body, dict):
        for key in ("error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)
