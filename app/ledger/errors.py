# ============================================================================
# Ledger Staking Gateway v1.0.0
# Error Taxonomy - Ledger Interaction Core
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Uniform error shape for every failure surfaced by the gateway
#
# Every error carries:
#   - error_code:  stable machine-readable code (or the ledger's own code)
#   - message:     human-readable description
#   - http_status: status the HTTP layer answers with
#
# Error Codes:
#   - AUTH_FAILED:            Client-credentials exchange failed
#   - LEDGER_*:               Ledger call failed (code from ledger when known)
#   - POOL_NOT_FOUND:         Staking pool not visible to the operator
#   - STAKER_NOT_AUTHORIZED:  Staker is not a member of the pool
#   - HOLDING_NOT_FOUND:      Holding not visible to / not owned by staker
#   - ISSUER_MISMATCH:        Pool and holding belong to different issuers
#   - INSUFFICIENT_BALANCE:   Requested amount exceeds available holding
#   - VALIDATION_ERROR:       Malformed or missing request input
#
# ============================================================================

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Reliability Level: CORE
    Input Constraints: error_code and message required
    Side Effects: None
    """

    error_code = "GATEWAY_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        if error_code is not None:
            self.error_code = error_code
        if http_status is not None:
            self.http_status = http_status
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Error body used inside the response envelope."""
        return {"code": self.error_code, "message": self.message}


class AuthError(GatewayError):
    """Raised when the client-credentials exchange fails."""

    error_code = "AUTH_FAILED"
    http_status = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class LedgerError(GatewayError):
    """
    Raised for any failed ledger call.

    Carries the ledger's status/code/message when the ledger answered with a
    structured error body, and the raw body for operator diagnosis.
    """

    error_code = "LEDGER_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        raw_details: Any = None,
    ):
        self.status_code = status_code
        self.raw_details = raw_details
        http_status = status_code if status_code and status_code >= 400 else None
        super().__init__(message, error_code=code, http_status=http_status)

    @property
    def code(self) -> str:
        return self.error_code

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.raw_details is not None:
            body["details"] = self.raw_details
        return body


class PoolNotFoundError(GatewayError):
    error_code = "POOL_NOT_FOUND"
    http_status = 404

    def __init__(self, pool_contract_id: str):
        self.pool_contract_id = pool_contract_id
        super().__init__(f"Staking pool not found: {pool_contract_id}")


class StakerNotAuthorizedError(GatewayError):
    error_code = "STAKER_NOT_AUTHORIZED"
    http_status = 400

    def __init__(self, staker: str, pool_contract_id: str):
        self.staker = staker
        self.pool_contract_id = pool_contract_id
        super().__init__(
            f"Staker {staker} is not authorized for pool {pool_contract_id}. "
            f"Add the staker to the pool before depositing."
        )


class HoldingNotFoundError(GatewayError):
    error_code = "HOLDING_NOT_FOUND"
    http_status = 404

    def __init__(self, holding_contract_id: str, owner: str):
        self.holding_contract_id = holding_contract_id
        self.owner = owner
        super().__init__(
            f"Holding {holding_contract_id} not found for owner {owner}"
        )


class IssuerMismatchError(GatewayError):
    error_code = "ISSUER_MISMATCH"
    http_status = 400

    def __init__(self, pool_issuer: str, holding_issuer: str):
        self.pool_issuer = pool_issuer
        self.holding_issuer = holding_issuer
        super().__init__(
            f"Issuer mismatch: pool issuer is {pool_issuer}, "
            f"holding issuer is {holding_issuer}"
        )


class InsufficientBalanceError(GatewayError):
    error_code = "INSUFFICIENT_BALANCE"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)


class ValidationError(GatewayError):
    error_code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)


__all__ = [
    "GatewayError",
    "AuthError",
    "LedgerError",
    "PoolNotFoundError",
    "StakerNotAuthorizedError",
    "HoldingNotFoundError",
    "IssuerMismatchError",
    "InsufficientBalanceError",
    "ValidationError",
]
