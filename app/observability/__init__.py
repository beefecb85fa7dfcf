"""
============================================================================
Ledger Staking Gateway v1.0.0
Observability Module
============================================================================

Prometheus counters for ledger traffic, token refreshes, submitted
commands and precondition rejections.

============================================================================
"""

from app.observability.metrics import (
    LEDGER_REQUESTS,
    TOKEN_REFRESHES,
    LEDGER_COMMANDS,
    PRECONDITION_FAILURES,
    record_ledger_request,
    record_token_refresh,
    record_command,
    record_precondition_failure,
)

__all__ = [
    "LEDGER_REQUESTS",
    "TOKEN_REFRESHES",
    "LEDGER_COMMANDS",
    "PRECONDITION_FAILURES",
    "record_ledger_request",
    "record_token_refresh",
    "record_command",
    "record_precondition_failure",
]
