"""
============================================================================
Ledger Staking Gateway v1.0.0
Prometheus Metrics - Ledger Interaction Observability
============================================================================

Reliability Level: STANDARD
Input Constraints: Label values must be short, bounded strings
Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- ledger_requests_total: Ledger JSON API calls by method/endpoint/outcome
- ledger_token_refresh_total: Client-credentials exchanges by outcome
- ledger_commands_total: Submitted commands by choice/outcome
- ledger_precondition_failures_total: Workflow rejections before submission

Metric recording never interrupts a ledger workflow: failures are logged
and swallowed at this boundary.

============================================================================
"""

import logging

from prometheus_client import Counter

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

LEDGER_REQUESTS = Counter(
    "ledger_requests_total",
    "Total number of ledger JSON API requests",
    ["method", "endpoint", "outcome"]
)

TOKEN_REFRESHES = Counter(
    "ledger_token_refresh_total",
    "Total number of client-credentials token exchanges",
    ["outcome"]
)

LEDGER_COMMANDS = Counter(
    "ledger_commands_total",
    "Total number of commands submitted to the ledger",
    ["choice", "outcome"]
)

PRECONDITION_FAILURES = Counter(
    "ledger_precondition_failures_total",
    "Total number of workflows rejected before command submission",
    ["error_code"]
)


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_ledger_request(method: str, endpoint: str, outcome: str) -> None:
    """
    Record a ledger request.

    Args:
        method: HTTP method (GET/POST)
        endpoint: Ledger endpoint path relative to /v2/
        outcome: "success" or an error code
    """
    try:
        LEDGER_REQUESTS.labels(
            method=method.upper(), endpoint=endpoint, outcome=outcome
        ).inc()
    except Exception as e:
        logger.warning("Failed to record ledger request metric: %s", e)


def record_token_refresh(outcome: str) -> None:
    """Record a client-credentials exchange ("success" or "failure")."""
    try:
        TOKEN_REFRESHES.labels(outcome=outcome).inc()
    except Exception as e:
        logger.warning("Failed to record token refresh metric: %s", e)


def record_command(choice: str, outcome: str) -> None:
    """
    Record a submitted ledger command.

    Args:
        choice: Exercised choice name, or "Create" for create commands
        outcome: "success" or the error code of the failure
    """
    try:
        LEDGER_COMMANDS.labels(choice=choice, outcome=outcome).inc()
    except Exception as e:
        logger.warning("Failed to record command metric: %s", e)


def record_precondition_failure(error_code: str) -> None:
    """Record a workflow rejected by its precondition pipeline."""
    try:
        PRECONDITION_FAILURES.labels(error_code=error_code).inc()
        logger.debug("Metric: precondition_failure | error_code=%s", error_code)
    except Exception as e:
        logger.warning("Failed to record precondition metric: %s", e)
