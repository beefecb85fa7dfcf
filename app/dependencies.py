"""
============================================================================
Ledger Staking Gateway v1.0.0
Dependency Providers
============================================================================

Reliability Level: CORE
Side Effects: Lazily builds process-wide singletons on first access

Every router receives its service through these getters via FastAPI's
Depends(), so tests swap them with app.dependency_overrides.

The token lease manager is the only shared mutable state; one instance
serves every request in the process.

============================================================================
"""

from typing import Optional
import logging

from app.ledger.acs_query import ActiveContractQuery
from app.ledger.commands import CommandSubmitter
from app.ledger.decimal_gateway import DecimalGateway
from app.ledger.ledger_client import LedgerClient
from app.ledger.token_lease import TokenLeaseManager
from services.balance_service import BalanceService
from services.ledger_config import LedgerConfig, get_ledger_config
from services.staking_service import StakingService
from services.transfer_service import TransferService

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# GLOBAL INSTANCES
# ============================================================================

_token_manager: Optional[TokenLeaseManager] = None
_ledger_client: Optional[LedgerClient] = None
_balance_service: Optional[BalanceService] = None
_staking_service: Optional[StakingService] = None
_transfer_service: Optional[TransferService] = None


def get_config() -> LedgerConfig:
    return get_ledger_config()


def get_token_manager() -> TokenLeaseManager:
    global _token_manager
    if _token_manager is None:
        config = get_config()
        _token_manager = TokenLeaseManager(
            auth_url=config.auth_url,
            client_id=config.client_id,
            client_secret=config.client_secret,
            audience=config.audience or None,
            safety_margin_seconds=config.token_safety_margin_seconds,
            timeout=config.ledger_timeout_seconds,
        )
        logger.info(
            f"[DEPENDENCIES] Token lease manager created | "
            f"safety_margin={config.token_safety_margin_seconds}s"
        )
    return _token_manager


def get_ledger_client() -> LedgerClient:
    global _ledger_client
    if _ledger_client is None:
        config = get_config()
        _ledger_client = LedgerClient(
            base_url=config.ledger_url,
            token_manager=get_token_manager(),
            timeout=config.ledger_timeout_seconds,
        )
    return _ledger_client


def get_balance_service() -> BalanceService:
    global _balance_service
    if _balance_service is None:
        _balance_service = BalanceService(
            get_config(), ActiveContractQuery(get_ledger_client())
        )
    return _balance_service


def get_staking_service() -> StakingService:
    global _staking_service
    if _staking_service is None:
        client = get_ledger_client()
        _staking_service = StakingService(
            get_config(), ActiveContractQuery(client), CommandSubmitter(client)
        )
    return _staking_service


def get_transfer_service() -> TransferService:
    global _transfer_service
    if _transfer_service is None:
        config = get_config()
        client = get_ledger_client()
        _transfer_service = TransferService(
            config,
            ActiveContractQuery(client),
            CommandSubmitter(client),
            DecimalGateway(config.token_decimals),
        )
    return _transfer_service


def reset_dependencies() -> None:
    """
    Drop every singleton, closing open HTTP sessions.

    Called on application shutdown and by tests that change configuration.
    """
    global _token_manager, _ledger_client
    global _balance_service, _staking_service, _transfer_service

    if _ledger_client is not None:
        _ledger_client.close()
    if _token_manager is not None:
        _token_manager.close()

    _token_manager = None
    _ledger_client = None
    _balance_service = None
    _staking_service = None
    _transfer_service = None
    logger.debug("[DEPENDENCIES] Singletons reset")


__all__ = [
    "get_config",
    "get_token_manager",
    "get_ledger_client",
    "get_balance_service",
    "get_staking_service",
    "get_transfer_service",
    "reset_dependencies",
]
