"""
============================================================================
Ledger Staking Gateway - Services Layer
============================================================================

Workflow orchestration on top of the ledger core: configuration, request
validation, staking, transfers and balances.

============================================================================
"""

from services.ledger_config import (
    LedgerConfig,
    LedgerConfigurationError,
    get_ledger_config,
    reset_ledger_config,
)

from services.staking_service import (
    StakingService,
    PoolCreationResult,
    AddStakerResult,
    DepositResult,
    WithdrawResult,
)

from services.transfer_service import TransferService

from services.balance_service import BalanceService

__all__ = [
    # Configuration
    "LedgerConfig",
    "LedgerConfigurationError",
    "get_ledger_config",
    "reset_ledger_config",
    # Staking
    "StakingService",
    "PoolCreationResult",
    "AddStakerResult",
    "DepositResult",
    "WithdrawResult",
    # Transfers / Balances
    "TransferService",
    "BalanceService",
]
