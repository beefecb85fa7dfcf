"""
Shared fixtures: gateway configuration and services wired to FakeLedger.

Python 3.8 Compatible
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from app.ledger.acs_query import ActiveContractQuery
from app.ledger.commands import CommandSubmitter
from services.balance_service import BalanceService
from services.ledger_config import LedgerConfig
from services.staking_service import StakingService
from services.transfer_service import TransferService

from ledger_fakes import FakeLedger, make_config


@pytest.fixture
def ledger_config() -> LedgerConfig:
    return make_config()


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def staking_service(ledger_config: LedgerConfig, fake_ledger: FakeLedger) -> StakingService:
    return StakingService(
        ledger_config, ActiveContractQuery(fake_ledger), CommandSubmitter(fake_ledger)
    )


@pytest.fixture
def transfer_service(ledger_config: LedgerConfig, fake_ledger: FakeLedger) -> TransferService:
    return TransferService(
        ledger_config, ActiveContractQuery(fake_ledger), CommandSubmitter(fake_ledger)
    )


@pytest.fixture
def balance_service(ledger_config: LedgerConfig, fake_ledger: FakeLedger) -> BalanceService:
    return BalanceService(ledger_config, ActiveContractQuery(fake_ledger))
