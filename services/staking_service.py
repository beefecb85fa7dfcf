"""
Staking Service - Validation & Command Orchestrator

This module implements the staking workflows on top of the ledger core:
pool administration, deposits, withdrawals and read views over pools,
stakes and holdings.

Reliability Level: CORE (Ledger-Facing)
Decimal Integrity: All amounts use decimal.Decimal, sent to the ledger as strings
Traceability: Every workflow logs with its correlation_id

============================================================================
DEPOSIT PRECONDITION PIPELINE (fail-fast, in this order)
============================================================================

    1. PoolNotFound        pool resolved as the operator on the pool template
    2. StakerNotAuthorized staker must already be a pool member
    3. HoldingNotFound     holding resolved as the staker, owner == staker
    4. IssuerMismatch      pool issuer must equal holding issuer
    5. InsufficientBalance requested amount <= holding amount

    Only after all five pass is a single "Deposit" exercise submitted.
    The checks read ledger state that may change before submission; the
    ledger's command atomicity is the real consistency boundary.

============================================================================

WITHDRAW ASYMMETRY:
    Withdraw runs no precondition pipeline. The ledger's choice
    authorization on the Stake contract decides whether the staker may
    withdraw.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from app.ledger.acs_query import ActiveContractQuery
from app.ledger.aggregation import summarize
from app.ledger.commands import CommandSubmitter, create_command, exercise_command
from app.ledger.decimal_gateway import to_ledger_string
from app.ledger.errors import (
    GatewayError,
    HoldingNotFoundError,
    InsufficientBalanceError,
    IssuerMismatchError,
    PoolNotFoundError,
    StakerNotAuthorizedError,
)
from app.ledger.events import TransactionResult
from app.ledger.models import Holding, Stake, StakingPool
from app.observability.metrics import record_precondition_failure
from services.ledger_config import LedgerConfig
from services.request_validation import optional_party, parse_positive_amount, require_fields

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================

@dataclass
class PoolCreationResult:
    contract_id: Optional[str]
    issuer: str
    transaction: TransactionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractId": self.contract_id,
            "issuer": self.issuer,
            "transaction": self.transaction.to_dict(),
        }


@dataclass
class AddStakerResult:
    new_pool_contract_id: Optional[str]
    transaction: TransactionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "newPoolContractId": self.new_pool_contract_id,
            "transaction": self.transaction.to_dict(),
        }


@dataclass
class DepositResult:
    """
    Outcome of a committed deposit.

    stake_contract_id is None when the transaction carried no Stake creation
    event; the deposit itself still committed.
    """
    stake_contract_id: Optional[str]
    pool_contract_id: str
    staker: str
    amount: Decimal
    transaction: TransactionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stakeContractId": self.stake_contract_id,
            "poolContractId": self.pool_contract_id,
            "staker": self.staker,
            "amount": to_ledger_string(self.amount),
            "transaction": self.transaction.to_dict(),
        }


@dataclass
class WithdrawResult:
    holding_contract_id: Optional[str]
    transaction: TransactionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holdingContractId": self.holding_contract_id,
            "transaction": self.transaction.to_dict(),
        }


# =============================================================================
# Staking Service
# =============================================================================

class StakingService:
    """
    Staking workflows against the ledger.

    Reliability Level: CORE
    Side Effects: Ledger reads; at most one ledger command per workflow
    """

    def __init__(
        self,
        config: LedgerConfig,
        query: ActiveContractQuery,
        submitter: CommandSubmitter,
    ):
        self.config = config
        self.query = query
        self.submitter = submitter

    # -------------------------------------------------------------------------
    # Configuration / ledger position
    # -------------------------------------------------------------------------

    def get_public_config(self) -> Dict[str, Any]:
        return self.config.to_public_dict()

    def get_ledger_end(self, correlation_id: Optional[str] = None) -> Any:
        return self.query.get_ledger_end(correlation_id=correlation_id)

    # -------------------------------------------------------------------------
    # Pool administration
    # -------------------------------------------------------------------------

    def create_pool(
        self,
        issuer: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> PoolCreationResult:
        """
        Create a staking pool operated by the validator party.

        The pool starts with no stakers. Issuer defaults to DSO_PARTY.
        """
        pool_issuer = optional_party(issuer, self.config.dso_party)
        require_fields(issuer=pool_issuer)

        operator = self.config.validator_party
        transaction = self.submitter.submit(
            [
                create_command(
                    self.config.staking_pool_template,
                    {"operator": operator, "issuer": pool_issuer, "stakers": []},
                )
            ],
            act_as=[operator],
            command_prefix="create-pool",
            correlation_id=correlation_id,
        )

        created = transaction.first_created(self.config.staking_pool_template)
        logger.info(
            f"[STAKING] Pool created | contract_id={created.contract_id if created else None} | "
            f"issuer={pool_issuer} | correlation_id={correlation_id}"
        )
        return PoolCreationResult(
            contract_id=created.contract_id if created else None,
            issuer=pool_issuer,
            transaction=transaction,
        )

    def add_staker(
        self,
        pool_contract_id: str,
        new_staker: str,
        correlation_id: Optional[str] = None,
    ) -> AddStakerResult:
        """
        Authorize a staker on a pool.

        The pool contract is superseded: the returned contract id replaces
        pool_contract_id for every later operation.
        """
        require_fields(poolContractId=pool_contract_id, newStaker=new_staker)

        transaction = self.submitter.submit(
            [
                exercise_command(
                    self.config.staking_pool_template,
                    pool_contract_id,
                    "AddStaker",
                    {"newStaker": new_staker},
                )
            ],
            act_as=[self.config.validator_party],
            command_prefix="add-staker",
            correlation_id=correlation_id,
        )

        created = transaction.first_created(self.config.staking_pool_template)
        logger.info(
            f"[STAKING] Staker added | pool={pool_contract_id} | "
            f"staker={new_staker} | "
            f"new_pool={created.contract_id if created else None} | "
            f"correlation_id={correlation_id}"
        )
        return AddStakerResult(
            new_pool_contract_id=created.contract_id if created else None,
            transaction=transaction,
        )

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    def list_pools(self, correlation_id: Optional[str] = None) -> List[StakingPool]:
        records = self.query.query_active_contracts(
            self.config.validator_party,
            self.config.staking_pool_template,
            correlation_id=correlation_id,
        )
        return [StakingPool.from_record(r) for r in records]

    def get_pool(
        self,
        pool_contract_id: str,
        correlation_id: Optional[str] = None,
    ) -> StakingPool:
        """
        Raises:
            PoolNotFoundError: If no active pool has this contract id
        """
        require_fields(poolContractId=pool_contract_id)
        for pool in self.list_pools(correlation_id=correlation_id):
            if pool.contract_id == pool_contract_id:
                return pool
        raise PoolNotFoundError(pool_contract_id)

    def query_stakes(
        self,
        staker: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        party = optional_party(staker, self.config.validator_party)
        records = self.query.query_active_contracts(
            party, self.config.stake_template, correlation_id=correlation_id
        )
        stakes = [Stake.from_record(r) for r in records]
        summary = summarize(records)
        return {
            "staker": party,
            "stakes": [r.to_dict() for r in records],
            "count": len(stakes),
            "totalAmount": to_ledger_string(summary.total),
        }

    def query_holdings(
        self,
        owner: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        party = optional_party(owner, self.config.validator_party)
        records = self.query.query_active_contracts(
            party, self.config.holding_template, correlation_id=correlation_id
        )
        summary = summarize(records)
        holdings = []
        for record in records:
            view = Holding.from_record(record).to_dict()
            view["isDefaultIssuer"] = bool(self.config.dso_party) and view["issuer"] == self.config.dso_party
            holdings.append(view)
        return {
            "queryParty": party,
            "holdings": holdings,
            "count": summary.count,
            "totalAmount": to_ledger_string(summary.total),
        }

    # -------------------------------------------------------------------------
    # Deposit
    # -------------------------------------------------------------------------

    def deposit(
        self,
        pool_contract_id: str,
        staker: str,
        holding_contract_id: str,
        amount: Any,
        correlation_id: Optional[str] = None,
    ) -> DepositResult:
        """
        Lock part or all of a holding into a staking pool.

        Reliability Level: CORE
        Side Effects: Two ledger reads, then exactly one "Deposit" exercise

        Raises:
            ValidationError: Missing/malformed input (no ledger call made)
            PoolNotFoundError, StakerNotAuthorizedError, HoldingNotFoundError,
            IssuerMismatchError, InsufficientBalanceError: Precondition failed
                (no command submitted)
            LedgerError: The ledger rejected a read or the command
        """
        require_fields(
            poolContractId=pool_contract_id,
            staker=staker,
            holdingCid=holding_contract_id,
            amount=amount,
        )
        requested = parse_positive_amount(amount)

        pool, holding = self._check_deposit_preconditions(
            pool_contract_id, staker, holding_contract_id, requested, correlation_id
        )

        transaction = self.submitter.submit(
            [
                exercise_command(
                    self.config.staking_pool_template,
                    pool.contract_id,
                    "Deposit",
                    {
                        "staker": staker,
                        "holdingCid": holding.contract_id,
                        "amount": to_ledger_string(requested),
                    },
                )
            ],
            act_as=[staker],
            read_as=[self.config.validator_party],
            command_prefix="deposit",
            correlation_id=correlation_id,
        )

        stake_event = transaction.first_created(self.config.stake_template)
        if stake_event is None:
            logger.warning(
                f"[STAKING] Deposit committed without a Stake creation event | "
                f"update_id={transaction.update_id} | correlation_id={correlation_id}"
            )

        logger.info(
            f"[STAKING] Deposit committed | pool={pool.contract_id} | "
            f"staker={staker} | amount={requested} | "
            f"stake={stake_event.contract_id if stake_event else None} | "
            f"correlation_id={correlation_id}"
        )
        return DepositResult(
            stake_contract_id=stake_event.contract_id if stake_event else None,
            pool_contract_id=pool.contract_id,
            staker=staker,
            amount=requested,
            transaction=transaction,
        )

    def _check_deposit_preconditions(
        self,
        pool_contract_id: str,
        staker: str,
        holding_contract_id: str,
        requested: Decimal,
        correlation_id: Optional[str],
    ):
        # 1. Pool visible to the operator
        pool = None
        for candidate in self.list_pools(correlation_id=correlation_id):
            if candidate.contract_id == pool_contract_id:
                pool = candidate
                break
        if pool is None:
            self._reject(PoolNotFoundError(pool_contract_id), correlation_id)

        # 2. Staker membership is never granted implicitly
        if not pool.has_staker(staker):
            self._reject(StakerNotAuthorizedError(staker, pool_contract_id), correlation_id)

        # 3. Holding visible to, and owned by, the staker
        holding = None
        records = self.query.query_active_contracts(
            staker, self.config.holding_template, correlation_id=correlation_id
        )
        for record in records:
            if record.contract_id == holding_contract_id and record.get("owner") == staker:
                holding = Holding.from_record(record)
                break
        if holding is None:
            self._reject(HoldingNotFoundError(holding_contract_id, staker), correlation_id)

        # 4. Same token series
        if pool.issuer != holding.issuer:
            self._reject(IssuerMismatchError(pool.issuer, holding.issuer), correlation_id)

        # 5. Full-balance deposits allowed
        if requested > holding.amount:
            self._reject(
                InsufficientBalanceError(
                    f"Insufficient balance: requested {to_ledger_string(requested)}, "
                    f"holding {holding.contract_id} has {to_ledger_string(holding.amount)}"
                ),
                correlation_id,
            )

        return pool, holding

    @staticmethod
    def _reject(error: GatewayError, correlation_id: Optional[str]) -> None:
        record_precondition_failure(error.error_code)
        logger.warning(
            f"[STAKING] Deposit rejected | code={error.error_code} | "
            f"message={error.message} | correlation_id={correlation_id}"
        )
        raise error

    # -------------------------------------------------------------------------
    # Withdraw
    # -------------------------------------------------------------------------

    def withdraw(
        self,
        stake_contract_id: str,
        staker: str,
        correlation_id: Optional[str] = None,
    ) -> WithdrawResult:
        """
        Unlock a stake back into a holding.

        No precondition pipeline: the ledger's authorization of the
        "Withdraw" choice is the only check.
        """
        require_fields(stakeContractId=stake_contract_id, staker=staker)

        transaction = self.submitter.submit(
            [
                exercise_command(
                    self.config.stake_template,
                    stake_contract_id,
                    "Withdraw",
                    {},
                )
            ],
            act_as=[staker],
            command_prefix="withdraw",
            correlation_id=correlation_id,
        )

        holding_event = transaction.first_created(self.config.holding_template)
        logger.info(
            f"[STAKING] Withdraw committed | stake={stake_contract_id} | "
            f"staker={staker} | "
            f"holding={holding_event.contract_id if holding_event else None} | "
            f"correlation_id={correlation_id}"
        )
        return WithdrawResult(
            holding_contract_id=holding_event.contract_id if holding_event else None,
            transaction=transaction,
        )


__all__ = [
    "StakingService",
    "PoolCreationResult",
    "AddStakerResult",
    "DepositResult",
    "WithdrawResult",
]
