# ============================================================================
# Ledger Staking Gateway v1.0.0
# Ledger Interaction Core
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Everything that talks to the ledger's JSON API
#
# Components:
#   - TokenLeaseManager: Client-credentials bearer lease (CAS refresh)
#   - LedgerClient: Single request boundary, uniform LedgerError shape
#   - ActiveContractQuery: Offset-anchored active-contract-set reads
#   - CommandSubmitter: Create/Exercise submission, transaction decoding
#   - summarize: Balance aggregation over contract records
#   - DecimalGateway: Decimal-only amount handling, base-unit scaling
#
# ============================================================================

from app.ledger.errors import (
    GatewayError,
    AuthError,
    LedgerError,
    PoolNotFoundError,
    StakerNotAuthorizedError,
    HoldingNotFoundError,
    IssuerMismatchError,
    InsufficientBalanceError,
    ValidationError,
)
from app.ledger.decimal_gateway import DecimalGateway
from app.ledger.token_lease import TokenLeaseManager, CredentialLease
from app.ledger.ledger_client import LedgerClient
from app.ledger.events import (
    CreatedEvent,
    ArchivedEvent,
    ExercisedEvent,
    TransactionResult,
    decode_event,
    decode_transaction,
)
from app.ledger.models import ContractRecord, StakingPool, Stake, Holding
from app.ledger.acs_query import ActiveContractQuery
from app.ledger.commands import (
    CommandSubmitter,
    create_command,
    exercise_command,
)
from app.ledger.aggregation import BalanceSummary, summarize

__all__ = [
    # Errors
    'GatewayError',
    'AuthError',
    'LedgerError',
    'PoolNotFoundError',
    'StakerNotAuthorizedError',
    'HoldingNotFoundError',
    'IssuerMismatchError',
    'InsufficientBalanceError',
    'ValidationError',
    # Decimal Gateway
    'DecimalGateway',
    # Token Lease
    'TokenLeaseManager',
    'CredentialLease',
    # Ledger Client
    'LedgerClient',
    # Events
    'CreatedEvent',
    'ArchivedEvent',
    'ExercisedEvent',
    'TransactionResult',
    'decode_event',
    'decode_transaction',
    # Models
    'ContractRecord',
    'StakingPool',
    'Stake',
    'Holding',
    # Query / Commands / Aggregation
    'ActiveContractQuery',
    'CommandSubmitter',
    'create_command',
    'exercise_command',
    'BalanceSummary',
    'summarize',
]

__version__ = '1.0.0'
