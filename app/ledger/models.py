# ============================================================================
# Ledger Staking Gateway v1.0.0
# Ledger Models - Contract Records and Derived Views
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Read-only projections of active ledger contracts
#
# The ledger owns the authoritative copy of every contract. These types are
# ephemeral projections: a contract is never mutated in place, it is
# superseded by a successor contract id.
#
# ============================================================================

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from app.ledger.decimal_gateway import to_decimal, to_ledger_string
from app.ledger.errors import LedgerError
from app.ledger.events import CreatedEvent


@dataclass(frozen=True)
class ContractRecord:
    """Active contract as returned by the active-contract-set query."""
    contract_id: str
    template_id: str
    create_arguments: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    @classmethod
    def from_created_event(cls, event: CreatedEvent) -> "ContractRecord":
        return cls(
            contract_id=event.contract_id,
            template_id=event.template_id,
            create_arguments=dict(event.create_argument),
            created_at=event.created_at,
        )

    def get(self, name: str, default: Any = None) -> Any:
        return self.create_arguments.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """Ledger field names preserved, contract id alongside."""
        return {"contractId": self.contract_id, **self.create_arguments}


def contract_amount(record: ContractRecord, name: str = "amount") -> Decimal:
    try:
        return to_decimal(record.get(name))
    except ValueError as e:
        raise LedgerError(
            f"Contract {record.contract_id} has a malformed {name}: "
            f"{record.get(name)!r}",
            status_code=502,
            code="LEDGER_MALFORMED_CONTRACT",
        ) from e


@dataclass(frozen=True)
class StakingPool:
    contract_id: str
    operator: str
    issuer: str
    stakers: Tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: ContractRecord) -> "StakingPool":
        stakers = record.get("stakers") or []
        return cls(
            contract_id=record.contract_id,
            operator=record.get("operator", ""),
            issuer=record.get("issuer", ""),
            stakers=tuple(stakers),
        )

    def has_staker(self, party: str) -> bool:
        return party in self.stakers

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractId": self.contract_id,
            "operator": self.operator,
            "issuer": self.issuer,
            "stakers": list(self.stakers),
        }


@dataclass(frozen=True)
class Stake:
    contract_id: str
    staker: str
    amount: Decimal
    pool: Optional[str] = None

    @classmethod
    def from_record(cls, record: ContractRecord) -> "Stake":
        return cls(
            contract_id=record.contract_id,
            staker=record.get("staker", ""),
            amount=contract_amount(record),
            pool=record.get("poolCid") or record.get("pool"),
        )


@dataclass(frozen=True)
class Holding:
    contract_id: str
    owner: str
    issuer: str
    amount: Decimal
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: ContractRecord) -> "Holding":
        meta = record.get("meta")
        return cls(
            contract_id=record.contract_id,
            owner=record.get("owner", ""),
            issuer=record.get("issuer", ""),
            amount=contract_amount(record),
            meta=meta if isinstance(meta, dict) else {},
        )

    def symbol(self, default: str) -> str:
        return self.meta.get("symbol") or default

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractId": self.contract_id,
            "owner": self.owner,
            "issuer": self.issuer,
            "amount": to_ledger_string(self.amount),
            "meta": self.meta,
        }
