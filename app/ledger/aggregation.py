# ============================================================================
# Ledger Staking Gateway v1.0.0
# Aggregation Layer - Balance Summaries
# ============================================================================
#
# Reliability Level: CORE
# Purpose: Turn a contract list into totals, counts and filtered-out counts
#
# Invariants:
#   - filtered_out + len(contracts) == total_checked
#   - Empty input yields a zero-valued summary, never an error
#   - Amounts summed as decimal.Decimal (no float accumulation)
#
# ============================================================================

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from app.ledger.decimal_gateway import DecimalGateway, to_ledger_string
from app.ledger.models import ContractRecord, contract_amount


@dataclass
class BalanceSummary:
    total_checked: int = 0
    filtered_out: int = 0
    total: Decimal = field(default_factory=lambda: Decimal("0"))
    contracts: List[ContractRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.contracts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalBalance": to_ledger_string(self.total),
            "contracts": [_contract_view(c) for c in self.contracts],
            "count": self.count,
            "totalChecked": self.total_checked,
            "filteredOut": self.filtered_out,
        }


def _contract_view(record: ContractRecord) -> Dict[str, Any]:
    return {
        "contractId": record.contract_id,
        "owner": record.get("owner"),
        "issuer": record.get("issuer"),
        "amount": record.get("amount"),
        "createdAt": record.created_at,
        "meta": record.get("meta"),
    }


def summarize(
    records: Iterable[ContractRecord],
    owner: Optional[str] = None,
    owner_field: str = "owner",
) -> BalanceSummary:
    """
    Aggregate contract amounts, optionally keeping only one owner.

    Args:
        records: Holdings or stakes from the query engine
        owner: Keep only records whose owner_field equals this party
        owner_field: Create-argument naming the owning party

    Returns:
        BalanceSummary (zero-valued for empty input)

    Raises:
        LedgerError: If a kept record carries a malformed amount
    """
    gateway = DecimalGateway()
    summary = BalanceSummary()

    for record in records:
        summary.total_checked += 1
        if owner and record.get(owner_field) != owner:
            summary.filtered_out += 1
            continue
        summary.total = gateway.add(summary.total, contract_amount(record))
        summary.contracts.append(record)

    return summary
