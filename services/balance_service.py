"""
Balance Service - Holding Balances per Party

Reads the holdings visible to a party and aggregates them, optionally
keeping only one owner. Reads degrade to the ledger's beginning offset
when the ledger end cannot be fetched.

Reliability Level: CORE (Ledger-Facing)
Decimal Integrity: Totals summed as decimal.Decimal, reported as strings
"""

from typing import Any, Dict, Optional
import logging

from app.ledger.acs_query import ActiveContractQuery
from app.ledger.aggregation import summarize
from services.ledger_config import LedgerConfig
from services.request_validation import optional_party

# Configure module logger
logger = logging.getLogger(__name__)


class BalanceService:

    def __init__(self, config: LedgerConfig, query: ActiveContractQuery):
        self.config = config
        self.query = query

    def check_balance(
        self,
        party: Optional[str] = None,
        owner: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Aggregate the holdings visible to a party.

        Args:
            party: Party scoping the query (defaults to VALIDATOR_PARTY)
            owner: Keep only holdings owned by this party
            correlation_id: Audit trail identifier

        Returns:
            Dict with totalBalance, contracts, count, totalChecked,
            filteredOut and the offset the read was anchored at
        """
        target_party = optional_party(party, self.config.validator_party)
        owner_filter = owner.strip() if owner and owner.strip() else None

        offset = self.query.get_ledger_end(tolerant=True, correlation_id=correlation_id)
        records = self.query.query_active_contracts(
            target_party,
            self.config.holding_template,
            offset=offset,
            correlation_id=correlation_id,
        )

        summary = summarize(records, owner=owner_filter)
        logger.info(
            f"[BALANCE] Balance checked | checked={summary.total_checked} | "
            f"kept={summary.count} | filtered_out={summary.filtered_out} | "
            f"offset={offset} | correlation_id={correlation_id}"
        )

        result = summary.to_dict()
        result["offset"] = offset
        return result

    def query_params(self, party: Optional[str], owner: Optional[str]) -> Dict[str, str]:
        """Echo of the effective query, as reported by the advanced query."""
        return {
            "partyId": optional_party(party, self.config.validator_party),
            "ownerAddress": owner or "all",
        }


__all__ = ["BalanceService"]
