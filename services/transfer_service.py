"""
Transfer Service - Direct Holding Transfers

Moves tokens from a sender's holding to a receiver by exercising the
holding's "Transfer" choice, and reads the transfer history of a party.

Reliability Level: CORE (Ledger-Facing)
Decimal Integrity: Display amounts scale to integral base units (10^18)
    through DecimalGateway; comparisons happen in base units

ERROR CODES:
    - VALIDATION_ERROR: Missing sender/receiver or non-positive amount
    - INSUFFICIENT_BALANCE: No single holding covers the requested amount
"""

from typing import Any, Dict, List, Optional
import logging

from app.ledger.acs_query import ActiveContractQuery
from app.ledger.commands import CommandSubmitter, exercise_command
from app.ledger.decimal_gateway import DecimalGateway, to_ledger_string
from app.ledger.errors import InsufficientBalanceError, ValidationError
from app.ledger.events import CreatedEvent
from app.ledger.models import ContractRecord, Holding
from app.observability.metrics import record_precondition_failure
from services.ledger_config import LedgerConfig
from services.request_validation import parse_positive_amount, require_fields

# Configure module logger
logger = logging.getLogger(__name__)


class TransferService:
    """
    Direct transfer workflow and transfer history.

    Holding selection is first-sufficient: the first holding (in ledger
    order) whose amount covers the request is spent. Amounts are never
    combined across holdings.
    """

    def __init__(
        self,
        config: LedgerConfig,
        query: ActiveContractQuery,
        submitter: CommandSubmitter,
        gateway: Optional[DecimalGateway] = None,
    ):
        self.config = config
        self.query = query
        self.submitter = submitter
        self.gateway = gateway or DecimalGateway(config.token_decimals)

    def direct_transfer(
        self,
        sender: str,
        receiver: str,
        amount: Any,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Transfer a display amount from sender to receiver.

        Args:
            sender: Owning party of the spent holding (acts on the command)
            receiver: Party receiving the new holding
            amount: Display-unit amount, strictly positive
            correlation_id: Audit trail identifier

        Returns:
            Dict with transactionDetails, transferDetails and newContracts

        Raises:
            ValidationError: Missing party or non-positive amount
            InsufficientBalanceError: No holding of the sender covers amount
            LedgerError: Ledger rejected the query or the Transfer command
        """
        require_fields(sender=sender, receiver=receiver, amount=amount)
        display_amount = parse_positive_amount(amount)
        base_amount = self.gateway.to_base_units(display_amount, correlation_id)
        if base_amount <= 0:
            raise ValidationError(
                f"amount is below the token's smallest unit "
                f"(10^-{self.gateway.token_decimals})"
            )

        holding = self._select_holding(sender, base_amount, correlation_id)

        logger.info(
            f"[TRANSFER] Submitting transfer | holding={holding.contract_id} | "
            f"amount={display_amount} | base_amount={base_amount} | "
            f"correlation_id={correlation_id}"
        )

        transaction = self.submitter.submit(
            [
                exercise_command(
                    self.config.holding_template,
                    holding.contract_id,
                    "Transfer",
                    {
                        "to": receiver,
                        "value": to_ledger_string(base_amount),
                        "complianceRulesCid": None,
                        "complianceProofCid": None,
                    },
                )
            ],
            act_as=[sender],
            command_prefix="transfer",
            correlation_id=correlation_id,
        )

        new_contracts = [
            self._holding_view(event.contract_id, event.create_argument)
            for event in transaction.created_events()
            if _is_holding_like(event)
        ]

        return {
            "transactionDetails": {
                "updateId": transaction.update_id,
                "offset": transaction.offset,
                "status": transaction.status,
            },
            "transferDetails": {
                "from": sender,
                "to": receiver,
                "amount": to_ledger_string(display_amount),
                "symbol": holding.symbol(self.config.token_symbol),
                "senderBalanceBefore": to_ledger_string(
                    self.gateway.from_base_units(holding.amount)
                ),
            },
            "newContracts": new_contracts,
        }

    def _select_holding(
        self,
        sender: str,
        base_amount: int,
        correlation_id: Optional[str],
    ) -> Holding:
        records = self.query.query_active_contracts(
            sender,
            self.config.holding_template,
            tolerant_offset=True,
            correlation_id=correlation_id,
        )
        owned = [
            Holding.from_record(r) for r in records if r.get("owner") == sender
        ]

        for holding in owned:
            if holding.amount >= base_amount:
                return holding

        record_precondition_failure(InsufficientBalanceError.error_code)
        if not owned:
            message = f"No holdings found where owner matches sender {sender}"
        else:
            message = (
                f"Insufficient balance. Required: "
                f"{to_ledger_string(self.gateway.from_base_units(base_amount))} tokens"
            )
        logger.warning(
            f"[TRANSFER] Transfer rejected | holdings={len(owned)} | "
            f"message={message} | correlation_id={correlation_id}"
        )
        raise InsufficientBalanceError(message)

    def transfer_history(
        self,
        party: str,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Holdings created for a party's view from the ledger's beginning.

        Each entry is "received" when the party owns the created holding
        and "sent" otherwise (e.g. a receiver's holding seen by the sender).
        """
        require_fields(partyId=party)
        records = self.query.query_created_events(
            party, self.config.holding_template, correlation_id=correlation_id
        )

        transfers: List[Dict[str, Any]] = []
        for record in records:
            view = self._holding_view(record.contract_id, record.create_arguments)
            view["type"] = "received" if record.get("owner") == party else "sent"
            view["timestamp"] = record.created_at
            transfers.append(view)

        logger.info(
            f"[TRANSFER] History fetched | count={len(transfers)} | "
            f"correlation_id={correlation_id}"
        )
        return {"partyId": party, "transfers": transfers, "count": len(transfers)}

    def _holding_view(self, contract_id: str, args: Dict[str, Any]) -> Dict[str, Any]:
        record = ContractRecord(
            contract_id=contract_id,
            template_id=self.config.holding_template,
            create_arguments=args,
        )
        holding = Holding.from_record(record)
        return {
            "owner": holding.owner,
            "amount": to_ledger_string(self.gateway.from_base_units(holding.amount)),
            "symbol": holding.symbol(self.config.token_symbol),
            "contractId": holding.contract_id,
        }


def _is_holding_like(event: CreatedEvent) -> bool:
    args = event.create_argument
    return "owner" in args and "amount" in args


__all__ = ["TransferService"]
