# ============================================================================
# Ledger Staking Gateway v1.0.0
# Ledger Events - Tagged Transaction Event Variants
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Decode ledger transaction payloads into explicit event types
#
# Wire Shape (one tag per event):
#   {"CreatedEvent":   {"contractId", "templateId", "createArgument", ...}}
#   {"ArchivedEvent":  {"contractId", "templateId", ...}}
#   {"ExercisedEvent": {"contractId", "templateId", "choice", "consuming"}}
#
# Unrecognized shapes are rejected with LedgerError (LEDGER_MALFORMED_EVENT)
# instead of being passed on with missing fields.
#
# ============================================================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from app.ledger.errors import LedgerError


MALFORMED_EVENT = "LEDGER_MALFORMED_EVENT"
MALFORMED_TRANSACTION = "LEDGER_MALFORMED_TRANSACTION"


def template_entity(template_id: str) -> str:
    """Entity name of a "<package>:<Module>:<Entity>" template identifier."""
    return template_id.rsplit(":", 1)[-1]


@dataclass(frozen=True)
class CreatedEvent:
    contract_id: str
    template_id: str
    create_argument: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    @property
    def entity(self) -> str:
        return template_entity(self.template_id)

    def is_template(self, entity: str) -> bool:
        return self.entity == template_entity(entity)


@dataclass(frozen=True)
class ArchivedEvent:
    contract_id: str
    template_id: str


@dataclass(frozen=True)
class ExercisedEvent:
    contract_id: str
    template_id: str
    choice: str
    consuming: bool = False


LedgerEvent = Union[CreatedEvent, ArchivedEvent, ExercisedEvent]


def _malformed(message: str, raw: Any, code: str = MALFORMED_EVENT) -> LedgerError:
    return LedgerError(message, status_code=502, code=code, raw_details=raw)


def _required_str(payload: Dict[str, Any], key: str, tag: str, raw: Any) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise _malformed(f"{tag} is missing '{key}'", raw)
    return value


def decode_created_event(payload: Any, raw: Any = None) -> CreatedEvent:
    """Decode the body of a CreatedEvent (without its tag)."""
    raw = payload if raw is None else raw
    if not isinstance(payload, dict):
        raise _malformed("CreatedEvent payload is not an object", raw)

    create_argument = payload.get("createArgument")
    if create_argument is None:
        create_argument = {}
    if not isinstance(create_argument, dict):
        raise _malformed("CreatedEvent createArgument is not an object", raw)

    return CreatedEvent(
        contract_id=_required_str(payload, "contractId", "CreatedEvent", raw),
        template_id=_required_str(payload, "templateId", "CreatedEvent", raw),
        create_argument=create_argument,
        created_at=payload.get("createdAt"),
    )


def decode_event(raw: Any) -> LedgerEvent:
    """
    Decode one tagged ledger event.

    Raises:
        LedgerError: If the event carries no recognized tag or lacks
            required fields (LEDGER_MALFORMED_EVENT)
    """
    if not isinstance(raw, dict):
        raise _malformed("Ledger event is not an object", raw)

    if "CreatedEvent" in raw:
        return decode_created_event(raw["CreatedEvent"], raw)

    if "ArchivedEvent" in raw:
        payload = raw["ArchivedEvent"]
        if not isinstance(payload, dict):
            raise _malformed("ArchivedEvent payload is not an object", raw)
        return ArchivedEvent(
            contract_id=_required_str(payload, "contractId", "ArchivedEvent", raw),
            template_id=_required_str(payload, "templateId", "ArchivedEvent", raw),
        )

    if "ExercisedEvent" in raw:
        payload = raw["ExercisedEvent"]
        if not isinstance(payload, dict):
            raise _malformed("ExercisedEvent payload is not an object", raw)
        return ExercisedEvent(
            contract_id=_required_str(payload, "contractId", "ExercisedEvent", raw),
            template_id=_required_str(payload, "templateId", "ExercisedEvent", raw),
            choice=_required_str(payload, "choice", "ExercisedEvent", raw),
            consuming=bool(payload.get("consuming", False)),
        )

    raise _malformed(
        f"Unrecognized ledger event shape: {sorted(raw.keys())}", raw
    )


@dataclass(frozen=True)
class TransactionResult:
    """Decoded result of a submit-and-wait-for-transaction call."""
    update_id: Optional[str]
    offset: Optional[Any]
    command_id: Optional[str]
    events: Tuple[LedgerEvent, ...] = ()
    status: str = "Completed"

    def created_events(self) -> List[CreatedEvent]:
        return [e for e in self.events if isinstance(e, CreatedEvent)]

    def first_created(self, entity: Optional[str] = None) -> Optional[CreatedEvent]:
        """First created event, optionally restricted to a template entity."""
        for event in self.created_events():
            if entity is None or event.is_template(entity):
                return event
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updateId": self.update_id,
            "offset": self.offset,
            "commandId": self.command_id,
            "status": self.status,
            "createdContracts": [
                {"contractId": e.contract_id, "templateId": e.template_id}
                for e in self.created_events()
            ],
        }


def decode_transaction(response: Any) -> TransactionResult:
    """
    Decode a submit-and-wait-for-transaction response.

    Accepts {"transaction": {...}} as well as a bare transaction object.

    Raises:
        LedgerError: On an unrecognized response or event shape
    """
    if not isinstance(response, dict):
        raise _malformed(
            "Transaction response is not an object", response, MALFORMED_TRANSACTION
        )

    transaction = response.get("transaction", response)
    if not isinstance(transaction, dict):
        raise _malformed(
            "Transaction payload is not an object", response, MALFORMED_TRANSACTION
        )

    raw_events = transaction.get("events") or []
    if not isinstance(raw_events, list):
        raise _malformed(
            "Transaction events is not a list", response, MALFORMED_TRANSACTION
        )

    return TransactionResult(
        update_id=transaction.get("updateId"),
        offset=transaction.get("offset", transaction.get("completionOffset")),
        command_id=transaction.get("commandId"),
        events=tuple(decode_event(raw) for raw in raw_events),
        status=transaction.get("status") or "Completed",
    )
