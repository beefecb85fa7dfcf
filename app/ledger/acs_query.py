# ============================================================================
# Ledger Staking Gateway v1.0.0
# Active-Contract Query Engine
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Read the active-contract set for one party and one template
#
# Algorithm:
#   1. GET state/ledger-end for the current offset
#      (tolerant callers fall back to offset 0 when this fails)
#   2. POST state/active-contracts scoped to exactly one party and template,
#      anchored at the offset, verbose create-arguments
#   3. Keep JsActiveContract entries carrying a createArgument payload
#   4. Map each to a ContractRecord (ledger field names preserved)
#
# Application-level filtering (owner, contract id) happens on the returned
# records, never inside the ledger filter, so one query serves both the
# filtered and unfiltered paths.
#
# ============================================================================

import logging
from typing import Any, Dict, List, Optional

from app.ledger.errors import LedgerError
from app.ledger.events import decode_created_event
from app.ledger.ledger_client import LedgerClient
from app.ledger.models import ContractRecord

logger = logging.getLogger(__name__)


LEDGER_END_ENDPOINT = "state/ledger-end"
ACTIVE_CONTRACTS_ENDPOINT = "state/active-contracts"
EVENTS_RANGE_ENDPOINT = "state/events-range"

# Offset used when a tolerant caller cannot obtain the ledger end
BEGINNING_OFFSET = 0


def template_filter(party: str, template_id: str) -> Dict[str, Any]:
    """Ledger filter selecting one template for exactly one party."""
    return {
        "filtersByParty": {
            party: {
                "cumulative": [
                    {
                        "identifierFilter": {
                            "TemplateFilter": {
                                "value": {
                                    "templateId": template_id,
                                    "includeCreatedEventBlob": False,
                                }
                            }
                        }
                    }
                ]
            }
        }
    }


class ActiveContractQuery:
    """
    Active-Contract Query Engine.

    Reliability Level: CORE
    Side Effects: Two sequential ledger reads per query (offset, then ACS)

    Example Usage:
        acs = ActiveContractQuery(client)
        pools = acs.query_active_contracts(operator, pool_template_id)
    """

    def __init__(self, client: LedgerClient):
        self.client = client

    def get_ledger_end(
        self,
        tolerant: bool = False,
        correlation_id: Optional[str] = None,
    ) -> Any:
        """
        Fetch the ledger's current end offset.

        Args:
            tolerant: Return BEGINNING_OFFSET instead of raising on failure
            correlation_id: Audit trail identifier

        Raises:
            LedgerError: On failure when not tolerant
        """
        try:
            result = self.client.invoke(
                LEDGER_END_ENDPOINT, method="GET", correlation_id=correlation_id
            )
            offset = result.get("offset") if isinstance(result, dict) else None
            if offset is None:
                raise LedgerError(
                    "Ledger end response carries no offset",
                    status_code=502,
                    code="LEDGER_INVALID_RESPONSE",
                    raw_details=result,
                )
            return offset
        except LedgerError as e:
            if not tolerant:
                raise
            logger.warning(
                f"[ACS-QUERY] Could not fetch ledger end, using offset "
                f"{BEGINNING_OFFSET} | code={e.error_code} | "
                f"correlation_id={correlation_id}"
            )
            return BEGINNING_OFFSET

    def query_active_contracts(
        self,
        party: str,
        template_id: str,
        tolerant_offset: bool = False,
        offset: Optional[Any] = None,
        correlation_id: Optional[str] = None,
    ) -> List[ContractRecord]:
        """
        Active contracts of one template visible to one party.

        Args:
            party: Party whose visibility scopes the query
            template_id: Fully qualified template identifier
            tolerant_offset: Degrade to BEGINNING_OFFSET if ledger end fails
            offset: Pin the read to an offset the caller already fetched
            correlation_id: Audit trail identifier

        Returns:
            ContractRecord list; empty when nothing is active

        Raises:
            LedgerError: If the ledger call fails or answers malformed data
        """
        if offset is None:
            offset = self.get_ledger_end(
                tolerant=tolerant_offset, correlation_id=correlation_id
            )

        response = self.client.invoke(
            ACTIVE_CONTRACTS_ENDPOINT,
            {
                "filter": template_filter(party, template_id),
                "verbose": True,
                "activeAtOffset": offset,
            },
            correlation_id=correlation_id,
        )

        records = self._extract_records(response)
        logger.info(
            f"[ACS-QUERY] Active contracts fetched | "
            f"template={template_id} | count={len(records)} | offset={offset} | "
            f"correlation_id={correlation_id}"
        )
        return records

    def query_created_events(
        self,
        party: str,
        template_id: str,
        correlation_id: Optional[str] = None,
    ) -> List[ContractRecord]:
        """
        Contracts created for one template between the beginning of the
        ledger and its current end, archived ones included.
        """
        end = self.get_ledger_end(tolerant=True, correlation_id=correlation_id)

        response = self.client.invoke(
            EVENTS_RANGE_ENDPOINT,
            {
                "eventFilters": [template_filter(party, template_id)],
                "startExclusive": str(BEGINNING_OFFSET),
                "endInclusive": end,
            },
            correlation_id=correlation_id,
        )

        raw_events = response.get("events") if isinstance(response, dict) else None
        if raw_events is None:
            return []
        if not isinstance(raw_events, list):
            raise LedgerError(
                "Events range response is not a list",
                status_code=502,
                code="LEDGER_INVALID_RESPONSE",
                raw_details=response,
            )

        return [
            ContractRecord.from_created_event(decode_created_event(raw["CreatedEvent"], raw))
            for raw in raw_events
            if isinstance(raw, dict) and raw.get("CreatedEvent")
        ]

    @staticmethod
    def _extract_records(response: Any) -> List[ContractRecord]:
        if response is None:
            return []
        if not isinstance(response, list):
            raise LedgerError(
                "Active contracts response is not a list",
                status_code=502,
                code="LEDGER_INVALID_RESPONSE",
                raw_details=response,
            )

        records: List[ContractRecord] = []
        for entry in response:
            if not isinstance(entry, dict):
                continue
            contract_entry = entry.get("contractEntry") or {}
            active = contract_entry.get("JsActiveContract") if isinstance(contract_entry, dict) else None
            if not isinstance(active, dict):
                continue
            created = active.get("createdEvent")
            # In-flight or non-verbose entries carry no create-arguments
            if not isinstance(created, dict) or not isinstance(created.get("createArgument"), dict):
                continue
            event = decode_created_event(created)
            records.append(ContractRecord.from_created_event(event))
        return records
