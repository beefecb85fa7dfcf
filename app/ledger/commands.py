# ============================================================================
# Ledger Staking Gateway v1.0.0
# Command Submitter - Create/Exercise Commands
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Build ledger mutation commands and submit them atomically
#
# Commands are applied by the ledger all-or-nothing: a rejected command has
# no partial effect. The ledger's command-level atomicity is the only
# consistency boundary between a workflow's reads and its submission.
#
# Endpoint:
#   POST commands/submit-and-wait-for-transaction
#   {"commands": {"actAs", "readAs"?, "commandId", "commands": [...]}}
#
# ============================================================================

import logging
import uuid
from typing import Any, Dict, List, Optional

from app.ledger.errors import LedgerError
from app.ledger.events import TransactionResult, decode_transaction
from app.ledger.ledger_client import LedgerClient
from app.observability.metrics import record_command

logger = logging.getLogger(__name__)


SUBMIT_ENDPOINT = "commands/submit-and-wait-for-transaction"


def create_command(template_id: str, create_arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "CreateCommand": {
            "templateId": template_id,
            "createArguments": create_arguments,
        }
    }


def exercise_command(
    template_id: str,
    contract_id: str,
    choice: str,
    choice_argument: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "ExerciseCommand": {
            "templateId": template_id,
            "contractId": contract_id,
            "choice": choice,
            "choiceArgument": choice_argument or {},
        }
    }


def command_label(command: Dict[str, Any]) -> str:
    """Choice name of an exercise command, "Create" for create commands."""
    if "ExerciseCommand" in command:
        return command["ExerciseCommand"]["choice"]
    return "Create"


def new_command_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


class CommandSubmitter:
    """
    Submits commands and decodes the resulting transaction.

    Reliability Level: CORE
    Side Effects: One ledger write per submit() call
    """

    def __init__(self, client: LedgerClient):
        self.client = client

    def submit(
        self,
        commands: List[Dict[str, Any]],
        act_as: List[str],
        command_prefix: str,
        read_as: Optional[List[str]] = None,
        correlation_id: Optional[str] = None,
    ) -> TransactionResult:
        """
        Submit commands in one transaction and wait for its result.

        Args:
            commands: CreateCommand / ExerciseCommand objects
            act_as: Parties authorizing the commands
            command_prefix: Prefix of the generated command id
            read_as: Additional parties whose visibility is used
            correlation_id: Audit trail identifier

        Returns:
            Decoded TransactionResult

        Raises:
            LedgerError: If the ledger rejects the command or answers with
                an unrecognized transaction shape
        """
        command_id = new_command_id(command_prefix)
        envelope: Dict[str, Any] = {
            "actAs": list(act_as),
            "commandId": command_id,
            "commands": commands,
        }
        if read_as:
            envelope["readAs"] = list(read_as)

        label = command_label(commands[0]) if commands else "Empty"

        try:
            response = self.client.invoke(
                SUBMIT_ENDPOINT, {"commands": envelope}, correlation_id=correlation_id
            )
            result = decode_transaction(response)
        except LedgerError as e:
            record_command(label, e.error_code)
            logger.error(
                f"[LEDGER-CMD-001] Command rejected | "
                f"command={label} | command_id={command_id} | "
                f"code={e.error_code} | correlation_id={correlation_id}"
            )
            raise

        record_command(label, "success")
        logger.info(
            f"[LEDGER-CMD] Command committed | "
            f"command={label} | command_id={command_id} | "
            f"update_id={result.update_id} | "
            f"created={len(result.created_events())} | "
            f"correlation_id={correlation_id}"
        )

        if result.command_id is None:
            result = TransactionResult(
                update_id=result.update_id,
                offset=result.offset,
                command_id=command_id,
                events=result.events,
                status=result.status,
            )
        return result
