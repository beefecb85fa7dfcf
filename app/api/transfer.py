"""
============================================================================
Ledger Staking Gateway v1.0.0
Transfer API Endpoints
============================================================================

ENDPOINTS:
    POST /api/transfer/direct               - Transfer from sender to receiver
    GET  /api/transfer/history/{partyId}    - Holdings created for a party

============================================================================
"""

import uuid
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.responses import success_envelope
from app.dependencies import get_transfer_service
from services.transfer_service import TransferService

# Configure module logger
logger = logging.getLogger(__name__)


router = APIRouter()


class TransferRequest(BaseModel):
    sender: Optional[str] = None
    receiver: Optional[str] = None
    amount: Optional[Any] = None


@router.post("/direct", summary="Direct Transfer")
def direct_transfer(
    body: TransferRequest,
    service: TransferService = Depends(get_transfer_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[TRANSFER-API] POST /direct | sender={body.sender} | "
        f"receiver={body.receiver} | amount={body.amount} | "
        f"correlation_id={correlation_id}"
    )
    result = service.direct_transfer(
        body.sender, body.receiver, body.amount, correlation_id=correlation_id
    )
    return success_envelope(result)


@router.get("/history/{partyId}", summary="Transfer History")
def transfer_history(
    partyId: str,
    service: TransferService = Depends(get_transfer_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    return success_envelope(
        service.transfer_history(partyId, correlation_id=correlation_id)
    )
