"""
============================================================================
Ledger Staking Gateway v1.0.0
Balance API Endpoints
============================================================================

Reliability Level: CORE
Side Effects: Ledger reads only

ENDPOINTS:
    GET  /api/balance/health                 - Balance service health
    GET  /api/balance/balance                - Holdings of the default party
    GET  /api/balance/balance/{owner}        - Holdings filtered by owner
    POST /api/balance/balance/query          - Party and owner chosen by body
    GET  /api/balance/contracts/{owner}      - Contract list for an owner

============================================================================
"""

import uuid
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.responses import success_envelope, utc_timestamp
from app.dependencies import get_balance_service
from services.balance_service import BalanceService

# Configure module logger
logger = logging.getLogger(__name__)


router = APIRouter()


class BalanceQueryRequest(BaseModel):
    partyId: Optional[str] = Field(
        default=None, description="Party scoping the query (default: operator)"
    )
    ownerAddress: Optional[str] = Field(
        default=None, description="Keep only holdings owned by this party"
    )


@router.get("/health", summary="Balance Service Health")
def balance_health() -> Dict[str, Any]:
    return {
        "success": True,
        "status": "healthy",
        "service": "Ledger Balance API",
        "timestamp": utc_timestamp(),
    }


@router.get("/balance", summary="All Holdings")
def get_all_balances(
    service: BalanceService = Depends(get_balance_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(f"[BALANCE-API] GET /balance | correlation_id={correlation_id}")
    return success_envelope(service.check_balance(correlation_id=correlation_id))


@router.get("/balance/{owner}", summary="Holdings by Owner")
def get_balance_by_owner(
    owner: str,
    service: BalanceService = Depends(get_balance_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[BALANCE-API] GET /balance/{{owner}} | owner={owner} | "
        f"correlation_id={correlation_id}"
    )
    result = service.check_balance(owner=owner, correlation_id=correlation_id)
    return success_envelope(result, owner=owner)


@router.post("/balance/query", summary="Advanced Balance Query")
def query_balance(
    body: BalanceQueryRequest,
    service: BalanceService = Depends(get_balance_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[BALANCE-API] POST /balance/query | party={body.partyId or 'default'} | "
        f"owner={body.ownerAddress or 'all'} | correlation_id={correlation_id}"
    )
    result = service.check_balance(
        party=body.partyId, owner=body.ownerAddress, correlation_id=correlation_id
    )
    return success_envelope(
        result, query=service.query_params(body.partyId, body.ownerAddress)
    )


@router.get("/contracts/{owner}", summary="Contracts by Owner")
def get_contracts_by_owner(
    owner: str,
    service: BalanceService = Depends(get_balance_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    result = service.check_balance(owner=owner, correlation_id=correlation_id)
    return success_envelope(
        {
            "contracts": result["contracts"],
            "count": result["count"],
            "totalBalance": result["totalBalance"],
        },
        owner=owner,
    )
