"""
============================================================================
Ledger Staking Gateway v1.0.0
Staking API Endpoints
============================================================================

Reliability Level: CORE
Side Effects: Ledger reads; deposit/withdraw/pool endpoints submit commands

ENDPOINTS:
    GET  /api/staking/config                   - Public configuration view
    GET  /api/staking/ledger-end               - Current ledger offset
    POST /api/staking/pool/create              - Create a staking pool
    POST /api/staking/pool/add-staker          - Authorize a staker
    GET  /api/staking/pool/{poolContractId}    - Single pool (404 if absent)
    GET  /api/staking/pools                    - All pools of the operator
    POST /api/staking/pool/deposit             - Lock a holding into a pool
    POST /api/staking/stake/withdraw           - Unlock a stake
    GET  /api/staking/stakes?staker=           - Stakes of a staker
    GET  /api/staking/holdings?owner=          - Holdings of an owner

ERROR CODES:
    POOL_NOT_FOUND (404), HOLDING_NOT_FOUND (404), STAKER_NOT_AUTHORIZED,
    ISSUER_MISMATCH, INSUFFICIENT_BALANCE, VALIDATION_ERROR (400)

============================================================================
"""

import uuid
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.api.responses import success_envelope
from app.dependencies import get_staking_service
from services.staking_service import StakingService

# Configure module logger
logger = logging.getLogger(__name__)


router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================

# Required fields are Optional here so that missing values surface as the
# service's VALIDATION_ERROR naming every missing field.

class CreatePoolRequest(BaseModel):
    issuer: Optional[str] = Field(
        default=None, description="Token issuer party (default: DSO_PARTY)"
    )


class AddStakerRequest(BaseModel):
    poolContractId: Optional[str] = None
    newStaker: Optional[str] = None


class DepositRequest(BaseModel):
    """
    Deposit request.

    amount accepts a JSON string or number; strings keep full precision.
    """
    poolContractId: Optional[str] = None
    staker: Optional[str] = None
    holdingCid: Optional[str] = None
    amount: Optional[Any] = None


class WithdrawRequest(BaseModel):
    stakeContractId: Optional[str] = None
    staker: Optional[str] = None


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/config", summary="Public Configuration")
def get_config(
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    return success_envelope(service.get_public_config())


@router.get("/ledger-end", summary="Ledger End Offset")
def get_ledger_end(
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    return success_envelope({"offset": service.get_ledger_end(correlation_id)})


@router.post("/pool/create", summary="Create Staking Pool")
def create_pool(
    body: CreatePoolRequest,
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[STAKING-API] POST /pool/create | issuer={body.issuer or 'default'} | "
        f"correlation_id={correlation_id}"
    )
    result = service.create_pool(body.issuer, correlation_id=correlation_id)
    return success_envelope(result.to_dict())


@router.post("/pool/add-staker", summary="Add Staker to Pool")
def add_staker(
    body: AddStakerRequest,
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[STAKING-API] POST /pool/add-staker | pool={body.poolContractId} | "
        f"staker={body.newStaker} | correlation_id={correlation_id}"
    )
    result = service.add_staker(
        body.poolContractId, body.newStaker, correlation_id=correlation_id
    )
    return success_envelope(result.to_dict())


@router.get("/pool/{poolContractId}", summary="Get Staking Pool")
def get_pool(
    poolContractId: str,
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    pool = service.get_pool(poolContractId, correlation_id=correlation_id)
    return success_envelope(pool.to_dict())


@router.get("/pools", summary="List Staking Pools")
def list_pools(
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    pools = service.list_pools(correlation_id=correlation_id)
    return success_envelope(
        {"pools": [p.to_dict() for p in pools], "count": len(pools)}
    )


@router.post("/pool/deposit", summary="Deposit Into Pool")
def deposit(
    body: DepositRequest,
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[STAKING-API] POST /pool/deposit | pool={body.poolContractId} | "
        f"staker={body.staker} | holding={body.holdingCid} | "
        f"amount={body.amount} | correlation_id={correlation_id}"
    )
    result = service.deposit(
        body.poolContractId,
        body.staker,
        body.holdingCid,
        body.amount,
        correlation_id=correlation_id,
    )
    return success_envelope(result.to_dict())


@router.post("/stake/withdraw", summary="Withdraw Stake")
def withdraw(
    body: WithdrawRequest,
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"[STAKING-API] POST /stake/withdraw | stake={body.stakeContractId} | "
        f"staker={body.staker} | correlation_id={correlation_id}"
    )
    result = service.withdraw(
        body.stakeContractId, body.staker, correlation_id=correlation_id
    )
    return success_envelope(result.to_dict())


@router.get("/stakes", summary="Stakes of a Staker")
def get_stakes(
    staker: Optional[str] = Query(default=None),
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    return success_envelope(
        service.query_stakes(staker, correlation_id=correlation_id)
    )


@router.get("/holdings", summary="Holdings of an Owner")
def get_holdings(
    owner: Optional[str] = Query(default=None),
    service: StakingService = Depends(get_staking_service),
) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    return success_envelope(
        service.query_holdings(owner, correlation_id=correlation_id)
    )
