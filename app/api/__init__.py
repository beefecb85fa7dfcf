# ============================================================================
# Ledger Staking Gateway v1.0.0
# API Routes Module
# ============================================================================

from app.api.balance import router as balance_router
from app.api.staking import router as staking_router
from app.api.transfer import router as transfer_router

__all__ = ["balance_router", "staking_router", "transfer_router"]
