"""
============================================================================
Ledger Staking Gateway v1.0.0
FastAPI Application Entry Point
============================================================================

Reliability Level: CORE
Input Constraints: JSON bodies; amounts as strings or numbers
Side Effects: Ledger reads and command submissions on behalf of callers

MANDATE:
- Every response uses the {success, data | error, timestamp} envelope
- Validation failures are answered before any ledger call
- Ledger failures surface the ledger's own status/code when known
- Nothing is retried

============================================================================
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.api.balance import router as balance_router
from app.api.responses import error_envelope, gateway_error_response, utc_timestamp
from app.api.staking import router as staking_router
from app.api.transfer import router as transfer_router
from app.dependencies import reset_dependencies
from app.ledger import __version__
from app.ledger.errors import GatewayError
from services.ledger_config import LedgerConfig, get_ledger_config

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: load and validate configuration (fail-closed, CFG-001).
    Shutdown: close the ledger and auth HTTP sessions.
    """
    config = get_ledger_config()
    logger.info(
        f"[GATEWAY] Ledger Staking Gateway v{__version__} starting | "
        f"ledger_url={config.ledger_url} | operator={config.validator_party} | "
        f"port={config.api_port}"
    )
    yield
    reset_dependencies()
    logger.info("[GATEWAY] Shutdown complete")


# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

app = FastAPI(
    title="Ledger Staking Gateway",
    description=(
        "HTTP gateway for token staking, balances and transfers on a "
        "permissioned ledger's JSON API."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=LedgerConfig.from_environment(validate=False).cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError):
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"[{exc.error_code}] {request.method} {request.url.path} failed | "
        f"status={exc.http_status} | message={exc.message}"
    )
    return gateway_error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    logger.warning(
        f"[VALIDATION_ERROR] {request.method} {request.url.path} | "
        f"errors={messages}"
    )
    return JSONResponse(
        status_code=400,
        content=error_envelope("VALIDATION_ERROR", "; ".join(messages)),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global handler for unhandled errors: logged, never leaked to the caller.
    """
    logger.exception(
        f"[INTERNAL_ERROR] Unhandled exception | "
        f"{request.method} {request.url.path} | error={exc}"
    )
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            "INTERNAL_ERROR", "Internal server error. This incident has been logged."
        ),
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(balance_router, prefix="/api/balance", tags=["Balance"])
app.include_router(staking_router, prefix="/api/staking", tags=["Staking"])
app.include_router(transfer_router, prefix="/api/transfer", tags=["Transfer"])


# ============================================================================
# SYSTEM ENDPOINTS
# ============================================================================

@app.get(
    "/api/health",
    summary="Health Check",
    description="Lightweight health check for load balancers and monitoring.",
    tags=["System"],
)
async def health_check():
    return {
        "success": True,
        "status": "healthy",
        "service": "Ledger Staking Gateway",
        "version": __version__,
        "timestamp": utc_timestamp(),
    }


@app.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Exposes Prometheus metrics for observability.",
    tags=["Observability"],
)
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
