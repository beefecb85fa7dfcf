"""
Response Envelope - uniform JSON shape for every HTTP answer.

    success: {"success": true,  "data": ...,                    "timestamp": ...}
    failure: {"success": false, "error": {"code", "message"},   "timestamp": ...}
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi.responses import JSONResponse

from app.ledger.errors import GatewayError


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_envelope(data: Any, **extra: Any) -> Dict[str, Any]:
    """Success body; extra keys (e.g. the echoed query) sit beside data."""
    body: Dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    body["timestamp"] = utc_timestamp()
    return body


def error_envelope(code: str, message: str, **extra: Any) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    error.update(extra)
    return {"success": False, "error": error, "timestamp": utc_timestamp()}


def gateway_error_response(exc: GatewayError) -> JSONResponse:
    body = exc.to_dict()
    return JSONResponse(
        status_code=exc.http_status,
        content=error_envelope(
            body.pop("code"), body.pop("message"), **body
        ),
    )


__all__ = [
    "utc_timestamp",
    "success_envelope",
    "error_envelope",
    "gateway_error_response",
]
