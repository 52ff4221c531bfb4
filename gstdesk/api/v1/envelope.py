# gstdesk/api/v1/envelope.py
"""
Standardized API response envelope used by all v1 endpoints.

Every response wraps data in:
    {
        "status": "ok" | "error",
        "data": <payload>,
        "message": <optional string>,
        "errors": <optional list of detail dicts>
    }
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi import status as http_status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gstdesk.domain.services.einvoice_flow import (
    ERROR_NOT_CONFIGURED,
    ERROR_UPSTREAM,
    ERROR_VALIDATION,
)

T = TypeVar("T")

# Flow failure kind -> HTTP status
_FAILURE_STATUS = {
    ERROR_VALIDATION: http_status.HTTP_400_BAD_REQUEST,
    ERROR_NOT_CONFIGURED: http_status.HTTP_503_SERVICE_UNAVAILABLE,
    ERROR_UPSTREAM: http_status.HTTP_502_BAD_GATEWAY,
}


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope for all v1 API responses."""

    status: str = "ok"
    data: T | None = None
    message: str | None = None
    errors: list[dict[str, Any]] | None = None


# ---------------------------------------------------------------------------
# Helpers for building responses
# ---------------------------------------------------------------------------

def ok(data: Any = None, message: str | None = None) -> dict:
    """Build a success response dict."""
    return ApiResponse(status="ok", data=data, message=message).model_dump()


def error(message: str, errors: list[dict[str, Any]] | None = None, status: str = "error") -> dict:
    """Build an error response dict."""
    return ApiResponse(status=status, message=message, errors=errors).model_dump()


def error_response(status_code: int, message: str) -> JSONResponse:
    """Error envelope with a non-200 status code."""
    return JSONResponse(status_code=status_code, content=error(message))


def from_flow(result: dict[str, Any], message: str | None = None) -> dict | JSONResponse:
    """Turn a flow ``{"success": ...}`` dict into an envelope or error response."""
    if result.get("success"):
        data = {k: v for k, v in result.items() if k not in ("success", "message")}
        return ok(data=data, message=result.get("message") or message)
    status_code = _FAILURE_STATUS.get(result.get("code"), http_status.HTTP_502_BAD_GATEWAY)
    return error_response(status_code, result.get("error") or "Request failed")
