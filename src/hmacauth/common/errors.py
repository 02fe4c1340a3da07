"""Shared error helpers and codes."""

from __future__ import annotations

from typing import Any

from starlette.responses import JSONResponse

from hmacauth.common.http import get_request_id


class ErrorCode:
    INVALID_JSON = "invalid_json"
    MISSING_FIELD = "missing_field"
    UNAUTHORIZED = "unauthorized"
    AUTH_ERROR = "auth_error"
    INTERNAL_ERROR = "internal_error"


def error_response(
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope, tagged with the current request id."""
    payload: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    request_id = get_request_id()
    if request_id is not None:
        payload["error"]["requestId"] = request_id
    if details:
        payload["error"]["details"] = details
    return JSONResponse(payload, status_code=status_code)
