"""HMAC authentication middleware."""

from __future__ import annotations

import json
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from hmacauth.common.errors import ErrorCode, error_response
from hmacauth.common.logging import get_logger
from hmacauth.common.settings import Settings
from hmacauth.core.verifier import AuthOutcome, AuthResult, Verifier

logger = get_logger(__name__)


def rejection_response(result: AuthResult, verifier: Verifier) -> Response:
    """Map a failed AuthResult to an HTTP error response."""
    config = verifier.config
    details: dict[str, Any] | None = None

    if result.outcome is AuthOutcome.NO_HEADERS:
        details = {"requiredHeaders": [config.timestamp_header, config.signature_header]}
    elif result.outcome is AuthOutcome.EXPIRED:
        details = {"timeDiff": result.time_diff, "maxAllowed": result.max_age}

    if result.outcome is AuthOutcome.ERROR:
        return error_response(ErrorCode.AUTH_ERROR, result.reason, 500)
    return error_response(ErrorCode.UNAUTHORIZED, result.reason, 401, details)


class HmacAuthMiddleware(BaseHTTPMiddleware):
    """Require a signed request on protected path prefixes."""

    def __init__(self, app: ASGIApp, settings: Settings, verifier: Verifier) -> None:
        super().__init__(app)
        self._verifier = verifier
        self._prefixes = tuple(settings.protected_path_prefixes)
        self._exempt_paths = set(settings.auth_exempt_paths)

    def _is_protected(self, path: str) -> bool:
        if path in self._exempt_paths:
            return False
        return any(path.startswith(prefix) for prefix in self._prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not self._is_protected(path):
            return await call_next(request)

        raw = await request.body()
        body: Any = None
        if raw:
            try:
                body = json.loads(raw)
            except (ValueError, RecursionError):
                return error_response(ErrorCode.INVALID_JSON, "Invalid JSON", 400)

        result = self._verifier.verify_request(request.method, path, body, request.headers)
        if not result.authenticated:
            logger.debug("Rejecting request", path=path, outcome=result.outcome.value)
            return rejection_response(result, self._verifier)

        request.state.auth = result
        return await call_next(request)
