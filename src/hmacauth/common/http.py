"""Request id propagation for the API server."""

from __future__ import annotations

import contextvars
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "hmacauth_request_id",
    default=None,
)


def get_request_id() -> str | None:
    """Request id of the request being handled, if any."""
    return _request_id_var.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id.

    The id is taken from the incoming header or generated, echoed on the
    response, bound into every structlog event for the request, and added
    to error envelopes so a rejected caller can quote it.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self._header_name) or uuid.uuid4().hex
        token = _request_id_var.set(request_id)
        try:
            with structlog.contextvars.bound_contextvars(request_id=request_id):
                response = await call_next(request)
        finally:
            _request_id_var.reset(token)

        response.headers[self._header_name] = request_id
        return response
