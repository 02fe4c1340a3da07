"""Prometheus metrics for signing and verification."""

import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# === Counters ===

AUTH_DECISIONS_TOTAL = Counter(
    "hmacauth_auth_decisions_total",
    "Signed request verification decisions",
    ["outcome"],  # outcome: authenticated, no_headers, malformed_timestamp, expired, invalid_signature, error
)

TOKEN_CHECKS_TOTAL = Counter(
    "hmacauth_token_checks_total",
    "Timestamp token verification results",
    ["result"],  # result: valid, invalid, expired, malformed
)

SIGNATURES_ISSUED_TOTAL = Counter(
    "hmacauth_signatures_issued_total",
    "Signatures issued",
    ["kind"],  # kind: message, token, request
)

HTTP_REQUESTS_TOTAL = Counter(
    "hmacauth_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

# === Histograms ===

HTTP_REQUEST_LATENCY = Histogram(
    "hmacauth_http_request_latency_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


# === Helper Functions ===


def record_auth_decision(outcome: str) -> None:
    """Record a request verification decision."""
    AUTH_DECISIONS_TOTAL.labels(outcome=outcome).inc()


def record_token_check(result: str) -> None:
    """Record a timestamp token verification."""
    TOKEN_CHECKS_TOTAL.labels(result=result).inc()


def record_signature(kind: str) -> None:
    """Record an issued signature."""
    SIGNATURES_ISSUED_TOTAL.labels(kind=kind).inc()


def record_http_request(
    method: str,
    endpoint: str,
    status: int,
    latency: float,
) -> None:
    """Record an HTTP request."""
    HTTP_REQUESTS_TOTAL.labels(
        method=method,
        endpoint=endpoint,
        status=str(status),
    ).inc()
    HTTP_REQUEST_LATENCY.labels(
        method=method,
        endpoint=endpoint,
    ).observe(latency)


# === HTTP Endpoint ===


class MetricsMiddleware(BaseHTTPMiddleware):
    """HTTP request metrics middleware."""

    def __init__(self, app: ASGIApp, exclude_paths: list[str] | None = None) -> None:
        super().__init__(app)
        self._exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exclude_paths:
            return await call_next(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=500,
                latency=duration,
            )
            raise

        duration = time.perf_counter() - start
        record_http_request(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
            latency=duration,
        )
        return response


async def metrics_endpoint(_request: Request) -> Response:
    """Expose the default registry in Prometheus text format."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
