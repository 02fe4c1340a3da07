"""API server exposing signing helpers and HMAC-protected routes."""

import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from hmacauth.common.auth import HmacAuthMiddleware
from hmacauth.common.errors import ErrorCode, error_response
from hmacauth.common.http import RequestIdMiddleware
from hmacauth.common.logging import get_logger, setup_logging
from hmacauth.common.metrics import MetricsMiddleware, metrics_endpoint
from hmacauth.common.settings import Settings, get_settings
from hmacauth.core.canonical import validate_message
from hmacauth.core.config import SigningConfig, now_ms
from hmacauth.core.errors import ConfigurationError, InternalError
from hmacauth.core.signer import Signer
from hmacauth.core.verifier import Verifier

logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _json_body(request: Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except (ValueError, RecursionError):
        return None
    return body if isinstance(body, dict) else None


class ApiServer:
    """HTTP handlers backed by a Signer and Verifier."""

    def __init__(self, settings: Settings, signer: Signer, verifier: Verifier):
        """Initialize server."""
        self._settings = settings
        self._signer = signer
        self._verifier = verifier

    async def startup(self) -> None:
        logger.info(
            "Starting API server",
            algorithm=self._signer.config.algorithm,
            protected=list(self._settings.protected_path_prefixes),
        )

    async def handle_welcome(self, request: Request) -> JSONResponse:
        return JSONResponse({
            "message": "Welcome to HMAC Authentication API",
            "endpoints": {
                "public": "/public",
                "protected": "/api/protected",
                "createHMAC": "/api/create-hmac",
                "verifyHMAC": "/api/verify-hmac",
            },
            "instructions": (
                f"Use {self._settings.timestamp_header} and "
                f"{self._settings.signature_header} headers for protected routes"
            ),
        })

    async def handle_public(self, request: Request) -> JSONResponse:
        return JSONResponse({
            "message": "This is a public endpoint",
            "timestamp": _utc_now(),
            "note": "No authentication required",
        })

    async def handle_create_hmac(self, request: Request) -> JSONResponse:
        """Sign a message and return both digest forms."""
        body = await _json_body(request)
        if body is None:
            return error_response(ErrorCode.INVALID_JSON, "Invalid JSON", 400)

        message = body.get("message")
        try:
            validate_message(message)
        except ValueError:
            return error_response(ErrorCode.MISSING_FIELD, "Message is required", 400)

        try:
            digest = self._signer.sign_message(message)
            token = self._signer.sign_with_timestamp(message)
        except InternalError as e:
            logger.error("Failed to sign message", error=str(e))
            return error_response(ErrorCode.INTERNAL_ERROR, "Failed to sign message", 500)

        return JSONResponse({
            "success": True,
            "message": "HMAC created successfully",
            "data": {
                "originalMessage": message,
                "simpleHMAC": digest,
                "timestampToken": token.to_dict(),
            },
            "verification": {
                "simple": self._verifier.verify_message(message, digest),
                "timestamp": self._verifier.verify_timestamp_token(token.full_token).to_dict(),
            },
        })

    async def handle_verify_hmac(self, request: Request) -> JSONResponse:
        """Check a message against a supplied digest."""
        body = await _json_body(request)
        if body is None:
            return error_response(ErrorCode.INVALID_JSON, "Invalid JSON", 400)

        message = body.get("message")
        received = body.get("hmac")
        if message is None or not received:
            return error_response(
                ErrorCode.MISSING_FIELD,
                "Both message and hmac are required",
                400,
            )

        is_valid = self._verifier.verify_message(message, received)
        return JSONResponse({
            "success": True,
            "message": "HMAC is valid" if is_valid else "HMAC is invalid",
            "isValid": is_valid,
        })

    async def handle_protected(self, request: Request) -> JSONResponse:
        return JSONResponse({
            "message": "You accessed a protected route",
            "status": "Authenticated",
            "timestamp": _utc_now(),
            "data": {
                "secretInfo": "This data is protected by HMAC authentication",
                "serverTime": now_ms(),
            },
        })

    async def handle_protected_data(self, request: Request) -> JSONResponse:
        try:
            received = await request.json()
        except (ValueError, RecursionError):
            received = None
        return JSONResponse({
            "message": "Data received and authenticated",
            "receivedData": received,
            "status": "success",
            "authenticatedAt": _utc_now(),
        })

    async def handle_health(self, request: Request) -> JSONResponse:
        """Health check."""
        return JSONResponse({"status": "healthy"})


def create_app(
    settings: Settings | None = None,
    signer: Signer | None = None,
    verifier: Verifier | None = None,
) -> Starlette:
    """
    Create the Starlette application.

    Raises:
        ConfigurationError: If no usable secret is configured
    """
    settings = settings or get_settings()
    if signer is None or verifier is None:
        config = SigningConfig.from_settings(settings)
        signer = signer or Signer(config)
        verifier = verifier or Verifier(config)
    server = ApiServer(settings, signer, verifier)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        await server.startup()
        yield

    routes = [
        Route("/", server.handle_welcome, methods=["GET"]),
        Route("/public", server.handle_public, methods=["GET"]),
        Route("/api/create-hmac", server.handle_create_hmac, methods=["POST"]),
        Route("/api/verify-hmac", server.handle_verify_hmac, methods=["POST"]),
        Route("/api/protected", server.handle_protected, methods=["GET"]),
        Route("/api/protected/data", server.handle_protected_data, methods=["POST"]),
        Route("/health", server.handle_health, methods=["GET"]),
        Route("/metrics", metrics_endpoint, methods=["GET"]),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)

    app.add_middleware(HmacAuthMiddleware, settings=settings, verifier=verifier)
    app.add_middleware(
        MetricsMiddleware,
        exclude_paths=["/health", "/metrics"],
    )
    app.add_middleware(RequestIdMiddleware)

    return app


def main():
    """Entry point for the API server."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        sys.exit(1)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
