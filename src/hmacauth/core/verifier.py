"""Signature and freshness verification."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hmacauth.common.logging import get_logger
from hmacauth.common.metrics import record_auth_decision, record_token_check
from hmacauth.core.canonical import message_bytes, string_to_sign
from hmacauth.core.config import SigningConfig, now_ms
from hmacauth.core.errors import InternalError, MalformedTokenError
from hmacauth.core.token import parse_token, token_payload

logger = get_logger(__name__)


class AuthOutcome(Enum):
    """Terminal states of request verification."""

    AUTHENTICATED = "authenticated"
    NO_HEADERS = "no_headers"
    MALFORMED_TIMESTAMP = "malformed_timestamp"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    ERROR = "error"


_REASONS = {
    AuthOutcome.AUTHENTICATED: "Authenticated",
    AuthOutcome.NO_HEADERS: "Missing authentication headers",
    AuthOutcome.MALFORMED_TIMESTAMP: "Invalid timestamp",
    AuthOutcome.EXPIRED: "Request expired",
    AuthOutcome.INVALID_SIGNATURE: "Invalid signature",
    AuthOutcome.ERROR: "Authentication error",
}


@dataclass(frozen=True)
class AuthResult:
    """Outcome of verifying a signed request."""

    outcome: AuthOutcome
    reason: str
    time_diff: int | None = None
    max_age: int | None = None

    @property
    def authenticated(self) -> bool:
        return self.outcome is AuthOutcome.AUTHENTICATED


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a timestamp token."""

    is_valid: bool
    reason: str
    data: Any = None
    age: int | None = None
    max_age: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"isValid": self.is_valid, "reason": self.reason}
        if self.age is not None:
            result["age"] = self.age
            result["data"] = self.data
        if self.max_age is not None:
            result["maxAge"] = self.max_age
        return result


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value or None
    return None


class Verifier:
    """
    Verify messages, timestamp tokens and signed requests.

    Every failure on the authentication path is reported as a result value;
    nothing here raises for bad inbound material.
    """

    def __init__(
        self,
        config: SigningConfig,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config
        self._engine = config.create_engine()
        self._clock = clock

    @property
    def config(self) -> SigningConfig:
        return self._config

    def verify_message(self, message: Any, candidate: str) -> bool:
        """Check ``candidate`` against the digest of ``message``."""
        try:
            data = message_bytes(message)
        except InternalError as e:
            logger.warning("Message verification failed", error=str(e))
            return False
        return self._engine.verify(data, candidate)

    def verify_timestamp_token(self, full_token: str) -> TokenVerification:
        """
        Verify a token produced by ``Signer.sign_with_timestamp``.

        Expiry is decided before the digest is checked, so an expired token
        is rejected even when its digest is valid. A token exactly
        ``max_token_age_ms`` old is still fresh.
        """
        max_age = self._config.max_token_age_ms
        try:
            digest, timestamp, message = parse_token(full_token)
        except MalformedTokenError as e:
            logger.info("Timestamp token rejected", reason="malformed", error=str(e))
            record_token_check("malformed")
            return TokenVerification(is_valid=False, reason="Invalid token format")

        age = self._clock() - timestamp
        if age > max_age:
            logger.info("Timestamp token rejected", reason="expired", age=age, max_age=max_age)
            record_token_check("expired")
            return TokenVerification(
                is_valid=False,
                reason="Token expired",
                age=age,
                max_age=max_age,
            )

        try:
            payload = token_payload(message, timestamp)
        except InternalError:
            record_token_check("malformed")
            return TokenVerification(is_valid=False, reason="Invalid token format")

        is_valid = self._engine.verify(payload.encode("utf-8"), digest)
        record_token_check("valid" if is_valid else "invalid")
        if not is_valid:
            logger.info("Timestamp token rejected", reason="invalid_hmac", age=age)
        return TokenVerification(
            is_valid=is_valid,
            reason="Valid token" if is_valid else "Invalid HMAC",
            data=message if is_valid else None,
            age=age,
        )

    def verify_request(
        self,
        method: str,
        path: str,
        body: Any,
        headers: Mapping[str, str],
    ) -> AuthResult:
        """
        Authenticate a signed request.

        Args:
            method: HTTP method
            path: Request path as signed by the client
            body: Parsed JSON body, or None
            headers: Request headers (looked up case-insensitively)

        Returns:
            AuthResult describing the terminal state
        """
        max_age = self._config.max_token_age_ms
        timestamp = _header(headers, self._config.timestamp_header)
        signature = _header(headers, self._config.signature_header)

        if not timestamp or not signature:
            return self._decide(AuthOutcome.NO_HEADERS, method, path)

        try:
            request_time = int(timestamp)
        except ValueError:
            return self._decide(AuthOutcome.MALFORMED_TIMESTAMP, method, path)

        time_diff = abs(self._clock() - request_time)
        if time_diff > max_age:
            return self._decide(
                AuthOutcome.EXPIRED, method, path, time_diff=time_diff, max_age=max_age
            )

        try:
            canonical = string_to_sign(method, path, body, timestamp)
        except InternalError as e:
            logger.error("Failed to build string to sign", path=path, error=str(e))
            return self._decide(AuthOutcome.ERROR, method, path)

        if not self._engine.verify(canonical.encode("utf-8"), signature):
            return self._decide(AuthOutcome.INVALID_SIGNATURE, method, path, time_diff=time_diff)

        return self._decide(AuthOutcome.AUTHENTICATED, method, path, time_diff=time_diff)

    def _decide(
        self,
        outcome: AuthOutcome,
        method: str,
        path: str,
        time_diff: int | None = None,
        max_age: int | None = None,
    ) -> AuthResult:
        record_auth_decision(outcome.value)
        if outcome is AuthOutcome.AUTHENTICATED:
            logger.info("Request authenticated", method=method.upper(), path=path)
        else:
            logger.warning(
                "Request rejected",
                method=method.upper(),
                path=path,
                outcome=outcome.value,
                time_diff=time_diff,
            )
        return AuthResult(
            outcome=outcome,
            reason=_REASONS[outcome],
            time_diff=time_diff,
            max_age=max_age,
        )
