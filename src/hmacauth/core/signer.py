"""Message, token and request signing."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from hmacauth.common.logging import get_logger
from hmacauth.common.metrics import record_signature
from hmacauth.core.canonical import message_bytes, string_to_sign
from hmacauth.core.config import SigningConfig, now_ms
from hmacauth.core.token import TimestampToken, format_token, token_payload

logger = get_logger(__name__)


class Signer:
    """
    Produce HMAC digests for messages and outbound requests.

    All operations are deterministic for a given secret, input and
    timestamp; the clock is the only source of variation.
    """

    def __init__(
        self,
        config: SigningConfig,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        Initialize the signer.

        Args:
            config: Signing configuration
            clock: Millisecond epoch clock

        Raises:
            ConfigurationError: If the secret is missing
        """
        self._config = config
        self._engine = config.create_engine()
        self._clock = clock

    @property
    def config(self) -> SigningConfig:
        return self._config

    def sign_message(self, message: Any) -> str:
        """
        Sign a message.

        Args:
            message: Text (signed as-is) or any JSON value

        Returns:
            Hex digest

        Raises:
            InternalError: If the message is not JSON serializable
        """
        digest = self._engine.create(message_bytes(message))
        record_signature("message")
        return digest

    def sign_with_timestamp(self, message: Any) -> TimestampToken:
        """Sign a message bound to the current time."""
        timestamp = self._clock()
        digest = self._engine.create(token_payload(message, timestamp).encode("utf-8"))
        record_signature("token")
        return TimestampToken(
            digest=digest,
            timestamp=timestamp,
            message=message,
            full_token=format_token(digest, timestamp, message),
        )

    def sign_request(self, method: str, path: str, body: Any = None) -> dict[str, str]:
        """
        Build authentication headers for an outbound request.

        Returns:
            Mapping of the timestamp and signature header names to values
        """
        timestamp = str(self._clock())
        canonical = string_to_sign(method, path, body, timestamp)
        signature = self._engine.create(canonical.encode("utf-8"))
        record_signature("request")
        logger.debug("Request signed", method=method.upper(), path=path)
        return {
            self._config.timestamp_header: timestamp,
            self._config.signature_header: signature,
        }
