"""Explicit signing configuration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hmacauth.common.logging import get_logger
from hmacauth.core.digest import DigestEngine

if TYPE_CHECKING:
    from hmacauth.common.settings import Settings

logger = get_logger(__name__)

DEFAULT_MAX_TOKEN_AGE_MS = 5 * 60 * 1000
DEFAULT_TIMESTAMP_HEADER = "x-timestamp"
DEFAULT_SIGNATURE_HEADER = "x-signature"
MIN_SECRET_LENGTH = 32


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class SigningConfig:
    """Process-wide signing parameters shared by Signer and Verifier."""

    secret: str | bytes = field(repr=False)
    algorithm: str = "sha256"
    max_token_age_ms: int = DEFAULT_MAX_TOKEN_AGE_MS
    timestamp_header: str = DEFAULT_TIMESTAMP_HEADER
    signature_header: str = DEFAULT_SIGNATURE_HEADER
    min_secret_length: int = MIN_SECRET_LENGTH

    @classmethod
    def from_settings(cls, settings: Settings) -> "SigningConfig":
        """Build a config from application settings."""
        secret = settings.secret.get_secret_value() if settings.secret else ""
        return cls(
            secret=secret,
            algorithm=settings.algorithm,
            max_token_age_ms=settings.max_token_age_ms,
            timestamp_header=settings.timestamp_header,
            signature_header=settings.signature_header,
            min_secret_length=settings.min_secret_length,
        )

    def create_engine(self) -> DigestEngine:
        """
        Create the digest engine for this config.

        Raises:
            ConfigurationError: If the secret is missing or the algorithm unsupported
        """
        engine = DigestEngine(self.secret, self.algorithm)
        if len(self.secret) < self.min_secret_length:
            logger.warning(
                "HMAC secret is shorter than recommended",
                length=len(self.secret),
                min_length=self.min_secret_length,
            )
        return engine
