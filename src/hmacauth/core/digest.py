"""Keyed digest creation and constant-time verification."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from hmacauth.core.errors import ConfigurationError

SUPPORTED_ALGORITHMS = ("sha256", "sha512", "sha1")


def _secret_bytes(secret: str | bytes | None) -> bytes:
    if secret is None:
        raise ConfigurationError("HMAC secret is required. Set HMAC_SECRET in the environment")
    key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
    if not key:
        raise ConfigurationError("HMAC secret is required. Set HMAC_SECRET in the environment")
    return key


class DigestEngine:
    """HMAC create/verify over a fixed hash family."""

    def __init__(self, secret: str | bytes | None, algorithm: str = "sha256") -> None:
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported HMAC algorithm: {algorithm}")
        self._key = _secret_bytes(secret)
        self._algorithm = algorithm
        self._digest_size = hashlib.new(algorithm).digest_size

    def __repr__(self) -> str:
        return f"DigestEngine(algorithm={self._algorithm!r})"

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def digest_size(self) -> int:
        """Digest length in bytes."""
        return self._digest_size

    def _raw(self, data: bytes) -> bytes:
        return hmac.new(self._key, data, self._algorithm).digest()

    def create(self, data: bytes) -> str:
        """Create a hex-encoded HMAC of ``data``."""
        return self._raw(data).hex()

    def verify(self, data: bytes, candidate: object) -> bool:
        """
        Verify a hex-encoded HMAC in constant time.

        Malformed candidates (non-string, invalid hex, wrong length) are
        reported as a mismatch instead of raising.
        """
        if not isinstance(candidate, str):
            return False
        try:
            received = bytes.fromhex(candidate)
        except ValueError:
            return False
        if len(received) != self._digest_size:
            return False
        return hmac.compare_digest(self._raw(data), received)


def generate_secret(length: int = 32) -> str:
    """Generate a random hex secret of ``length`` bytes."""
    return secrets.token_hex(length)
