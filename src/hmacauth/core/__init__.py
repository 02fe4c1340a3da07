"""Signing core: digest engine, canonicalization, signer and verifier."""

from hmacauth.core.canonical import canonical_json, message_bytes, string_to_sign
from hmacauth.core.config import SigningConfig, now_ms
from hmacauth.core.digest import DigestEngine, generate_secret
from hmacauth.core.errors import (
    ConfigurationError,
    HmacAuthError,
    InternalError,
    MalformedTokenError,
)
from hmacauth.core.signer import Signer
from hmacauth.core.token import TimestampToken, parse_token
from hmacauth.core.verifier import AuthOutcome, AuthResult, TokenVerification, Verifier

__all__ = [
    "AuthOutcome",
    "AuthResult",
    "ConfigurationError",
    "DigestEngine",
    "HmacAuthError",
    "InternalError",
    "MalformedTokenError",
    "Signer",
    "SigningConfig",
    "TimestampToken",
    "TokenVerification",
    "Verifier",
    "canonical_json",
    "generate_secret",
    "message_bytes",
    "now_ms",
    "parse_token",
    "string_to_sign",
]
