"""Timestamp token wire format."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from hmacauth.core.canonical import canonical_json
from hmacauth.core.errors import MalformedTokenError

_TIMESTAMP_RE = re.compile(r"-?\d+")


@dataclass(frozen=True)
class TimestampToken:
    """A digest bound to the time it was issued."""

    digest: str
    timestamp: int
    message: Any
    full_token: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "hmac": self.digest,
            "timestamp": self.timestamp,
            "data": self.message,
            "fullToken": self.full_token,
        }


def token_payload(message: Any, timestamp: int) -> str:
    """Canonical JSON of the signed ``{message, timestamp}`` pair."""
    return canonical_json({"message": message, "timestamp": timestamp})


def format_token(digest: str, timestamp: int, message: Any) -> str:
    return f"{digest}:{timestamp}:{canonical_json(message)}"


def parse_token(full_token: str) -> tuple[str, int, Any]:
    """
    Split a token into ``(digest, timestamp, message)``.

    Only the first two colons delimit fields; the message JSON may contain
    colons of its own.

    Raises:
        MalformedTokenError: If the token does not have three valid fields
    """
    if not isinstance(full_token, str):
        raise MalformedTokenError("Token must be a string")

    parts = full_token.split(":", 2)
    if len(parts) < 3:
        raise MalformedTokenError("Token must have three colon-delimited fields")

    digest, timestamp_str, message_json = parts
    if not _TIMESTAMP_RE.fullmatch(timestamp_str):
        raise MalformedTokenError("Token timestamp is not an integer")

    try:
        timestamp = int(timestamp_str)
    except ValueError as e:
        raise MalformedTokenError("Token timestamp is out of range") from e

    # Oversized integers raise ValueError and deep nesting raises RecursionError
    try:
        message = json.loads(message_json)
    except (ValueError, RecursionError) as e:
        raise MalformedTokenError("Token message is not valid JSON") from e

    return digest, timestamp, message
