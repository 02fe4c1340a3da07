"""Canonical string-to-sign construction."""

from __future__ import annotations

import json
from typing import Any

from hmacauth.core.errors import InternalError


def canonical_json(value: Any) -> str:
    """
    Serialize a JSON value deterministically.

    Keys are sorted at every nesting level and no insignificant whitespace
    is emitted, so signer and verifier agree regardless of dict ordering.

    Raises:
        InternalError: If the value is not JSON serializable
    """
    try:
        return json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise InternalError(f"Value is not JSON serializable: {type(e).__name__}") from e


def message_bytes(message: Any) -> bytes:
    """Canonical bytes of a message: text as-is, everything else as JSON."""
    if isinstance(message, bytes):
        return message
    if isinstance(message, str):
        return message.encode("utf-8")
    return canonical_json(message).encode("utf-8")


def string_to_sign(method: str, path: str, body: Any, timestamp: str | int) -> str:
    """Build ``timestamp.METHOD.path.json(body)`` with a missing body as ``{}``."""
    payload = {} if body is None else body
    return f"{timestamp}.{method.upper()}.{path}.{canonical_json(payload)}"


def validate_message(message: Any) -> bool:
    """Reject an absent message."""
    if message is None:
        raise ValueError("Message cannot be null")
    return True
