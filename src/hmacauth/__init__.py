"""
hmacauth: HMAC request signing and verification.

Signs outbound API calls and timestamp tokens with a shared secret, and
verifies inbound requests against tampering and replay.
"""

__version__ = "1.0.0"
