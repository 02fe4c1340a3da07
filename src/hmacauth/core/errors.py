"""Error taxonomy for the signing core."""


class HmacAuthError(Exception):
    """Base error for signing and verification."""

    pass


class ConfigurationError(HmacAuthError):
    """Missing or invalid signing configuration (fatal at startup)."""

    pass


class MalformedTokenError(HmacAuthError):
    """Timestamp token could not be parsed."""

    pass


class InternalError(HmacAuthError):
    """Unexpected failure while canonicalizing or digesting a message."""

    pass
