"""Common utilities for hmacauth."""

from hmacauth.common.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
