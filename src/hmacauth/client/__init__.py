"""Signing HTTP client."""

from hmacauth.client.api_client import ApiClient, ApiClientError

__all__ = ["ApiClient", "ApiClientError"]
