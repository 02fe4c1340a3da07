"""HTTP client that signs outbound requests."""

from typing import Any

import aiohttp

from hmacauth.common.logging import get_logger
from hmacauth.common.settings import Settings
from hmacauth.core.signer import Signer

logger = get_logger(__name__)


class ApiClientError(Exception):
    """Error calling a signed API."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ApiClient:
    """
    Async client for HMAC-protected APIs.

    Each request carries timestamp and signature headers computed over
    method, path and JSON body.
    """

    def __init__(
        self,
        signer: Signer,
        settings: Settings | None = None,
        base_url: str | None = None,
    ):
        """
        Initialize the client.

        Args:
            signer: Signer holding the shared secret
            settings: Application settings (base URL and timeout)
            base_url: Override for the API base URL
        """
        settings = settings or Settings()
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
        self._signer = signer
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "ApiClient":
        """Enter async context."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def generate_auth_headers(
        self,
        method: str,
        path: str,
        data: Any = None,
    ) -> dict[str, str]:
        """Build signed headers for a request."""
        return self._signer.sign_request(method, path, data if data is not None else {})

    async def _request(self, method: str, endpoint: str, data: Any = None) -> Any:
        # The server verifies against the path without its query string
        path = endpoint.split("?", 1)[0]
        headers = self.generate_auth_headers(method, path, data)
        url = f"{self._base_url}{endpoint}"
        kwargs: dict[str, Any] = {"headers": headers}
        if data is not None:
            kwargs["json"] = data

        logger.debug("Sending signed request", method=method, endpoint=endpoint)
        session = self._ensure_session()
        try:
            response = await session.request(method, url, **kwargs)
        except aiohttp.ClientError as e:
            raise ApiClientError(f"No response from server: {e}") from e

        async with response:
            if response.status >= 400:
                text = await response.text()
                logger.warning("Server error", endpoint=endpoint, status=response.status)
                raise ApiClientError(
                    f"Server Error {response.status}: {text}",
                    status_code=response.status,
                    detail=text,
                )
            logger.info("Response received", endpoint=endpoint, status=response.status)
            return await response.json()

    async def get(self, endpoint: str) -> Any:
        """Make an authenticated GET request."""
        return await self._request("GET", endpoint)

    async def post(self, endpoint: str, data: Any) -> Any:
        """Make an authenticated POST request."""
        return await self._request("POST", endpoint, data)
