"""Tests for the signing API client."""

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from hmacauth.client.api_client import ApiClient, ApiClientError

from conftest import T0


def _mock_response(status: int, json_data=None, text: str = "") -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


class TestApiClient:
    @pytest.fixture
    def api_client(self, signer, settings):
        return ApiClient(signer, settings=settings, base_url="http://api.test/")

    def test_base_url_trailing_slash_stripped(self, api_client):
        assert api_client.base_url == "http://api.test"

    def test_default_base_url_from_settings(self, signer, settings):
        assert ApiClient(signer, settings=settings).base_url == "http://localhost:3000"

    def test_generate_auth_headers(self, api_client, signer):
        headers = api_client.generate_auth_headers("GET", "/api/protected")
        assert headers == signer.sign_request("GET", "/api/protected", {})
        assert headers["x-timestamp"] == str(T0)

    @pytest.mark.asyncio
    async def test_get_sends_signed_headers(self, api_client, verifier):
        async with api_client:
            with patch.object(
                api_client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(200, {"status": "Authenticated"})

                result = await api_client.get("/api/protected")

                assert result == {"status": "Authenticated"}
                args, kwargs = mock_request.call_args
                assert args == ("GET", "http://api.test/api/protected")
                assert "json" not in kwargs
                auth = verifier.verify_request("GET", "/api/protected", None, kwargs["headers"])
                assert auth.authenticated

    @pytest.mark.asyncio
    async def test_post_signs_body(self, api_client, verifier):
        body = {"name": "test", "value": 1}
        async with api_client:
            with patch.object(
                api_client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(200, {"status": "success"})

                await api_client.post("/api/protected/data", body)

                _, kwargs = mock_request.call_args
                assert kwargs["json"] == body
                auth = verifier.verify_request(
                    "POST", "/api/protected/data", body, kwargs["headers"]
                )
                assert auth.authenticated

    @pytest.mark.asyncio
    async def test_query_string_not_signed(self, api_client, verifier):
        async with api_client:
            with patch.object(
                api_client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(200, {})

                await api_client.get("/api/protected?page=2")

                args, kwargs = mock_request.call_args
                assert args[1] == "http://api.test/api/protected?page=2"
                auth = verifier.verify_request("GET", "/api/protected", None, kwargs["headers"])
                assert auth.authenticated

    @pytest.mark.asyncio
    async def test_server_error_raises(self, api_client):
        async with api_client:
            with patch.object(
                api_client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(401, text='{"error": "Invalid signature"}')

                with pytest.raises(ApiClientError) as exc_info:
                    await api_client.get("/api/protected")

                assert exc_info.value.status_code == 401
                assert "Invalid signature" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, api_client):
        async with api_client:
            with patch.object(
                api_client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.side_effect = aiohttp.ClientConnectionError("refused")

                with pytest.raises(ApiClientError) as exc_info:
                    await api_client.get("/public")

                assert exc_info.value.status_code is None
                assert "No response from server" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_context_closes_session(self, api_client):
        async with api_client:
            assert api_client._session is not None
        assert api_client._session is None
