"""Tests for client module."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from firewalla_msp_mcp.client import MspClient
from firewalla_msp_mcp.config import MspConfig


class TestMspClient:
    """Tests for MspClient class."""

    def test_init_creates_httpx_client(self):
        """Should create the httpx client with token auth and timeout."""
        with patch("httpx.AsyncClient") as mock_client:
            MspClient("https://acme.firewalla.net/v2", "secret-token", 12.5)

            mock_client.assert_called_once()
            call_kwargs = mock_client.call_args[1]
            assert call_kwargs["base_url"] == "https://acme.firewalla.net/v2"
            assert call_kwargs["headers"]["Authorization"] == "Token secret-token"
            assert call_kwargs["headers"]["Content-Type"] == "application/json"
            assert call_kwargs["timeout"] == 12.5

    def test_from_config(self):
        with patch("httpx.AsyncClient") as mock_client:
            client = MspClient.from_config(MspConfig("acme.firewalla.net", "key", 30.0))

            assert client.base_url == "https://acme.firewalla.net/v2"
            assert mock_client.call_args[1]["headers"]["Authorization"] == "Token key"

    @pytest.mark.asyncio
    async def test_get_returns_json(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = MagicMock()
            mock_client_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.content = b'{"count": 0}'
            mock_response.json.return_value = {"count": 0}
            mock_client.request = AsyncMock(return_value=mock_response)

            client = MspClient("https://x/v2", "key", 30.0)
            result = await client.get("/boxes", params={"group": "g1"})

            mock_client.request.assert_called_once_with("GET", "/boxes", params={"group": "g1"}, json=None)
            mock_response.raise_for_status.assert_called_once()
            assert result == {"count": 0}

    @pytest.mark.asyncio
    async def test_empty_params_are_not_sent(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = MagicMock()
            mock_client_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.content = b"[]"
            mock_response.json.return_value = []
            mock_client.request = AsyncMock(return_value=mock_response)

            client = MspClient("https://x/v2", "key", 30.0)
            await client.get("/target-lists", params={})

            assert mock_client.request.call_args.kwargs["params"] is None

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = MagicMock()
            mock_client_class.return_value = mock_client
            mock_response = MagicMock()
            mock_response.content = b""
            mock_client.request = AsyncMock(return_value=mock_response)

            client = MspClient("https://x/v2", "key", 30.0)
            assert await client.post("/rules/r1/pause") is None
            mock_response.json.assert_not_called()

    @pytest.mark.asyncio
    async def test_status_errors_propagate(self):
        """Should raise HTTPStatusError for non-2xx responses."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "nope"})

        client = MspClient("https://x/v2", "key", 30.0)
        client.client = httpx.AsyncClient(base_url="https://x/v2", transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            await client.delete("/rules/missing")
        await client.close()

    @pytest.mark.asyncio
    async def test_request_hits_versioned_base_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "tl-1"})

        client = MspClient("https://acme.firewalla.net/v2", "key", 30.0)
        client.client = httpx.AsyncClient(
            base_url=client.base_url,
            headers=client.client.headers,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            result = await client.patch("/target-lists/tl-1", json={"name": "x"})

        assert result == {"id": "tl-1"}
        assert str(seen[0].url) == "https://acme.firewalla.net/v2/target-lists/tl-1"
        assert seen[0].method == "PATCH"
        assert seen[0].headers["Authorization"] == "Token key"

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        """Should close the httpx client."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = MagicMock()
            mock_client.aclose = AsyncMock()
            mock_client_class.return_value = mock_client

            client = MspClient("https://x/v2", "key", 30.0)
            await client.close()

            mock_client.aclose.assert_called_once()
