"""Async client for the Firewalla MSP REST API."""

import logging
from typing import Any

import httpx

from .config import MspConfig

logger = logging.getLogger(__name__)


class MspClient:
    """Authenticated client shared by every tool call.

    Built once at startup and only read afterwards. Non-2xx responses raise
    ``httpx.HTTPStatusError``; the tool dispatcher maps those to MCP errors.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float):
        self.base_url = base_url
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    @classmethod
    def from_config(cls, config: MspConfig) -> "MspClient":
        return cls(config.base_url, config.api_key, config.timeout)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (``None`` if empty)."""
        logger.debug(f"{method} {path} params={params}")
        response = await self.client.request(method, path, params=params or None, json=json)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self) -> "MspClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
