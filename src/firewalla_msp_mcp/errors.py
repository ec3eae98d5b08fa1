"""Map upstream HTTP failures onto MCP protocol errors."""

import logging
from typing import Any

import httpx
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, ErrorData

logger = logging.getLogger(__name__)


def protocol_error(code: int, message: str) -> McpError:
    return McpError(ErrorData(code=code, message=message))


def invalid_request(message: str) -> McpError:
    return protocol_error(INVALID_REQUEST, message)


def unknown_tool(name: str) -> McpError:
    return protocol_error(METHOD_NOT_FOUND, f"Unknown tool: {name}")


def upstream_message(exc: Exception) -> str:
    """Best human-readable message for an upstream failure."""
    response = getattr(exc, "response", None) if isinstance(exc, httpx.HTTPStatusError) else None
    if response is not None:
        try:
            body: Any = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        text = (response.text or "").strip()
        if text:
            return text
    return str(exc) or exc.__class__.__name__


def map_upstream_error(exc: Exception) -> McpError:
    """Translate an httpx failure or an undecodable reply into the matching MCP error.

    401, 404 and 400 are client-side problems reported as invalid requests;
    anything else, including transport failures and non-JSON bodies, is an
    internal error.
    """
    message = upstream_message(exc)
    status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
    logger.warning(f"MSP API request failed (status={status}): {message}")

    if status == 401:
        return invalid_request("Authentication failed. Check your API key.")
    if status == 404:
        return invalid_request("Resource not found.")
    if status == 400:
        return invalid_request(f"Bad request: {message}")
    return protocol_error(INTERNAL_ERROR, f"API request failed: {message}")
