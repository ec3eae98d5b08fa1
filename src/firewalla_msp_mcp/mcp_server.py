"""MCP server that exposes the Firewalla MSP API as tools."""

import asyncio
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    CallToolRequest,
    CallToolResult,
    GetPromptResult,
    Prompt,
    ServerResult,
    TextContent,
    Tool,
)

from .client import MspClient
from .config import MspConfig, load_config
from .prompts import PROMPTS, get_format_guide
from .tools import TOOLS, ToolDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "firewalla-msp-mcp"


def create_server(client: MspClient) -> Server:
    """Create the MCP server around an already configured client."""
    server = Server(SERVER_NAME)
    dispatcher = ToolDispatcher(client)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS

    async def call_tool(request: CallToolRequest) -> ServerResult:
        # McpError propagates so the session replies with its error code
        text = await dispatcher.dispatch(request.params.name, request.params.arguments or {})
        return ServerResult(CallToolResult(content=[TextContent(type="text", text=text)], isError=False))

    server.request_handlers[CallToolRequest] = call_tool

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return PROMPTS

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> GetPromptResult:
        return get_format_guide(name)

    return server


async def run_server(config: MspConfig):
    """Run the MCP server over stdio until the client disconnects."""
    async with MspClient.from_config(config) as client:
        server = create_server(client)
        logger.info(f"Firewalla MSP MCP server running against {config.base_url}")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())


def main():
    """Entry point for the MCP server without the CLI wrapper."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_server(load_config()))


if __name__ == "__main__":
    main()
