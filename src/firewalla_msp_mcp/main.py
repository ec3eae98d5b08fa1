"""Main entry point for firewalla-msp-mcp."""

import asyncio
import json
import logging
import sys
import xml.etree.ElementTree as ET
from typing import Any

import click
from dotenv import load_dotenv
from mcp.shared.exceptions import McpError
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from .client import MspClient
from .config import ConfigError, MspConfig, load_config
from .mcp_server import run_server
from .tools import TOOL_SPECS, ToolDispatcher

# stdout belongs to the MCP stdio transport
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _config_from(ctx: click.Context) -> MspConfig:
    try:
        return load_config(**ctx.obj)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def _artifact_markdown(envelope: str) -> str | None:
    """The Markdown artifact of an envelope, if it has one."""
    if not envelope.lstrip().startswith("<firewalla_response>"):
        return None
    try:
        root = ET.fromstring(envelope)
    except ET.ParseError:
        logger.debug("Tool output is not well-formed XML")
        return None
    artifact = root.find("presentation/artifact_content")
    if artifact is None or artifact.text is None:
        return None
    return artifact.text.strip()


async def _call_tool(config: MspConfig, name: str, arguments: dict[str, Any]) -> str:
    async with MspClient.from_config(config) as client:
        return await ToolDispatcher(client).dispatch(name, arguments)


@click.group(invoke_without_command=True)
@click.option("--domain", help="MSP domain, e.g. mycompany.firewalla.net (default: $FIREWALLA_MSP_DOMAIN)")
@click.option("--api-key", help="MSP API token (default: $FIREWALLA_MSP_API_KEY)")
@click.option("--timeout", type=float, help="HTTP timeout in seconds (default: $FIREWALLA_MSP_TIMEOUT or 30)")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def main(
    ctx: click.Context,
    domain: str | None,
    api_key: str | None,
    timeout: float | None,
    verbose: bool,
):
    """Firewalla MSP MCP server - expose the MSP API to MCP clients over stdio.

    Example:
        firewalla-msp-mcp serve
        firewalla-msp-mcp tools
        firewalla-msp-mcp call list_alarms --args '{"query": "status:active"}' --markdown
    """
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.obj = {"domain": domain, "api_key": api_key, "timeout": timeout}

    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@main.command()
@click.pass_context
def serve(ctx: click.Context):
    """Run the MCP server over stdio."""
    config = _config_from(ctx)
    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/yellow]")


@main.command()
def tools():
    """List the available tools."""
    table = Table(title="Firewalla MSP tools")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Required")
    table.add_column("Description")
    for spec in TOOL_SPECS.values():
        table.add_row(spec.name, ", ".join(spec.required) or "-", spec.description.splitlines()[0])
    console.print(table)


@main.command()
@click.argument("name")
@click.option("--args", "raw_args", default="{}", help="Tool arguments as a JSON object")
@click.option("--markdown", is_flag=True, help="Render the Markdown artifact instead of the XML envelope")
@click.pass_context
def call(ctx: click.Context, name: str, raw_args: str, markdown: bool):
    """Call one tool against the live MSP API."""
    try:
        arguments = json.loads(raw_args)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid --args JSON:[/red] {e}")
        sys.exit(1)

    config = _config_from(ctx)
    try:
        output = asyncio.run(_call_tool(config, name, arguments))
    except McpError as e:
        console.print(f"[red]Error:[/red] {e.error.message}")
        sys.exit(1)

    content = _artifact_markdown(output) if markdown else None
    if content is not None:
        console.print(Markdown(content))
    else:
        click.echo(output)


if __name__ == "__main__":
    main()
