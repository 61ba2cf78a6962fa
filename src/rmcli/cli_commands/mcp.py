"""``rmcli mcp`` — serve and inspect the MCP facade."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import click

from rmcli.cli_commands._client import load_profile, profile_option
from rmcli.cli_commands._output import err_console, print_resources_table, print_tools_table

if TYPE_CHECKING:
    from rmcli.config import Profile

logger = logging.getLogger(__name__)


@click.group()
def mcp() -> None:
    """Expose Redmine to agents over the Model Context Protocol."""


@mcp.command()
@profile_option
@click.option("--telemetry", is_flag=True, help="Export tracing spans to stderr.")
@click.option(
    "--otlp-endpoint",
    default=None,
    help="Export tracing spans via OTLP/gRPC to this endpoint.",
)
@click.pass_context
def serve(ctx: click.Context, profile: str | None, telemetry: bool, otlp_endpoint: str | None) -> None:
    """Run the MCP server on stdin/stdout."""
    config, active = load_profile(ctx, profile)

    if telemetry or otlp_endpoint:
        from rmcli.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(
                service_name="rmcli-mcp",
                export_to_console=telemetry,
                otlp_endpoint=otlp_endpoint,
            )
        except ImportError as exc:
            err_console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    logger.info("Serving MCP on stdio for %s", active.url)
    try:
        asyncio.run(_serve(active, config.preferences.default_limit))
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        err_console.print(f"[red]Server error:[/red] {exc}")
        sys.exit(1)


async def _serve(profile: Profile, default_limit: int) -> None:
    from rmcli.mcp.server import McpServer
    from rmcli.mcp.transport import serve_stdio
    from rmcli.redmine.client import RedmineClient

    async with RedmineClient(profile, default_limit=default_limit) as client:
        await serve_stdio(McpServer(client))


@mcp.command("tools")
@click.option("--json", "as_json", is_flag=True, help="Print the raw tools/list schema.")
def tools_cmd(as_json: bool) -> None:
    """List the tools the server exposes."""
    from rmcli.mcp.tools import build_tool_registry

    print_tools_table(build_tool_registry().definitions(), as_json=as_json)


@mcp.command("resources")
@click.option("--json", "as_json", is_flag=True, help="Print the raw resources/list payload.")
def resources_cmd(as_json: bool) -> None:
    """List the resource URI templates the server exposes."""
    from rmcli.mcp.resources import RESOURCES

    print_resources_table(list(RESOURCES), as_json=as_json)
