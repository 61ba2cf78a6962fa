"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from rmcli.cli_commands.issue import issue
    from rmcli.cli_commands.lookups import priority, project, status, user
    from rmcli.cli_commands.mcp import mcp

    cli.add_command(issue)
    cli.add_command(project)
    cli.add_command(user)
    cli.add_command(status)
    cli.add_command(priority)
    cli.add_command(mcp)
