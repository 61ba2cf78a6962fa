"""``rmcli project|user|status|priority`` — list reference data."""

from __future__ import annotations

import click

from rmcli.cli_commands._client import profile_option, run_with_client
from rmcli.cli_commands._output import (
    print_priorities_table,
    print_projects_table,
    print_statuses_table,
    print_users_table,
)

json_option = click.option("--json", "as_json", is_flag=True, help="Output in JSON format.")

DEFAULT_USER_LIMIT = 30


@click.group()
def project() -> None:
    """Manage projects."""


@project.command("list")
@json_option
@profile_option
@click.pass_context
def list_projects(ctx: click.Context, as_json: bool, profile: str | None) -> None:
    """List projects."""
    projects = run_with_client(ctx, profile, lambda client: client.get_projects())
    print_projects_table(projects, as_json=as_json)


@click.group()
def user() -> None:
    """Manage users."""


@user.command("list")
@click.option(
    "--limit",
    "-L",
    type=click.IntRange(min=1),
    default=DEFAULT_USER_LIMIT,
    show_default=True,
    help="Maximum number of users.",
)
@click.option("--all", "-a", "show_all", is_flag=True, help="Include e-mail addresses and timestamps.")
@json_option
@profile_option
@click.pass_context
def list_users(ctx: click.Context, limit: int, show_all: bool, as_json: bool, profile: str | None) -> None:
    """List users (requires administrator rights)."""
    users = run_with_client(ctx, profile, lambda client: client.get_users(limit))
    print_users_table(users, show_all=show_all, as_json=as_json)


@click.group()
def status() -> None:
    """Manage issue statuses."""


@status.command("list")
@json_option
@profile_option
@click.pass_context
def list_statuses(ctx: click.Context, as_json: bool, profile: str | None) -> None:
    """List issue statuses."""
    statuses = run_with_client(ctx, profile, lambda client: client.get_statuses())
    print_statuses_table(statuses, as_json=as_json)


@click.group()
def priority() -> None:
    """Manage issue priorities."""


@priority.command("list")
@json_option
@profile_option
@click.pass_context
def list_priorities(ctx: click.Context, as_json: bool, profile: str | None) -> None:
    """List issue priorities."""
    priorities = run_with_client(ctx, profile, lambda client: client.get_priorities())
    print_priorities_table(priorities, as_json=as_json)
