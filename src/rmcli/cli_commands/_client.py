"""Shared plumbing for commands that talk to a Redmine server."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import click
from rich.markup import escape

from rmcli.cli_commands._output import err_console
from rmcli.errors import RedmineError

if TYPE_CHECKING:
    from rmcli.config import Config, Profile
    from rmcli.redmine.client import RedmineClient

T = TypeVar("T")

logger = logging.getLogger(__name__)

profile_option = click.option(
    "--profile",
    default=None,
    help="Config profile to use (default: current_profile).",
)


def load_profile(ctx: click.Context, profile: str | None) -> tuple[Config, Profile]:
    """Load the config file and pick the active profile, or exit with status 1."""
    from rmcli.config import ConfigLoader

    obj = ctx.find_object(dict) or {}
    try:
        config = ConfigLoader(obj.get("config_path")).load()
        active = config.active_profile(profile)
    except Exception as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if not obj.get("debug"):
        logging.getLogger("rmcli").setLevel(config.preferences.log_level)
    return config, active


def run_with_client(
    ctx: click.Context,
    profile: str | None,
    operation: Callable[[RedmineClient], Awaitable[T]],
) -> T:
    """Run *operation* against a client for the active profile.

    Redmine failures are printed in red and exit with status 1.
    """
    from rmcli.redmine.client import RedmineClient

    config, active = load_profile(ctx, profile)

    async def _run() -> T:
        async with RedmineClient(active, default_limit=config.preferences.default_limit) as client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    except RedmineError as exc:
        logger.debug("Redmine request failed", exc_info=True)
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)
