"""rmcli CLI entrypoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from rmcli import __version__

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="rmcli")
@click.option("--debug", is_flag=True, help="Log debug output to stderr.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="RMCLI_CONFIG",
    help="Path to the config file (default: ~/.config/rmcli/config.yml).",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, config_path: Path | None) -> None:
    """rmcli — Redmine command-line client."""
    # stdout carries MCP frames, so logs always go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path


# Register subcommands
from rmcli.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
