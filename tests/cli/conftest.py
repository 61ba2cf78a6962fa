"""Fixtures for CLI commands that talk to Redmine."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from rmcli.cli import main

REDMINE_CONFIG = """\
current_profile: default
profiles:
  default:
    url: https://redmine.example.com
    api_key: abc123
preferences:
  default_limit: 40
"""


@pytest.fixture()
def redmine() -> AsyncMock:
    """Stands in for a connected RedmineClient."""
    client = AsyncMock()
    client.__aenter__.return_value = client
    return client


@pytest.fixture()
def client_factory(redmine: AsyncMock) -> Iterator[MagicMock]:
    factory = MagicMock(return_value=redmine)
    with patch("rmcli.redmine.client.RedmineClient", factory):
        yield factory


@pytest.fixture()
def run_cli(tmp_path: Path, client_factory: MagicMock) -> Callable[..., Result]:
    config = tmp_path / "config.yml"
    config.write_text(REDMINE_CONFIG, encoding="utf-8")

    def _run(*args: str) -> Result:
        return CliRunner().invoke(
            main,
            ["--config", str(config), *args],
            env={"REDMINE_URL": None, "REDMINE_API_KEY": None},
        )

    return _run
