"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import rmcli

    assert rmcli.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from rmcli.cli import main

    assert callable(main)


def test_package_imports() -> None:
    from rmcli.mcp import (
        JsonRpcRequest,
        JsonRpcResponse,
        JsonSerializer,
        McpServer,
        StdioServer,
        ToolRegistry,
    )
    from rmcli.redmine import Issue, IssueFilter, RedmineClient, RedmineService

    assert McpServer is not None
    assert StdioServer is not None
    assert ToolRegistry is not None
    assert JsonRpcRequest is not None
    assert JsonRpcResponse is not None
    assert JsonSerializer is not None
    assert RedmineClient is not None
    assert RedmineService is not None
    assert Issue is not None
    assert IssueFilter is not None


def test_lazy_import_from_rmcli() -> None:
    import rmcli

    assert rmcli.McpServer is not None
    assert rmcli.RedmineClient is not None
    assert rmcli.ConfigLoader is not None
