"""rmcli — Redmine command-line client with an MCP server facade."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from rmcli.config import ConfigLoader as ConfigLoader
    from rmcli.mcp.server import McpServer as McpServer
    from rmcli.redmine.client import RedmineClient as RedmineClient

_LAZY_EXPORTS = {
    "ConfigLoader": "rmcli.config",
    "McpServer": "rmcli.mcp.server",
    "RedmineClient": "rmcli.redmine.client",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'rmcli' has no attribute {name!r}")
