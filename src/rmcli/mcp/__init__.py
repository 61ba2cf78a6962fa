"""MCP protocol — JSON-RPC server exposing Redmine as tools and resources."""

from rmcli.mcp.errors import (
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
    ParseError,
    map_exception,
)
from rmcli.mcp.models import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ResourceDef,
    ToolDef,
)
from rmcli.mcp.serialization import JsonSerializer
from rmcli.mcp.server import McpServer
from rmcli.mcp.tools import ToolRegistry, build_tool_registry
from rmcli.mcp.transport import StdioServer, decode_request, encode_response, serve_stdio

__all__ = [
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonSerializer",
    "McpError",
    "McpServer",
    "MethodNotFoundError",
    "ParseError",
    "ResourceDef",
    "StdioServer",
    "ToolDef",
    "ToolRegistry",
    "build_tool_registry",
    "decode_request",
    "encode_response",
    "map_exception",
    "serve_stdio",
]
