"""JSON-RPC error taxonomy and the single exception-to-error mapping point."""

from __future__ import annotations

from typing import Any

from rmcli.mcp.models import JsonRpcError

# JSON-RPC 2.0 standard error codes.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

ERROR_MESSAGES: dict[int, str] = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
}


class McpError(Exception):
    """Base error for anticipated protocol failures.

    Carries its own JSON-RPC code so the mapper can pass it through
    unchanged.
    """

    code: int = INTERNAL_ERROR

    def __init__(self, message: str | None = None, *, data: Any = None) -> None:
        self.message = message or ERROR_MESSAGES[self.code]
        self.data = data
        super().__init__(self.message)

    def to_error(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=self.message, data=self.data)


class ParseError(McpError):
    code = PARSE_ERROR


class InvalidRequestError(McpError):
    code = INVALID_REQUEST


class MethodNotFoundError(McpError):
    """Unknown top-level method or unknown tool name."""

    code = METHOD_NOT_FOUND

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(ERROR_MESSAGES[METHOD_NOT_FOUND], data=name)


class InvalidParamsError(McpError):
    """Missing or malformed parameters at the protocol boundary."""

    code = INVALID_PARAMS


def make_error(code: int, message: str | None = None, data: Any = None) -> JsonRpcError:
    """Build a :class:`JsonRpcError`, defaulting the message from the code table."""
    return JsonRpcError(code=code, message=message or ERROR_MESSAGES.get(code, "Server error"), data=data)


def map_exception(exc: Exception, context: dict[str, Any] | None = None) -> JsonRpcError:
    """Map any exception raised while handling a request to a JSON-RPC error.

    ``McpError`` instances keep their code, message and data. Everything else
    becomes ``InternalError`` with the exception's own message and *context*
    (plus the exception type) as ``data``.
    """
    if isinstance(exc, McpError):
        return exc.to_error()

    data: dict[str, Any] = dict(context or {})
    data["type"] = type(exc).__name__
    return JsonRpcError(code=INTERNAL_ERROR, message=str(exc) or type(exc).__name__, data=data)
