"""McpServer — JSON-RPC dispatcher exposing Redmine as MCP tools and resources.

One decoded :class:`JsonRpcRequest` in, one :class:`JsonRpcResponse` out.
The routing table, the tool registry and the resource catalogue are built
at construction and never change, so concurrent ``handle`` calls share no
mutable state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from rmcli import __version__
from rmcli.mcp.binder import bind_arguments
from rmcli.mcp.errors import InvalidParamsError, MethodNotFoundError, map_exception
from rmcli.mcp.models import (
    InitializeResult,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ResourceContent,
    ResourceDef,
    ResourceReadResult,
    ServerInfo,
    ToolCallResult,
)
from rmcli.mcp.resources import RESOURCES, route
from rmcli.mcp.serialization import JsonSerializer
from rmcli.mcp.tools import ToolRegistry, build_tool_registry
from rmcli.utils.telemetry import (
    ATTR_MCP_ERROR_CODE,
    ATTR_MCP_METHOD,
    ATTR_MCP_REQUEST_ID,
    ATTR_MCP_RESOURCE_URI,
    ATTR_MCP_TOOL,
    get_tracer,
)

if TYPE_CHECKING:
    from rmcli.redmine.service import RedmineService

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "redmine"

T = TypeVar("T")

# A method handler returns the ``result`` payload, or a JsonRpcError for an
# anticipated failure. Anything it raises goes through ``map_exception``.
MethodHandler = Callable[[JsonRpcRequest, "asyncio.Event | None"], Awaitable[Any]]


class McpServer:
    """Routes MCP requests to the Redmine domain service.

    Usage::

        server = McpServer(RedmineClient(profile))
        response = await server.handle(JsonRpcRequest(id=1, method="tools/list"))
    """

    def __init__(
        self,
        service: RedmineService,
        *,
        tools: ToolRegistry | None = None,
        resources: Sequence[ResourceDef] | None = None,
        serializer: JsonSerializer | None = None,
        server_info: ServerInfo | None = None,
    ) -> None:
        self._service = service
        self._tools = tools if tools is not None else build_tool_registry()
        self._resources = tuple(resources if resources is not None else RESOURCES)
        self._serializer = serializer if serializer is not None else JsonSerializer()
        self._server_info = server_info or ServerInfo(name=SERVER_NAME, version=__version__)
        self._methods: Mapping[str, MethodHandler] = MappingProxyType({
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
        })

    @property
    def methods(self) -> Mapping[str, MethodHandler]:
        """The read-only method routing table."""
        return self._methods

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def resources(self) -> tuple[ResourceDef, ...]:
        return self._resources

    @property
    def serializer(self) -> JsonSerializer:
        return self._serializer

    async def handle(
        self,
        request: JsonRpcRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> JsonRpcResponse:
        """Handle one request and return its response.

        Failures never propagate: each one becomes an error response. The
        only exception that escapes is :class:`asyncio.CancelledError`,
        raised when *cancel* fires (or the calling task is cancelled) while
        the domain service is still working.
        """
        logger.debug("Handling MCP request: %s (id=%r)", request.method, request.id)

        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_MCP_METHOD, request.method)
            if request.id is not None:
                span.set_attribute(ATTR_MCP_REQUEST_ID, str(request.id))

            response = await self._dispatch(request, cancel)

            if response.error is not None:
                span.set_attribute(ATTR_MCP_ERROR_CODE, response.error.code)
            return response

    async def _dispatch(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> JsonRpcResponse:
        handler = self._methods.get(request.method)
        if handler is None:
            return JsonRpcResponse.failure(request.id, MethodNotFoundError(request.method).to_error())

        try:
            outcome = await handler(request, cancel)
        except Exception as exc:
            context = _error_context(request)
            logger.error("Error handling MCP request: %s %s", request.method, context, exc_info=exc)
            return JsonRpcResponse.failure(request.id, map_exception(exc, context))

        if isinstance(outcome, JsonRpcError):
            return JsonRpcResponse.failure(request.id, outcome)
        return JsonRpcResponse.success(request.id, outcome)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _initialize(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        result = InitializeResult(
            protocol_version=PROTOCOL_VERSION,
            server_info=self._server_info,
        )
        return result.model_dump(by_alias=True)

    async def _ping(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        return {}

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _tools_list(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        return {"tools": [tool.to_dict() for tool in self._tools.definitions()]}

    async def _tools_call(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        params = request.params if isinstance(request.params, dict) else {}
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return InvalidParamsError("Missing 'name' parameter").to_error()

        tool = self._tools.get(name)
        if tool is None:
            return MethodNotFoundError(name).to_error()

        bound = bind_arguments(name, tool.arguments, params.get("arguments"))
        if bound.error is not None:
            return bound.error

        with _tracer.start_as_current_span("mcp.tool") as span:
            span.set_attribute(ATTR_MCP_TOOL, name)
            value = await _race(tool.handler(self._service, bound.arguments), cancel)

        return ToolCallResult.from_text(self._serializer.dumps(value)).model_dump()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def _resources_list(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        return {"resources": [resource.to_dict() for resource in self._resources]}

    async def _resources_read(self, request: JsonRpcRequest, cancel: asyncio.Event | None) -> Any:
        params = request.params if isinstance(request.params, dict) else {}
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            return InvalidParamsError("Missing 'uri' parameter").to_error()

        try:
            matched = route(uri)
        except InvalidParamsError as exc:
            return exc.to_error()

        with _tracer.start_as_current_span("mcp.resource") as span:
            span.set_attribute(ATTR_MCP_RESOURCE_URI, uri)
            value = await _race(matched.fetch(self._service), cancel)

        content = ResourceContent(uri=uri, text=self._serializer.dumps(value))
        return ResourceReadResult(contents=[content]).model_dump(by_alias=True)


async def _race(call: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await *call*, abandoning it as soon as *cancel* is set."""
    if cancel is None:
        return await call

    task = asyncio.ensure_future(call)
    if cancel.is_set():
        task.cancel()
        raise asyncio.CancelledError("request cancelled")

    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()
    raise asyncio.CancelledError("request cancelled")


def _error_context(request: JsonRpcRequest) -> dict[str, Any]:
    context: dict[str, Any] = {"method": request.method}
    params = request.params if isinstance(request.params, dict) else {}
    if request.method == "tools/call" and isinstance(params.get("name"), str):
        context["tool"] = params["name"]
    elif request.method == "resources/read" and isinstance(params.get("uri"), str):
        context["uri"] = params["uri"]
    return context
