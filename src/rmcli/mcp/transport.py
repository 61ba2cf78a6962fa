"""Stdio transport — newline-delimited JSON-RPC framing for :class:`McpServer`.

Each request line is handled in its own task, so pipelined requests run
concurrently and responses may be written out of order. A
``notifications/cancelled`` message cancels the matching in-flight task.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

from pydantic import ValidationError

from rmcli.mcp.errors import INVALID_REQUEST, PARSE_ERROR, make_error
from rmcli.mcp.models import JSONRPC_VERSION, JsonRpcRequest, JsonRpcResponse, RequestId

if TYPE_CHECKING:
    from rmcli.mcp.server import McpServer

logger = logging.getLogger(__name__)

CANCELLED_NOTIFICATION = "notifications/cancelled"
_READ_LIMIT = 16 * 1024 * 1024


class JsonRpcCodecError(ValueError):
    """A line could not be turned into a request (ParseError / InvalidRequest)."""

    def __init__(self, code: int, message: str, *, req_id: RequestId = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.req_id = req_id
        self.data = data

    def to_response(self) -> JsonRpcResponse:
        return JsonRpcResponse.failure(self.req_id, make_error(self.code, self.message, self.data))


def load_message(line: str | bytes) -> Any:
    """Parse one line of JSON, raising a ParseError codec error on failure."""
    try:
        return json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise JsonRpcCodecError(PARSE_ERROR, "Parse error", data=str(exc)) from exc


def parse_request(raw: Any) -> JsonRpcRequest:
    """Validate an already-parsed JSON value as a JSON-RPC request."""
    if not isinstance(raw, dict):
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request", data="request must be a JSON object")

    req_id = raw.get("id")
    if not _valid_id(req_id):
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request", data="id must be a string, integer or null")

    if raw.get("jsonrpc") != JSONRPC_VERSION:
        raise JsonRpcCodecError(
            INVALID_REQUEST, "Invalid Request", req_id=req_id, data="jsonrpc must be '2.0'"
        )

    method = raw.get("method")
    if not isinstance(method, str) or not method:
        raise JsonRpcCodecError(
            INVALID_REQUEST, "Invalid Request", req_id=req_id, data="method must be a non-empty string"
        )

    try:
        return JsonRpcRequest(method=method, id=req_id, params=raw.get("params"))
    except ValidationError as exc:
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request", req_id=req_id, data=str(exc)) from exc


def decode_request(line: str | bytes) -> JsonRpcRequest:
    """Decode one JSON-RPC request from a line of JSON."""
    return parse_request(load_message(line))


def encode_response(response: JsonRpcResponse) -> str:
    return json.dumps(response.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _valid_id(value: Any) -> bool:
    if value is None or isinstance(value, str):
        return True
    return isinstance(value, int) and not isinstance(value, bool)


class StdioServer:
    """Serves an :class:`McpServer` over a line-oriented reader/writer pair."""

    def __init__(self, server: McpServer, reader: asyncio.StreamReader, writer: TextIO) -> None:
        self._server = server
        self._reader = reader
        self._writer = writer
        self._write_lock = asyncio.Lock()
        self._inflight: dict[RequestId, asyncio.Task[None]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def serve(self) -> None:
        """Read until EOF, then wait for in-flight requests to finish."""
        while True:
            line = await self._reader.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            await self._process_line(text)

        pending = list(self._tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _process_line(self, text: str) -> None:
        logger.debug("Received: %s", text)
        try:
            raw = load_message(text)
        except JsonRpcCodecError as exc:
            await self._write(exc.to_response())
            return

        notification = isinstance(raw, dict) and "id" not in raw
        try:
            request = parse_request(raw)
        except JsonRpcCodecError as exc:
            if not notification:
                await self._write(exc.to_response())
            return

        if request.method == CANCELLED_NOTIFICATION:
            self._cancel(request.params)
            return
        if notification and request.method.startswith("notifications/"):
            logger.debug("Ignoring notification: %s", request.method)
            return

        task = asyncio.create_task(self._run(request, respond=not notification))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        if not notification:
            self._inflight[request.id] = task
            task.add_done_callback(functools.partial(self._forget, request.id))

    async def _run(self, request: JsonRpcRequest, *, respond: bool) -> None:
        try:
            response = await self._server.handle(request)
        except asyncio.CancelledError:
            logger.debug("Request cancelled: %s (id=%r)", request.method, request.id)
            raise
        if respond:
            await self._write(response)

    def _cancel(self, params: Any) -> None:
        if not isinstance(params, dict):
            return
        task = self._inflight.get(params.get("requestId"))
        if task is not None and not task.done():
            logger.debug("Cancelling request id=%r (%s)", params.get("requestId"), params.get("reason", ""))
            task.cancel()

    def _forget(self, key: RequestId, task: asyncio.Task[None]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _write(self, response: JsonRpcResponse) -> None:
        payload = encode_response(response)
        async with self._write_lock:
            self._writer.write(payload + "\n")
            self._writer.flush()
        logger.debug("Sent: %s", payload)


async def serve_stdio(server: McpServer) -> None:
    """Serve *server* on this process's stdin/stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=_READ_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    await StdioServer(server, reader, sys.stdout).serve()
