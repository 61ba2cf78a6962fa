"""MCP models — JSON-RPC 2.0 envelopes and tool/resource payloads.

The envelopes are immutable: a request is decoded once by the transport and
a response is built once by the server, neither is mutated afterwards.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator

JSONRPC_VERSION = "2.0"

# Integer ids only; a fractional id is rejected rather than truncated.
RequestId = StrictInt | StrictStr | None

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str = Field(min_length=1)
    id: RequestId = None
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id, "method": self.method}
        if self.params is not None:
            data["params"] = self.params
        return data


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    model_config = ConfigDict(frozen=True)

    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            data["data"] = self.data
        return data


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message.

    Exactly one of ``result`` and ``error`` is set.
    """

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, req_id: RequestId, result: Any) -> JsonRpcResponse:
        return cls(id=req_id, result=result)

    @classmethod
    def failure(cls, req_id: RequestId, error: JsonRpcError) -> JsonRpcResponse:
        return cls(id=req_id, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.to_dict()
        else:
            data["result"] = self.result
        return data


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class SchemaProperty(BaseModel):
    """A single property of a tool's input schema."""

    model_config = ConfigDict(frozen=True)

    type: Literal["string", "integer", "boolean"]
    description: str = ""


class InputSchema(BaseModel):
    """JSON-schema-like description of a tool's arguments."""

    model_config = ConfigDict(frozen=True)

    type: Literal["object"] = "object"
    properties: dict[str, SchemaProperty] = Field(default_factory=dict)
    required: list[str] | None = None

    @model_validator(mode="after")
    def _required_are_declared(self) -> InputSchema:
        for name in self.required or []:
            if name not in self.properties:
                msg = f"required property '{name}' is not declared in properties"
                raise ValueError(msg)
        return self


class ToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = ""
    input_schema: InputSchema = Field(default_factory=InputSchema, alias="inputSchema")

    @property
    def required(self) -> frozenset[str]:
        return frozenset(self.input_schema.required or [])

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ResourceDef(BaseModel):
    """A resource template as returned by ``resources/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str
    name: str
    description: str = ""
    mime_type: str = Field(default="application/json", alias="mimeType")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    """Plain text content block of a ``tools/call`` result."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """Result payload of ``tools/call``."""

    content: list[TextContent] = []

    @classmethod
    def from_text(cls, text: str) -> ToolCallResult:
        return cls(content=[TextContent(text=text)])


class ResourceContent(BaseModel):
    """One entry of a ``resources/read`` result."""

    model_config = ConfigDict(populate_by_name=True)

    uri: str
    mime_type: str = Field(default="application/json", alias="mimeType")
    text: str


class ResourceReadResult(BaseModel):
    """Result payload of ``resources/read``."""

    contents: list[ResourceContent] = []


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    """Result payload of ``initialize``."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: dict[str, dict[str, Any]] = Field(
        default_factory=lambda: {"tools": {}, "resources": {}}
    )
    server_info: ServerInfo = Field(alias="serverInfo")
