"""Argument Binder — turns an untyped ``arguments`` blob into a typed model.

Binding never raises for caller mistakes: it returns a :class:`BindResult`
holding either the bound arguments or an ``InvalidParams`` error. Anything
that escapes is an unexpected failure and ends up as ``InternalError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from rmcli.mcp.errors import INVALID_PARAMS, make_error
from rmcli.mcp.models import JsonRpcError


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        msg = "expected an integer, got a boolean"
        raise ValueError(msg)
    return value


# JSON true/false would otherwise pass lax validation as 1/0.
WireInt = Annotated[int, BeforeValidator(_reject_bool)]


class ToolArguments(BaseModel):
    """Base for per-tool argument models.

    Fields are declared under their Python names with the wire name as
    alias. Only the wire names are accepted; undeclared keys are rejected.
    Numbers are accepted where a string is declared and numeric strings
    where an integer is declared. Integer fields use :data:`WireInt` so
    booleans are rejected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, coerce_numbers_to_str=True)

    @classmethod
    def wire_properties(cls) -> dict[str, bool]:
        """Map each wire name to whether it is required."""
        return {
            (field.alias or name): field.is_required()
            for name, field in cls.model_fields.items()
        }


@dataclass(frozen=True)
class BindResult:
    """Outcome of binding: exactly one of ``arguments`` / ``error`` is set."""

    arguments: ToolArguments | None = None
    error: JsonRpcError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def bind_arguments(tool_name: str, model: type[ToolArguments], raw: Any) -> BindResult:
    """Validate and coerce *raw* into *model*.

    ``None`` is treated as an empty argument object.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return BindResult(
            error=make_error(
                INVALID_PARAMS,
                "Tool arguments must be an object",
                {"tool": tool_name, "received": type(raw).__name__},
            )
        )

    try:
        return BindResult(arguments=model.model_validate(raw))
    except ValidationError as exc:
        return BindResult(error=_describe(tool_name, exc))


def _describe(tool_name: str, exc: ValidationError) -> JsonRpcError:
    missing: list[str] = []
    unknown: list[str] = []
    invalid: list[dict[str, str]] = []

    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"])
        if err["type"] == "missing":
            missing.append(where)
        elif err["type"] == "extra_forbidden":
            unknown.append(where)
        else:
            invalid.append({"argument": where, "message": err["msg"]})

    if missing:
        message = f"Missing required parameter(s): {', '.join(missing)}"
    elif unknown:
        message = f"Unknown parameter(s): {', '.join(unknown)}"
    else:
        message = f"Invalid parameter(s): {', '.join(i['argument'] for i in invalid)}"

    data: dict[str, Any] = {"tool": tool_name}
    if missing:
        data["missing"] = missing
    if unknown:
        data["unknown"] = unknown
    if invalid:
        data["invalid"] = invalid
    return make_error(INVALID_PARAMS, message, data)
