"""JsonSerializer — process-wide JSON encoding configuration.

Handed to :class:`~rmcli.mcp.server.McpServer` at construction instead of
living in module state, so tests can swap naming and null handling.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel, to_snake
from pydantic_core import to_jsonable_python


class JsonSerializer(BaseModel):
    """Encodes domain results into the text embedded in MCP responses.

    ``naming`` controls mapping keys: ``preserve`` emits them as the models
    and handlers name them (``done_ratio``, ``issueId``), ``snake`` and
    ``camel`` rewrite every identifier-like key. ``drop_nulls`` omits keys
    whose value is ``None`` at any depth.
    """

    model_config = ConfigDict(frozen=True)

    naming: Literal["preserve", "snake", "camel"] = "preserve"
    drop_nulls: bool = True
    indent: int | None = None
    ensure_ascii: bool = False

    def to_jsonable(self, value: Any) -> Any:
        """Convert *value* (models, dataclasses, datetimes, ...) to plain JSON data."""
        plain = to_jsonable_python(value, by_alias=False, exclude_none=self.drop_nulls)
        return self._normalise(plain)

    def dumps(self, value: Any) -> str:
        separators = (",", ":") if self.indent is None else None
        return json.dumps(
            self.to_jsonable(value),
            indent=self.indent,
            separators=separators,
            ensure_ascii=self.ensure_ascii,
        )

    def loads(self, text: str | bytes) -> Any:
        return json.loads(text)

    def _normalise(self, value: Any) -> Any:
        if isinstance(value, dict):
            out: dict[str, Any] = {}
            for key, item in value.items():
                if item is None and self.drop_nulls:
                    continue
                out[self._rename(str(key))] = self._normalise(item)
            return out
        if isinstance(value, list):
            return [self._normalise(item) for item in value]
        return value

    def _rename(self, key: str) -> str:
        if self.naming == "preserve" or not key.isidentifier():
            return key
        if self.naming == "camel":
            return to_camel(key)
        return to_snake(key)
