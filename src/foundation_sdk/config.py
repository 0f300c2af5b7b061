"""Container configuration: nested-key access and typed sections."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

_MISSING = object()


class Config(Mapping[str, Any]):
    """Read-only view over a nested mapping with dotted-key lookup.

    >>> Config({"log": {"level": "DEBUG"}}).get("log.level", "WARNING")
    'DEBUG'
    """

    def __init__(self, items: Mapping[str, Any] | None = None) -> None:
        self._items = dict(items or {})

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._items:
            return self._items[key]
        node: Any = self._items
        for segment in key.split("."):
            if not isinstance(node, Mapping):
                return default
            node = node.get(segment, _MISSING)
            if node is _MISSING:
                return default
        return node

    def section(self, key: str) -> Mapping[str, Any]:
        value = self.get(key, None)
        return value if isinstance(value, Mapping) else {}

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Config({self._items!r})"


class LogSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)

    name: str = "foundation"
    level: int = logging.WARNING
    file: str | None = None
    permission: int | None = None
    handler: logging.Handler | None = None

    @field_validator("level", mode="before")
    @classmethod
    def coerce_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            resolved = logging.getLevelName(value.upper())
            if not isinstance(resolved, int):
                raise ValueError(f"Unknown log level: {value}")
            return resolved
        return value

    @field_validator("handler", mode="before")
    @classmethod
    def ignore_foreign_handler(cls, value: Any) -> Any:
        return value if isinstance(value, logging.Handler) else None

    @classmethod
    def from_config(cls, config: Config) -> "LogSettings":
        return cls.model_validate(dict(config.section("log")))
