"""Composable request middlewares wrapped around the transport call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from .exceptions import ConfigurationError

# Name of the layer installed from the ``handler`` entry of the baseline options.
USER_DEFINED_HANDLER = "user_defined"

Handler = Callable[[str, str, Mapping[str, Any]], Any]


@runtime_checkable
class Middleware(Protocol):
    def wrap(self, handler: Handler) -> Handler:
        """Return a handler with the same signature that delegates to ``handler``."""


@dataclass(frozen=True)
class FunctionMiddleware:
    """Adapter for plain ``fn(handler) -> handler`` callables."""

    func: Callable[[Handler], Handler]

    def wrap(self, handler: Handler) -> Handler:
        return self.func(handler)


def as_middleware(obj: object) -> Middleware | None:
    if obj is None:
        return None
    if callable(getattr(obj, "wrap", None)):
        return obj  # type: ignore[return-value]
    if callable(obj):
        return FunctionMiddleware(obj)  # type: ignore[arg-type]
    return None


@dataclass(frozen=True)
class _Entry:
    middleware: Middleware
    name: str | None = None


class MiddlewareChain:
    """Ordered, additive list of middlewares.

    The first registered middleware is the outermost layer: it sees the
    outgoing request first and the response last.
    """

    def __init__(self) -> None:
        self._entries: tuple[_Entry, ...] = ()

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, middleware: Any, name: str | None = None) -> "MiddlewareChain":
        resolved = as_middleware(middleware)
        if resolved is None:
            raise ConfigurationError(f"Not a middleware: {middleware!r}")
        entry = _Entry(resolved, name)
        entries = list(self._entries)
        if name is not None:
            for index, existing in enumerate(entries):
                if existing.name == name:
                    entries[index] = entry
                    self._entries = tuple(entries)
                    return self
        entries.append(entry)
        self._entries = tuple(entries)
        return self

    def list(self) -> tuple[Middleware, ...]:
        return tuple(entry.middleware for entry in self._entries)

    def names(self) -> tuple[str | None, ...]:
        return tuple(entry.name for entry in self._entries)

    def build(self, base_handler: Handler, baseline_handler: object = None) -> Handler:
        entries = self._entries
        handler = base_handler
        user_defined = as_middleware(baseline_handler)
        if user_defined is not None:
            handler = user_defined.wrap(handler)
        for entry in reversed(entries):
            handler = entry.middleware.wrap(handler)
        return handler
