"""Request options shared by every call and the process-wide baseline."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

QUERY = "query"
FORM = "form"
JSON = "json"
MULTIPART = "multipart"
HANDLER = "handler"
TRANSPORT = "transport"

# Forces IPv4 on the default httpx transport.
BASELINE_OPTIONS: Mapping[str, Any] = MappingProxyType({TRANSPORT: {"local_address": "0.0.0.0"}})


def _snapshot(options: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(
        {k: MappingProxyType(dict(v)) if isinstance(v, Mapping) else v for k, v in options.items()}
    )


def merge_options(defaults: Mapping[str, Any] | None, options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge call-site ``options`` onto ``defaults`` without touching either.

    Call-site values win. When both sides carry a mapping under the same key
    the two mappings are merged one level deep instead of being replaced.
    """
    merged: dict[str, Any] = {}
    for key, value in (defaults or {}).items():
        merged[key] = dict(value) if isinstance(value, Mapping) else value
    for key, value in (options or {}).items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            nested = dict(current)
            nested.update(value)
            merged[key] = nested
        else:
            merged[key] = value
    return merged


class DefaultOptions:
    """Baseline request options applied to every call of an executor.

    Configure once, then read from any number of requests. ``set_defaults``
    swaps in a fresh snapshot so a request that already took one never
    observes a partial update. Nested mappings are read-only as well.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self._options = _snapshot(BASELINE_OPTIONS if options is None else options)

    def set_defaults(self, options: Mapping[str, Any] | None = None) -> None:
        self._options = _snapshot(options or {})

    def get_defaults(self) -> Mapping[str, Any]:
        return self._options

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"DefaultOptions({dict(self._options)!r})"


default_options = DefaultOptions()


def set_default_options(options: Mapping[str, Any] | None = None) -> None:
    default_options.set_defaults(options)


def get_default_options() -> Mapping[str, Any]:
    return default_options.get_defaults()
