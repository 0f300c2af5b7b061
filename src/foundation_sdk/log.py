"""Process-wide logger facade used by the HTTP core."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

_null_logger = logging.getLogger("foundation_sdk")
_null_logger.addHandler(logging.NullHandler())


class _Context:
    """Renders lazily so formatting errors go through ``Handler.handleError``."""

    __slots__ = ("payload",)

    def __init__(self, payload: Mapping[str, Any]) -> None:
        self.payload = payload

    def __str__(self) -> str:
        return json.dumps(self.payload, default=repr, ensure_ascii=False)


class Log:
    """Static facade around one ``logging.Logger``.

    Until :meth:`set_logger` is called every record goes to a logger that only
    carries a ``NullHandler``.
    """

    _logger: logging.Logger | None = None

    @classmethod
    def set_logger(cls, logger: logging.Logger) -> None:
        cls._logger = logger

    @classmethod
    def has_logger(cls) -> bool:
        return cls._logger is not None

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return cls._logger if cls._logger is not None else _null_logger

    @classmethod
    def reset(cls) -> None:
        cls._logger = None

    @classmethod
    def log(cls, level: int, message: str, context: Mapping[str, Any] | None = None) -> None:
        logger = cls.get_logger()
        if not logger.isEnabledFor(level):
            return
        payload = dict(context or {})
        logger.log(level, "%s %s", message, _Context(payload), extra={"context": payload})

    @classmethod
    def debug(cls, message: str, context: Mapping[str, Any] | None = None) -> None:
        cls.log(logging.DEBUG, message, context)

    @classmethod
    def info(cls, message: str, context: Mapping[str, Any] | None = None) -> None:
        cls.log(logging.INFO, message, context)

    @classmethod
    def warning(cls, message: str, context: Mapping[str, Any] | None = None) -> None:
        cls.log(logging.WARNING, message, context)

    @classmethod
    def error(cls, message: str, context: Mapping[str, Any] | None = None) -> None:
        cls.log(logging.ERROR, message, context)
