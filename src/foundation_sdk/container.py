"""Dependency container wiring config, cache, logging and the HTTP executor."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from typing import Any, Callable, ClassVar, Mapping, Protocol, Sequence

import diskcache
from pydantic import ValidationError

from .client import Http
from .config import Config, LogSettings
from .exceptions import ConfigurationError
from .log import Log

CACHE_DIRECTORY = "foundation-sdk-cache"


class ServiceProvider(Protocol):
    def register(self, container: "Foundation") -> None:
        ...


class Container:
    """Named services; callables are factories resolved once on first access."""

    def __init__(self) -> None:
        self._factories: dict[str, Callable[["Container"], Any]] = {}
        self._instances: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self._instances.pop(name, None)
        self._factories.pop(name, None)
        if callable(value) and not isinstance(value, type):
            self._factories[name] = value
        else:
            self._instances[name] = value

    def get(self, name: str) -> Any:
        if name in self._instances:
            return self._instances[name]
        factory = self._factories.get(name)
        if factory is None:
            raise ConfigurationError(f"Service is not registered: {name}")
        instance = factory(self)
        self._instances[name] = instance
        return instance

    def has(self, name: str) -> bool:
        return name in self._instances or name in self._factories

    def register(self, provider: ServiceProvider) -> None:
        provider.register(self)  # type: ignore[arg-type]

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)


class Foundation(Container):
    """Base container for API-client applications.

    Subclasses list their ``providers``; each is instantiated and asked to
    register its services after the config is in place.
    """

    providers: ClassVar[Sequence[type]] = ()

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.set("config", config if isinstance(config, Config) else Config(config))

        self._register_providers()
        self._register_base()
        self._initialize_logger()

    @property
    def config(self) -> Config:
        return self.get("config")

    @property
    def cache(self) -> diskcache.Cache:
        return self.get("cache")

    @property
    def http(self) -> Http:
        return self.get("http")

    @property
    def logger(self) -> logging.Logger:
        return Log.get_logger()

    def _register_providers(self) -> None:
        for provider in self.providers:
            self.register(provider())

    def _register_base(self) -> None:
        cache = self.config.get("cache")
        if isinstance(cache, diskcache.Cache):
            self.set("cache", cache)
        elif not self.has("cache"):
            self.set("cache", lambda _: diskcache.Cache(os.path.join(tempfile.gettempdir(), CACHE_DIRECTORY)))

        if not self.has("http"):
            self.set("http", lambda _: Http())

    def _initialize_logger(self) -> None:
        if Log.has_logger():
            return

        try:
            settings = LogSettings.from_config(self.config)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid log configuration: {exc}", cause=exc) from exc

        debug = bool(self.config.get("debug", False))
        logger = logging.getLogger(settings.name)
        # log.level filters the sinks built here; a configured handler keeps its own level.
        logger.setLevel(logging.DEBUG if debug else settings.level)

        # Avoid duplicate handlers
        if not logger.handlers:
            logger.addHandler(self._build_log_handler(settings, debug))

        Log.set_logger(logger)

    @staticmethod
    def _build_log_handler(settings: LogSettings, debug: bool) -> logging.Handler:
        if not debug:
            return logging.NullHandler()
        if settings.handler is not None:
            return settings.handler

        handler: logging.Handler
        if settings.file:
            handler = logging.FileHandler(settings.file, encoding="utf-8")
            if settings.permission is not None:
                os.chmod(settings.file, settings.permission)
        else:
            handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(settings.level)
        return handler
