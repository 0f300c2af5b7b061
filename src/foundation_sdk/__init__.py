"""Foundation layer for building API-client applications."""

from .client import AsyncHttp, Http
from .config import Config, LogSettings
from .container import Container, Foundation, ServiceProvider
from .exceptions import (
    ConfigurationError,
    FileResolutionError,
    FoundationError,
    HttpError,
    TransportError,
    TransportTimeoutError,
)
from .log import Log
from .middleware import USER_DEFINED_HANDLER, FunctionMiddleware, Middleware, MiddlewareChain
from .multipart import FileList, MultipartPart, SingleFile, build_parts
from .request_options import DefaultOptions, default_options, get_default_options, merge_options, set_default_options
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport

__version__ = "0.1.0"

__all__ = [
    "AsyncHttp",
    "AsyncHttpxTransport",
    "AsyncTransport",
    "Config",
    "ConfigurationError",
    "Container",
    "DefaultOptions",
    "FileList",
    "FileResolutionError",
    "Foundation",
    "FoundationError",
    "FunctionMiddleware",
    "Http",
    "HttpError",
    "HttpxTransport",
    "Log",
    "LogSettings",
    "Middleware",
    "MiddlewareChain",
    "MultipartPart",
    "ServiceProvider",
    "SingleFile",
    "Transport",
    "TransportError",
    "TransportTimeoutError",
    "USER_DEFINED_HANDLER",
    "build_parts",
    "default_options",
    "get_default_options",
    "merge_options",
    "set_default_options",
]
