"""SDK-specific exceptions."""

from __future__ import annotations

from typing import Mapping


class FoundationError(Exception):
    """Base exception for all foundation SDK failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class ConfigurationError(FoundationError):
    """Raised when the container or a middleware chain is misconfigured."""


class FileResolutionError(FoundationError):
    """Raised when a multipart file reference cannot be opened for reading."""

    def __init__(self, message: str, *, path: object = None, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)
        self.path = path


class HttpError(FoundationError):
    """Raised for failures of an HTTP exchange."""


class TransportError(HttpError):
    """Raised for transport-level failures like DNS, TCP and protocol errors."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.method = method
        self.url = url

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.method and self.url:
            return f"{self.args[0]} ({self.method} {self.url})"
        return str(self.args[0])


class TransportTimeoutError(TransportError):
    """Raised when a request exceeds the transport's configured timeout."""
