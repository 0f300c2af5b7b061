"""Transports that perform the actual network exchange over httpx."""

from __future__ import annotations

import threading
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx

from .exceptions import TransportError, TransportTimeoutError
from .multipart import to_httpx_files
from .request_options import FORM, JSON, MULTIPART, QUERY, TRANSPORT

# Request-level keys forwarded verbatim to ``httpx.Client.request``.
PASSTHROUGH_KEYS = ("headers", "cookies", "content", "timeout", "follow_redirects", "auth", "extensions")


@runtime_checkable
class Transport(Protocol):
    def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    async def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        ...


def _request_kwargs(options: Mapping[str, Any]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if options.get(QUERY):
        kwargs["params"] = dict(options[QUERY])
    if options.get(FORM) is not None:
        kwargs["data"] = dict(options[FORM])
    if options.get(JSON) is not None:
        kwargs["json"] = options[JSON]
    if options.get(MULTIPART):
        kwargs["files"] = to_httpx_files(options[MULTIPART])
    for key in PASSTHROUGH_KEYS:
        if options.get(key) is not None:
            kwargs[key] = options[key]
    return kwargs


def _transport_key(options: Mapping[str, Any]) -> tuple[tuple[str, Any], ...]:
    sub_options = options.get(TRANSPORT) or {}
    return tuple(sorted((str(k), repr(v)) for k, v in sub_options.items()))


def _wrap_error(exc: httpx.HTTPError, method: str, url: str) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportTimeoutError("Request timed out", method=method, url=url, cause=exc)
    return TransportError(f"Transport failure: {exc}", method=method, url=url, cause=exc)


class _BaseHttpxTransport:
    """One httpx client per distinct ``transport`` sub-options set.

    Sub-options (``local_address``, ``retries``, ``verify``, ``http2``...) are
    connection-pool settings in httpx, so they select a client rather than
    being applied per request. The cache holds one client per sub-options set
    seen, so that set is expected to be small and fixed at configuration time.
    """

    def __init__(self, client_kwargs: Mapping[str, Any] | None = None) -> None:
        self._client_kwargs = dict(client_kwargs or {})
        self._clients: dict[tuple[tuple[str, Any], ...], Any] = {}
        self._lock = threading.Lock()

    def _kwargs(self, options: Mapping[str, Any], factory: Any) -> dict[str, Any]:
        kwargs = dict(self._client_kwargs)
        if "transport" not in kwargs:
            kwargs["transport"] = factory(**dict(options.get(TRANSPORT) or {}))
        return kwargs

    @property
    def clients(self) -> int:
        return len(self._clients)


class HttpxTransport(_BaseHttpxTransport):
    """Default synchronous transport."""

    def _client(self, options: Mapping[str, Any]) -> httpx.Client:
        key = _transport_key(options)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = httpx.Client(**self._kwargs(options, httpx.HTTPTransport))
                self._clients[key] = client
        return client

    def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        try:
            return self._client(options).request(method, url, **_request_kwargs(options))
        except httpx.HTTPError as exc:
            raise _wrap_error(exc, method, url) from exc
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid URL: {exc}", method=method, url=url, cause=exc) from exc

    def close(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()


class AsyncHttpxTransport(_BaseHttpxTransport):
    """Default asynchronous transport."""

    def _client(self, options: Mapping[str, Any]) -> httpx.AsyncClient:
        key = _transport_key(options)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = httpx.AsyncClient(**self._kwargs(options, httpx.AsyncHTTPTransport))
                self._clients[key] = client
        return client

    async def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        try:
            return await self._client(options).request(method, url, **_request_kwargs(options))
        except httpx.HTTPError as exc:
            raise _wrap_error(exc, method, url) from exc
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid URL: {exc}", method=method, url=url, cause=exc) from exc

    async def aclose(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.aclose()
