"""Synchronous and asynchronous request executors."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from .log import Log
from .middleware import Handler, Middleware, MiddlewareChain
from .multipart import build_upload_options, close_parts
from .request_options import FORM, HANDLER, JSON, MULTIPART, QUERY, DefaultOptions, default_options, merge_options
from .security import sanitize_headers, sanitize_options
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport

REQUEST_MESSAGE = "Client Request:"
RESPONSE_MESSAGE = "API response:"


def _response_headers(response: httpx.Response) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    for name in response.headers.keys():
        if name not in headers:
            headers[name] = response.headers.get_list(name)
    return sanitize_headers(headers)


def _response_context(response: httpx.Response) -> dict[str, Any]:
    return {
        "Status": response.status_code,
        "Reason": response.reason_phrase,
        "Headers": _response_headers(response),
        "Body": response.text,
    }


class _BaseHttp:
    def __init__(
        self,
        *,
        defaults: DefaultOptions | None = None,
        middlewares: MiddlewareChain | None = None,
    ) -> None:
        self.defaults = defaults if defaults is not None else default_options
        self.middlewares = middlewares if middlewares is not None else MiddlewareChain()
        self._transport: Any = None
        self._owns_transport = False

    def add_middleware(self, middleware: Middleware | Any, name: str | None = None) -> "_BaseHttp":
        self.middlewares.add(middleware, name)
        return self

    def get_middlewares(self) -> tuple[Middleware, ...]:
        return self.middlewares.list()

    def set_default_options(self, options: Mapping[str, Any] | None = None) -> None:
        self.defaults.set_defaults(options)

    def get_default_options(self) -> Mapping[str, Any]:
        return self.defaults.get_defaults()

    def _prepare(
        self, url: str, method: str, options: Mapping[str, Any] | None, base_handler: Handler
    ) -> tuple[str, dict[str, Any], Handler]:
        method = method.upper()
        baseline = self.defaults.get_defaults()
        merged = merge_options(baseline, options)
        # The user-defined layer only ever comes from the baseline.
        merged.pop(HANDLER, None)
        Log.debug(REQUEST_MESSAGE, {"url": url, "method": method, "options": sanitize_options(merged)})
        handler = self.middlewares.build(base_handler, baseline.get(HANDLER))
        return method, merged, handler


class Http(_BaseHttp):
    """Synchronous executor.

    Every call merges its options onto the baseline, passes through the
    middleware chain and ends in ``Transport.send``. Responses are returned
    whatever their status; transport failures propagate as ``TransportError``.
    """

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        defaults: DefaultOptions | None = None,
        middlewares: MiddlewareChain | None = None,
    ) -> None:
        super().__init__(defaults=defaults, middlewares=middlewares)
        self._transport = transport

    def __enter__(self) -> "Http":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_transport and self._transport is not None:
            self._transport.close()
            self._transport = None
            self._owns_transport = False

    def set_transport(self, transport: Transport) -> "Http":
        self.close()
        self._transport = transport
        return self

    def get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpxTransport()
            self._owns_transport = True
        return self._transport

    def get(self, url: str, query: Mapping[str, Any] | None = None) -> httpx.Response:
        return self.request(url, "GET", {QUERY: dict(query or {})})

    def post(self, url: str, form: Mapping[str, Any] | None = None) -> httpx.Response:
        return self.request(url, "POST", {FORM: dict(form or {})})

    def json(self, url: str, body: Any = None) -> httpx.Response:
        return self.request(url, "POST", {JSON: {} if body is None else body})

    def upload(
        self,
        url: str,
        queries: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        options = build_upload_options(queries, files, form)
        try:
            return self.request(url, "POST", options)
        finally:
            close_parts(options[MULTIPART])

    def request(self, url: str, method: str = "GET", options: Mapping[str, Any] | None = None) -> httpx.Response:
        method, merged, handler = self._prepare(url, method, options, self.get_transport().send)
        response = handler(method, url, merged)
        response.read()
        Log.debug(RESPONSE_MESSAGE, _response_context(response))
        return response


class AsyncHttp(_BaseHttp):
    """Asynchronous executor; middlewares wrap coroutine handlers."""

    def __init__(
        self,
        *,
        transport: AsyncTransport | None = None,
        defaults: DefaultOptions | None = None,
        middlewares: MiddlewareChain | None = None,
    ) -> None:
        super().__init__(defaults=defaults, middlewares=middlewares)
        self._transport = transport

    async def __aenter__(self) -> "AsyncHttp":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport and self._transport is not None:
            await self._transport.aclose()
            self._transport = None
            self._owns_transport = False

    async def set_transport(self, transport: AsyncTransport) -> "AsyncHttp":
        await self.aclose()
        self._transport = transport
        return self

    def get_transport(self) -> AsyncTransport:
        if self._transport is None:
            self._transport = AsyncHttpxTransport()
            self._owns_transport = True
        return self._transport

    async def get(self, url: str, query: Mapping[str, Any] | None = None) -> httpx.Response:
        return await self.request(url, "GET", {QUERY: dict(query or {})})

    async def post(self, url: str, form: Mapping[str, Any] | None = None) -> httpx.Response:
        return await self.request(url, "POST", {FORM: dict(form or {})})

    async def json(self, url: str, body: Any = None) -> httpx.Response:
        return await self.request(url, "POST", {JSON: {} if body is None else body})

    async def upload(
        self,
        url: str,
        queries: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        options = build_upload_options(queries, files, form)
        try:
            return await self.request(url, "POST", options)
        finally:
            close_parts(options[MULTIPART])

    async def request(
        self, url: str, method: str = "GET", options: Mapping[str, Any] | None = None
    ) -> httpx.Response:
        method, merged, handler = self._prepare(url, method, options, self.get_transport().send)
        response = await handler(method, url, merged)
        await response.aread()
        Log.debug(RESPONSE_MESSAGE, _response_context(response))
        return response
