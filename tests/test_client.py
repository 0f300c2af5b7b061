from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Mapping

import httpx
import pytest

from foundation_sdk.client import REQUEST_MESSAGE, RESPONSE_MESSAGE, AsyncHttp, Http
from foundation_sdk.exceptions import FileResolutionError, TransportError, TransportTimeoutError
from foundation_sdk.middleware import Handler
from foundation_sdk.request_options import DefaultOptions
from foundation_sdk.transport import AsyncHttpxTransport, HttpxTransport


class StubTransport:
    def __init__(self, status: int = 200, body: bytes = b"ok", headers: Mapping[str, str] | None = None) -> None:
        self.status = status
        self.body = body
        self.headers = headers
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        self.calls.append((method, url, dict(options)))
        return httpx.Response(self.status, headers=self.headers, stream=httpx.ByteStream(self.body))


class FailingTransport:
    def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        raise TransportError("connection refused", method=method, url=url)


def debug_events(caplog) -> list[tuple[str, dict[str, Any]]]:
    return [(record.args[0], record.context) for record in caplog.records if hasattr(record, "context")]


def test_post_scenario_logs_twice_and_returns_response(debug_logger, caplog) -> None:
    transport = StubTransport()
    http = Http(transport=transport)

    response = http.post("/login", {"user": "a", "pass": "b"})

    assert response.status_code == 200
    assert response.text == "ok"
    events = debug_events(caplog)
    assert [message for message, _ in events] == [REQUEST_MESSAGE, RESPONSE_MESSAGE]
    assert events[0][1]["method"] == "POST"
    assert events[0][1]["options"]["form"] == {"user": "a", "pass": "b"}
    assert events[1][1]["Status"] == 200
    assert events[1][1]["Reason"] == "OK"
    assert transport.calls[0][2]["form"] == {"user": "a", "pass": "b"}


def test_body_is_re_readable_and_matches_logged_snapshot(debug_logger, caplog) -> None:
    http = Http(transport=StubTransport(body=b"payload-bytes"))

    response = http.get("/data")

    logged = debug_events(caplog)[1][1]["Body"]
    assert logged == "payload-bytes"
    assert b"".join(response.iter_bytes()) == b"payload-bytes"
    assert b"".join(response.iter_bytes()) == b"payload-bytes"


def test_upload_with_missing_file_never_reaches_transport(tmp_path: Path) -> None:
    transport = StubTransport()
    http = Http(transport=transport)

    with pytest.raises(FileResolutionError):
        http.upload("/files", {}, {"doc": str(tmp_path / "report.pdf")}, {})

    assert transport.calls == []


def test_upload_passes_query_and_parts_then_closes_streams(tmp_path: Path) -> None:
    report = tmp_path / "report.pdf"
    report.write_bytes(b"%PDF")
    transport = StubTransport()

    Http(transport=transport).upload("/files", {"folder": "x"}, {"doc": report}, {"title": "r"})

    method, url, options = transport.calls[0]
    assert (method, url) == ("POST", "/files")
    assert options["query"] == {"folder": "x"}
    parts = options["multipart"]
    assert [part.name for part in parts] == ["doc", "title"]
    assert parts[0].contents.closed


def test_method_is_upper_cased_and_defaults_merged() -> None:
    defaults = DefaultOptions({"timeout": 5, "transport": {"local_address": "0.0.0.0"}})
    transport = StubTransport()
    http = Http(transport=transport, defaults=defaults)

    http.request("/ping", "delete", {"timeout": 1, "transport": {"retries": 2}})

    method, _, options = transport.calls[0]
    assert method == "DELETE"
    assert options["timeout"] == 1
    assert options["transport"] == {"local_address": "0.0.0.0", "retries": 2}
    assert dict(defaults.get_defaults()) == {"timeout": 5, "transport": {"local_address": "0.0.0.0"}}


def test_repeated_calls_are_independent(debug_logger, caplog) -> None:
    transport = StubTransport()
    http = Http(transport=transport, defaults=DefaultOptions({"headers": {"Accept": "text/plain"}}))

    http.get("/ping", {})
    transport.calls[0][2]["headers"]["Accept"] = "mutated"
    http.get("/ping", {})

    assert len(debug_events(caplog)) == 4
    assert transport.calls[1][2]["headers"] == {"Accept": "text/plain"}
    assert dict(http.get_default_options()) == {"headers": {"Accept": "text/plain"}}


def test_middlewares_wrap_transport_and_baseline_handler_is_innermost() -> None:
    calls: list[str] = []

    def tracing(label: str):
        def middleware(handler: Handler) -> Handler:
            def wrapped(method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
                calls.append(f"{label}-pre")
                response = handler(method, url, options)
                calls.append(f"{label}-post")
                return response

            return wrapped

        return middleware

    transport = StubTransport()
    http = Http(transport=transport, defaults=DefaultOptions({"handler": tracing("user")}))
    http.add_middleware(tracing("A")).add_middleware(tracing("B"))

    http.get("/")

    assert calls == ["A-pre", "B-pre", "user-pre", "user-post", "B-post", "A-post"]
    assert "handler" not in transport.calls[0][2]
    assert len(http.get_middlewares()) == 2


def test_non_callable_baseline_handler_is_not_forwarded() -> None:
    transport = StubTransport()
    http = Http(transport=transport, defaults=DefaultOptions({"handler": "placeholder"}))

    response = http.get("/")

    assert response.status_code == 200
    assert "handler" not in transport.calls[0][2]


def test_non_success_status_is_returned(debug_logger, caplog) -> None:
    http = Http(transport=StubTransport(status=503, body=b"down", headers={"Retry-After": "5"}))

    response = http.get("/")

    assert response.status_code == 503
    assert debug_events(caplog)[1][1]["Headers"]["retry-after"] == ["5"]


def test_transport_failure_propagates_after_request_event(debug_logger, caplog) -> None:
    http = Http(transport=FailingTransport())

    with pytest.raises(TransportError, match="connection refused"):
        http.get("/down")

    assert [message for message, _ in debug_events(caplog)] == [REQUEST_MESSAGE]


def test_sensitive_headers_are_redacted_in_logs_only(debug_logger, caplog) -> None:
    transport = StubTransport()
    Http(transport=transport).request("/me", "GET", {"headers": {"Authorization": "Bearer secret"}})

    logged = debug_events(caplog)[0][1]["options"]["headers"]
    assert logged == {"Authorization": "[REDACTED]"}
    assert transport.calls[0][2]["headers"] == {"Authorization": "Bearer secret"}


def test_no_logger_configured_is_silent() -> None:
    response = Http(transport=StubTransport()).json("/quiet", {"a": 1})
    assert response.status_code == 200


def test_transport_is_lazily_created_once() -> None:
    http = Http()
    transport = http.get_transport()

    assert isinstance(transport, HttpxTransport)
    assert http.get_transport() is transport
    http.close()


def test_set_transport_replaces_default() -> None:
    stub = StubTransport()
    http = Http()
    http.get_transport()
    assert http.set_transport(stub) is http
    assert http.get_transport() is stub


def test_httpx_transport_encodes_each_request_shape(tmp_path: Path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    upload = tmp_path / "a.txt"
    upload.write_bytes(b"hello")
    transport = HttpxTransport(client_kwargs={"transport": httpx.MockTransport(handler)})

    with Http(transport=transport) as http:
        http.get("https://api.example.com/items", {"page": 2})
        http.post("https://api.example.com/login", {"user": "a"})
        http.json("https://api.example.com/items", {"name": "x"})
        http.upload("https://api.example.com/files", {"v": 1}, {"a": upload}, {"x": "1"})

    assert seen[0].url.params["page"] == "2"
    assert seen[1].content == b"user=a"
    assert json.loads(seen[2].content) == {"name": "x"}
    assert seen[3].url.params["v"] == "1"
    assert seen[3].headers["content-type"].startswith("multipart/form-data")
    assert b'name="a"; filename="a.txt"' in seen[3].content
    assert b"hello" in seen[3].content
    assert b'name="x"' in seen[3].content


def test_httpx_errors_become_transport_errors() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(TransportError) as excinfo:
        HttpxTransport(client_kwargs={"transport": httpx.MockTransport(refuse)}).send("GET", "https://x.test/", {})
    assert excinfo.value.method == "GET"
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    with pytest.raises(TransportTimeoutError):
        HttpxTransport(client_kwargs={"transport": httpx.MockTransport(slow)}).send("GET", "https://x.test/", {})


def test_httpx_transport_keeps_one_client_per_sub_options() -> None:
    transport = HttpxTransport(client_kwargs={"transport": httpx.MockTransport(lambda r: httpx.Response(204))})
    transport.send("GET", "https://x.test/", {"transport": {"local_address": "0.0.0.0"}})
    transport.send("GET", "https://x.test/", {"transport": {"local_address": "0.0.0.0"}})
    transport.send("GET", "https://x.test/", {"transport": {"local_address": "::"}})

    assert transport.clients == 2
    transport.close()
    assert transport.clients == 0


class AsyncStubTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    async def send(self, method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
        self.calls.append((method, url, dict(options)))
        return httpx.Response(200, content=b"async-ok")


def test_async_executor_runs_middlewares_and_logs(debug_logger, caplog) -> None:
    calls: list[str] = []

    def middleware(handler: Handler) -> Handler:
        async def wrapped(method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
            calls.append("pre")
            response = await handler(method, url, options)
            calls.append("post")
            return response

        return wrapped

    transport = AsyncStubTransport()

    async def run() -> httpx.Response:
        http = AsyncHttp(transport=transport)
        http.add_middleware(middleware)
        return await http.post("/login", {"user": "a"})

    response = asyncio.run(run())

    assert response.text == "async-ok"
    assert calls == ["pre", "post"]
    assert transport.calls[0][0] == "POST"
    assert [message for message, _ in debug_events(caplog)] == [REQUEST_MESSAGE, RESPONSE_MESSAGE]


def test_async_upload_with_missing_file_never_reaches_transport(tmp_path: Path) -> None:
    transport = AsyncStubTransport()

    async def run() -> None:
        await AsyncHttp(transport=transport).upload("/files", {}, {"doc": tmp_path / "missing.pdf"}, {})

    with pytest.raises(FileResolutionError):
        asyncio.run(run())
    assert transport.calls == []


def test_async_httpx_transport_round_trip() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"q": request.url.params["q"]})

    async def run() -> httpx.Response:
        transport = AsyncHttpxTransport(client_kwargs={"transport": httpx.MockTransport(handler)})
        async with AsyncHttp(transport=transport) as http:
            response = await http.get("https://api.example.com/search", {"q": "x"})
        await transport.aclose()
        return response

    assert asyncio.run(run()).json() == {"q": "x"}


def test_call_site_handler_is_not_installed_as_a_layer() -> None:
    calls: list[str] = []

    def call_site(handler: Handler) -> Handler:
        def wrapped(method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
            calls.append("call-site")
            return handler(method, url, options)

        return wrapped

    transport = StubTransport()
    Http(transport=transport, defaults=DefaultOptions({})).request("/", "GET", {"handler": call_site})

    assert calls == []
    assert "handler" not in transport.calls[0][2]


def test_baseline_handler_still_runs_when_call_site_passes_one() -> None:
    calls: list[str] = []

    def tagged(label: str):
        def middleware(handler: Handler) -> Handler:
            def wrapped(method: str, url: str, options: Mapping[str, Any]) -> httpx.Response:
                calls.append(label)
                return handler(method, url, options)

            return wrapped

        return middleware

    http = Http(transport=StubTransport(), defaults=DefaultOptions({"handler": tagged("baseline")}))
    http.request("/", "GET", {"handler": tagged("call-site")})

    assert calls == ["baseline"]


def test_httpx_transport_builds_one_client_under_concurrent_first_use() -> None:
    transport = HttpxTransport(client_kwargs={"transport": httpx.MockTransport(lambda r: httpx.Response(204))})
    options = {"transport": {"local_address": "0.0.0.0"}}

    with ThreadPoolExecutor(max_workers=8) as pool:
        statuses = list(pool.map(lambda _: transport.send("GET", "https://x.test/", options).status_code, range(32)))

    assert statuses == [204] * 32
    assert transport.clients == 1
    transport.close()
