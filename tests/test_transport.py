import asyncio
import json
from typing import Any

import httpx
import pytest

from jolokia_client import ConfigurationError, DispatchTimeoutError, Request, TransportError
from jolokia_client.transport import AsyncHttpTransport, HttpTransport

URL = "http://agent:8778/jolokia/"


class RecordingSink:
    def __init__(self) -> None:
        self.successes: list[Any] = []
        self.failures: list[tuple[str, Any]] = []

    def succeed(self, payload: Any) -> bool:
        self.successes.append(payload)
        return True

    def fail(self, message: str, error: Any = None) -> bool:
        self.failures.append((message, error))
        return True


def options(**extra: Any) -> dict[str, Any]:
    return {"url": URL, "method": "POST", "timeout": 1000, **extra}


def make_request() -> Request:
    return Request({"type": "read", "mbean": "java.lang:type=Runtime", "attribute": "Uptime"})


def test_http_transport_posts_wire_encoding() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text='{"status": 200, "value": 1234}')

    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    sink = RecordingSink()
    transport.send(make_request(), options(), sink)

    assert sink.successes == ['{"status": 200, "value": 1234}']
    assert sink.failures == []
    sent = seen[0]
    assert sent.method == "POST"
    assert str(sent.url) == URL
    assert sent.headers["content-type"] == "text/plain"
    assert json.loads(sent.content) == make_request().to_wire_object()
    assert "authorization" not in sent.headers


def test_http_transport_uses_basic_auth_and_extra_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="{}")

    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    transport.send(
        make_request(),
        options(login_name="jolokia", login_password="secret", headers={"X-Trace": "abc"}),
        RecordingSink(),
    )

    assert seen[0].headers["authorization"].startswith("Basic ")
    assert seen[0].headers["x-trace"] == "abc"


def test_http_transport_reports_non_2xx_as_failure() -> None:
    transport = HttpTransport(
        client=httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway")))
    )
    sink = RecordingSink()
    transport.send(make_request(), options(), sink)

    message, error = sink.failures[0]
    assert "status=[502 Bad Gateway]" in message
    assert URL in message
    assert isinstance(error, TransportError)
    assert sink.successes == []


def test_http_transport_reports_agent_error_text_from_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Authentication required", "status": 401})

    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    sink = RecordingSink()
    transport.send(make_request(), options(), sink)

    message, _ = sink.failures[0]
    assert "status=[401 Unauthorized]" in message
    assert message.endswith(": Authentication required")


def test_http_transport_reports_connection_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    sink = RecordingSink()
    transport.send(make_request(), options(), sink)

    message, error = sink.failures[0]
    assert message.startswith(f"Cannot connect to [{URL}]")
    assert isinstance(error, TransportError)


def test_http_transport_reports_timeouts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    sink = RecordingSink()
    transport.send(make_request(), options(timeout=750), sink)

    message, error = sink.failures[0]
    assert message.startswith("Timeout of 750ms")
    assert isinstance(error, DispatchTimeoutError)


@pytest.mark.parametrize("method", ["GET", "get", "PUT"])
def test_http_transport_rejects_non_post(method: str) -> None:
    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    with pytest.raises(ConfigurationError):
        transport.send(make_request(), options(method=method), RecordingSink())


def test_async_transport_returns_before_completion() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text='{"status": 200}')

    async def scenario() -> RecordingSink:
        transport = AsyncHttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        sink = RecordingSink()
        handle = transport.send(make_request(), options(), sink)
        assert sink.successes == []
        await handle.task
        await transport.aclose()
        return sink

    sink = asyncio.run(scenario())
    assert sink.successes == ['{"status": 200}']


def test_async_transport_abort_cancels_without_reporting() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200, text="{}")

    async def scenario() -> RecordingSink:
        transport = AsyncHttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        sink = RecordingSink()
        handle = transport.send(make_request(), options(), sink)
        await asyncio.sleep(0)
        handle.abort()
        with pytest.raises(asyncio.CancelledError):
            await handle.task
        await transport.aclose()
        return sink

    sink = asyncio.run(scenario())
    assert sink.successes == []
    assert sink.failures == []


def test_async_transport_close_inside_loop_tracks_client_shutdown() -> None:
    async def scenario() -> AsyncHttpTransport:
        transport = AsyncHttpTransport()
        transport.close()
        pending = list(transport._tasks)
        assert len(pending) == 1
        await asyncio.gather(*pending)
        return transport

    transport = asyncio.run(scenario())
    assert transport._client.is_closed
    assert transport._tasks == set()


def test_async_transport_requires_running_loop() -> None:
    transport = AsyncHttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    with pytest.raises(ConfigurationError):
        transport.send(make_request(), options(), RecordingSink())
