"""Non-blocking HTTP transport built on httpx.AsyncClient and asyncio tasks."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Mapping

import httpx

from ..auth import Credentials
from ..errors import ConfigurationError, DispatchTimeoutError, TransportError
from ..logger import BoundLogger, create_logger
from .base import (
    CompletionSink,
    Transport,
    effective_timeout_ms,
    http_error_message,
    request_headers,
    require_post,
    timeout_seconds,
)

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..request import Request


class TaskHandle:
    """Aborts an in-flight exchange by cancelling its task."""

    def __init__(self, task: "asyncio.Task[None]") -> None:
        self.task = task

    def abort(self) -> None:
        if not self.task.done():
            self.task.cancel()


class AsyncHttpTransport:
    """Schedules the exchange on the running event loop and returns at once."""

    kind: Transport.Kind = "async-http"

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("async-http")
        self._tasks: set[asyncio.Task[None]] = set()

    def send(
        self,
        request: "Request",
        options: Mapping[str, Any],
        sink: CompletionSink,
    ) -> TaskHandle:
        method = require_post(options)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ConfigurationError("AsyncHttpTransport requires a running event loop") from exc

        payload = request.to_wire_string()
        task = loop.create_task(self._exchange(method, payload, options, sink))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return TaskHandle(task)

    async def _exchange(
        self,
        method: str,
        payload: str,
        options: Mapping[str, Any],
        sink: CompletionSink,
    ) -> None:
        url = options.get("url")
        kwargs: dict[str, Any] = {
            "content": payload,
            "headers": request_headers(options),
            "timeout": timeout_seconds(options),
        }
        Credentials.from_options(options).apply(kwargs, self._logger)

        started = time.monotonic()
        try:
            self._logger.debug("HTTP %s %s bytes=%d (async)", method, url, len(payload))
            response = await self._client.post(str(url), **kwargs)
        except httpx.TimeoutException as exc:
            elapsed = int((time.monotonic() - started) * 1000)
            message = f"Timeout of {effective_timeout_ms(options):g}ms reached after {elapsed}ms during request to [{url}]"
            sink.fail(message, DispatchTimeoutError(message, context=str(exc)))
            return
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            message = f"Cannot connect to [{url}]: {exc}"
            sink.fail(message, TransportError(message))
            return

        self._logger.debug(
            "HTTP <- %s status=%s bytes=%d (async)",
            url,
            response.status_code,
            len(response.content),
        )
        if 200 <= response.status_code < 300:
            sink.succeed(response.text)
        else:
            message = http_error_message(options, response.status_code, response.reason_phrase, response.text)
            sink.fail(message, TransportError(message, context=response.status_code))

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._owns_client:
            await self._client.aclose()

    def close(self) -> None:
        """Inside a running loop the client closes in a tracked task; await ``aclose()`` there instead."""
        for task in list(self._tasks):
            task.cancel()
        if not self._owns_client:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._client.aclose())
            return
        task = loop.create_task(self._client.aclose())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = ["AsyncHttpTransport", "TaskHandle"]
