"""Blocking HTTP transport built on top of httpx."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Mapping

import httpx

from ..auth import Credentials
from ..errors import DispatchTimeoutError, TransportError
from ..logger import BoundLogger, create_logger
from .base import (
    COMPLETED,
    CompletionSink,
    Transport,
    TransportHandle,
    effective_timeout_ms,
    http_error_message,
    request_headers,
    require_post,
    timeout_seconds,
)

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..request import Request


class HttpTransport:
    """Performs the exchange inside ``send``; ``asynchronous`` is ignored."""

    kind: Transport.Kind = "http"

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._client = client or httpx.Client()
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("http")

    def send(
        self,
        request: "Request",
        options: Mapping[str, Any],
        sink: CompletionSink,
    ) -> TransportHandle:
        method = require_post(options)
        url = options.get("url")
        payload = request.to_wire_string()
        kwargs: dict[str, Any] = {
            "content": payload,
            "headers": request_headers(options),
            "timeout": timeout_seconds(options),
        }
        Credentials.from_options(options).apply(kwargs, self._logger)

        started = time.monotonic()
        try:
            self._logger.debug("HTTP %s %s bytes=%d", method, url, len(payload))
            response = self._client.post(str(url), **kwargs)
        except httpx.TimeoutException as exc:
            elapsed = int((time.monotonic() - started) * 1000)
            message = f"Timeout of {effective_timeout_ms(options):g}ms reached after {elapsed}ms during request to [{url}]"
            sink.fail(message, DispatchTimeoutError(message, context=str(exc)))
            return COMPLETED
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            message = f"Cannot connect to [{url}]: {exc}"
            sink.fail(message, TransportError(message))
            return COMPLETED

        self._logger.debug(
            "HTTP <- %s status=%s bytes=%d",
            url,
            response.status_code,
            len(response.content),
        )
        if 200 <= response.status_code < 300:
            sink.succeed(response.text)
        else:
            message = http_error_message(options, response.status_code, response.reason_phrase, response.text)
            sink.fail(message, TransportError(message, context=response.status_code))
        return COMPLETED

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["HttpTransport"]
