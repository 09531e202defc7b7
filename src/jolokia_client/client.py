"""High-level client for a Jolokia agent."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping
from urllib.parse import urlparse, urlunparse

from .dispatcher import TimerFactory, TransportDispatcher
from .errors import ConfigurationError, JolokiaError, TransportError
from .logger import LogLevel, create_logger
from .options import DEFAULT_CONNECTION_OPTIONS, ConnectionDefaults, EffectiveOptions
from .request import Request
from .response import Response, VersionResponse
from .transport import HttpTransport, Transport
from .types import ExecuteResult


class JolokiaClient:
    """Primary entry point for talking to a Jolokia agent.

    Builds typed requests, dispatches them through a
    :class:`TransportDispatcher` and turns the callback outcome back into a
    return value or a raised :class:`JolokiaError`.
    """

    def __init__(
        self,
        url: str,
        *,
        login_name: str | None = None,
        login_password: str | None = None,
        timeout: int | None = None,
        transport: Transport | None = None,
        defaults: ConnectionDefaults | None = None,
        timer: TimerFactory | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        self._logger = create_logger(logger=logger, level=log_level)
        self.url = self._normalize_url(url)
        self._logger.info("Initializing JolokiaClient for %s", self.url)
        base = defaults or DEFAULT_CONNECTION_OPTIONS
        self.defaults = base.with_overrides(
            url=self.url,
            timeout=timeout if timeout is not None else base.timeout,
            login_name=login_name if login_name is not None else base.login_name,
            login_password=login_password if login_password is not None else base.login_password,
        )
        self._transport = transport or HttpTransport(logger=self._logger)
        self._owns_transport = transport is None
        self._dispatcher = TransportDispatcher(
            self._transport,
            defaults=self.defaults,
            timer=timer,
            logger=self._logger,
        )

    @property
    def dispatcher(self) -> TransportDispatcher:
        return self._dispatcher

    def request(self, type: str, **fields: Any) -> Request:
        req = Request(transport=self._transport, defaults=self.defaults)
        req.type(type)
        req.set({key: value for key, value in fields.items() if value is not None})
        return req

    def read(self, mbean: str, attribute: str | list[str] | None = None, path: str | None = None) -> Response:
        return self.execute(self.request("read", mbean=mbean, attribute=attribute, path=path))

    def write(self, mbean: str, attribute: str, value: Any, path: str | None = None) -> Response:
        return self.execute(self.request("write", mbean=mbean, attribute=attribute, value=value, path=path))

    def exec(self, mbean: str, operation: str, *arguments: Any) -> Response:
        req = self.request("exec", mbean=mbean, operation=operation)
        req.arguments(list(arguments))
        return self.execute(req)

    def search(self, pattern: str) -> Response:
        return self.execute(self.request("search", mbean=pattern))

    def list(self, path: str | None = None) -> Response:
        return self.execute(self.request("list", path=path))

    def version(self) -> VersionResponse:
        req = self.request("version")
        response = self.execute(req)
        version = VersionResponse(response.to_wire_object())
        version.request(req)
        return version

    def execute(self, request: Request) -> Response:
        """Dispatch ``request`` and block until the transport reports."""
        transport = request.transport or self._transport
        if transport.kind != "http":
            raise ConfigurationError(
                f"{transport.kind} transport cannot complete synchronously; use execute_async()"
            )
        outcome: dict[str, Any] = {}
        cycle = self._dispatcher.dispatch(request, self._capture(outcome))
        if not cycle.done:
            cycle.cancel()
            raise ConfigurationError(
                f"{transport.kind} transport did not complete synchronously; use execute_async()"
            )
        return self._unwrap(outcome)

    def execute_safe(self, request: Request) -> ExecuteResult[Response]:
        try:
            return ExecuteResult(ok=True, data=self.execute(request))
        except Exception as exc:  # pragma: no cover - thin wrapper
            return ExecuteResult(ok=False, error=exc)

    async def execute_async(self, request: Request) -> Response:
        """Dispatch ``request`` and await the callback outcome."""
        future: asyncio.Future[Response] = asyncio.get_running_loop().create_future()

        def on_success(response: Response, _request: Request) -> None:
            if not future.done():
                future.set_result(response)

        def on_error(_request: Request, options: EffectiveOptions) -> None:
            if not future.done():
                future.set_exception(self._error_from(options))

        self._dispatcher.dispatch(request, {"on_success": on_success, "on_error": on_error})
        return await future

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()

    def __enter__(self) -> "JolokiaClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _capture(self, outcome: dict[str, Any]) -> Mapping[str, Any]:
        def on_success(response: Response, _request: Request) -> None:
            outcome["response"] = response

        def on_error(_request: Request, options: EffectiveOptions) -> None:
            outcome["error"] = self._error_from(options)

        return {"on_success": on_success, "on_error": on_error}

    def _unwrap(self, outcome: Mapping[str, Any]) -> Response:
        if "response" in outcome:
            return outcome["response"]
        if "error" in outcome:
            raise outcome["error"]
        raise TransportError("Dispatch finished without a response")

    def _error_from(self, options: EffectiveOptions) -> JolokiaError:
        error = options.get("error")
        if isinstance(error, JolokiaError):
            return error
        return TransportError(str(options.get("error_message") or "Request dispatch failed"))

    def _normalize_url(self, url: str) -> str:
        if "://" not in url:
            url = f"http://{url}"
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"}:
            raise ConfigurationError(f"Unsupported scheme: {parsed.scheme}")
        path = parsed.path if parsed.path not in {"", "/"} else "/jolokia/"
        if not path.endswith("/"):
            path += "/"
        return urlunparse((parsed.scheme, parsed.netloc, path, "", parsed.query, ""))


__all__ = ["JolokiaClient"]
