"""Send/receive cycle between a Request and a transport backend.

A :class:`TransportDispatcher` runs one :class:`DispatchCycle` per call to
:meth:`TransportDispatcher.dispatch`. The cycle resolves options, runs the
``before_dispatch`` hook (which may short-circuit with a ready-made
Response), hands off to the transport and arms a timer. Whichever of the
transport or the timer reports first decides the outcome; the other report
is ignored. Exactly one of ``on_success``/``on_error`` runs per cycle.

Callbacks are fire-and-forget: a failure raised by ``after_dispatch``,
``on_success`` or ``on_error`` is logged and discarded. Only
``before_dispatch`` failures and configuration errors reach the caller.
"""

from __future__ import annotations

import asyncio
import enum
import time
from typing import Any, Callable, Mapping, Protocol

from .codec import encode, is_empty_payload
from .errors import (
    ConfigurationError,
    DecodeError,
    DispatchTimeoutError,
    JolokiaError,
    TransportError,
    response_error_for_status,
)
from .logger import BoundLogger, create_logger
from .options import ConnectionDefaults, EffectiveOptions, resolve_options
from .request import Request
from .response import Response, status_code
from .transport.base import FALLBACK_TIMEOUT_MS, Transport, TransportHandle, effective_timeout_ms


class DispatchState(enum.Enum):
    IDLE = "idle"
    OPTIONS_RESOLVED = "options-resolved"
    SHORT_CIRCUITED = "short-circuited"
    BACKEND_INVOKED = "backend-invoked"
    TIMED_OUT = "timed-out"
    BACKEND_COMPLETED = "backend-completed"
    TERMINATED = "terminated"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class _NullTimerHandle:
    def cancel(self) -> None:
        pass


def inline_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Never fires; blocking transports enforce the deadline themselves."""
    return _NullTimerHandle()


def asyncio_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


def default_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return inline_timer(delay, callback)
    return asyncio_timer(delay, callback)


_shared_transport: Transport | None = None


def default_transport() -> Transport:
    """Lazily created blocking HTTP transport used when none is configured."""
    global _shared_transport
    if _shared_transport is None:
        from .transport.http import HttpTransport

        _shared_transport = HttpTransport()
    return _shared_transport


class DispatchCycle:
    """State of one dispatch; also the sink the transport reports into."""

    def __init__(
        self,
        dispatcher: "TransportDispatcher",
        request: Request,
        options: EffectiveOptions,
    ) -> None:
        self.dispatcher = dispatcher
        self.request = request
        self.options = options
        self.state = DispatchState.IDLE
        self.succeeded: bool | None = None
        self._timer: TimerHandle | None = None
        self._handle: TransportHandle | None = None
        self._started: float | None = None
        self._logger = dispatcher.logger

    @property
    def done(self) -> bool:
        return self.state is DispatchState.TERMINATED

    def _transition(self, state: DispatchState) -> None:
        self._logger.trace("dispatch %s: %s -> %s", self.request.type(), self.state.value, state.value)
        self.state = state

    def short_circuit(self, response: Response) -> None:
        self._transition(DispatchState.SHORT_CIRCUITED)
        response.request(self.request)
        self.succeeded = self.dispatcher.on_dispatch_success(self.request, response, self.options)
        self._transition(DispatchState.TERMINATED)

    def start(self, transport: Transport) -> None:
        self._transition(DispatchState.BACKEND_INVOKED)
        self._started = time.monotonic()
        self._timer = self.dispatcher.timer(self.timeout_ms / 1000.0, self.expire)
        try:
            handle = transport.send(self.request, self.options, self)
        except ConfigurationError:
            self._disarm()
            self._transition(DispatchState.TERMINATED)
            raise
        except Exception as exc:
            if self.state is DispatchState.BACKEND_INVOKED:
                message = f"{type(exc).__name__}: {exc}"
                error = exc if isinstance(exc, JolokiaError) else TransportError(message)
                self.fail(message, error)
            else:
                self._logger.discarded("transport after completion", exc)
            return
        if self.state is DispatchState.BACKEND_INVOKED:
            self._handle = handle

    @property
    def timeout_ms(self) -> float:
        return effective_timeout_ms(self.options)

    def succeed(self, payload: Any) -> bool:
        if self.state is not DispatchState.BACKEND_INVOKED:
            self._logger.trace("ignoring transport success in state %s", self.state.value)
            return False
        self._transition(DispatchState.BACKEND_COMPLETED)
        self._disarm()
        try:
            self.succeeded = self.dispatcher.on_dispatch_success(self.request, payload, self.options)
        finally:
            self._transition(DispatchState.TERMINATED)
        return True

    def fail(self, message: str, error: JolokiaError | None = None) -> bool:
        if self.state is not DispatchState.BACKEND_INVOKED:
            self._logger.trace("ignoring transport failure in state %s: %s", self.state.value, message)
            return False
        self._transition(DispatchState.BACKEND_COMPLETED)
        self._disarm()
        self.options["error_message"] = message
        self.options["error"] = error or TransportError(message)
        self.succeeded = False
        try:
            self.dispatcher.on_dispatch_error(self.request, self.options)
        finally:
            self._transition(DispatchState.TERMINATED)
        return True

    def cancel(self) -> None:
        """Abandon an in-flight exchange without running any callback."""
        if self.state is not DispatchState.BACKEND_INVOKED:
            return
        handle = self._handle
        self._disarm()
        self._transition(DispatchState.TERMINATED)
        if handle is not None:
            try:
                handle.abort()
            except Exception as exc:
                self._logger.discarded("transport abort", exc)

    def expire(self) -> None:
        """Timer callback; a no-op once the transport has reported."""
        if self.state is not DispatchState.BACKEND_INVOKED:
            return
        self._transition(DispatchState.TIMED_OUT)
        self._timer = None
        if self._handle is not None:
            try:
                self._handle.abort()
            except Exception as exc:
                self._logger.discarded("transport abort", exc)
            self._handle = None

        elapsed = int((time.monotonic() - (self._started or time.monotonic())) * 1000)
        message = f"Timeout of {self.timeout_ms:g}ms reached after {elapsed}ms during request."
        self.options["error_message"] = message
        self.options["error"] = DispatchTimeoutError(message)
        self.succeeded = False
        try:
            self.dispatcher.on_dispatch_error(self.request, self.options)
        finally:
            self._transition(DispatchState.TERMINATED)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._handle = None


class TransportDispatcher:
    """Drives dispatch cycles against a transport backend."""

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        defaults: ConnectionDefaults | None = None,
        timer: TimerFactory | None = None,
        logger: Any | None = None,
    ) -> None:
        self.transport = transport
        self.defaults = defaults
        self.timer: TimerFactory = timer or default_timer
        self.logger: BoundLogger = create_logger(logger=logger).child("dispatch")

    def dispatch(self, request: Request, options: Mapping[str, Any] | None = None) -> DispatchCycle:
        if not isinstance(request, Request):
            raise ConfigurationError(f"dispatch() requires a Request, got {type(request).__name__}")

        cycle = DispatchCycle(self, request, resolve_options(request, options, self.defaults))
        cycle._transition(DispatchState.OPTIONS_RESOLVED)

        before = cycle.options.get("before_dispatch")
        if callable(before):
            try:
                pre = before(request, cycle.options)
            except BaseException:
                cycle._transition(DispatchState.TERMINATED)
                raise
            if isinstance(pre, Response):
                cycle.short_circuit(pre)
                return cycle

        transport = request.transport or self.transport or default_transport()
        cycle.start(transport)
        return cycle

    def on_dispatch_success(self, request: Request, payload: Any, options: EffectiveOptions) -> bool:
        """Route a transport success; returns False when it ended on the error path."""
        if not isinstance(request, Request):
            raise ConfigurationError(
                f"on_dispatch_success() requires a Request, got {type(request).__name__}"
            )
        if is_empty_payload(payload):
            message = "Request dispatch succeeded but returned no data"
            options["error_message"] = message
            options["error"] = TransportError(message)
            self.on_dispatch_error(request, options)
            return False

        self._after_dispatch(request, options)

        on_success = options.get("on_success")
        if not callable(on_success):
            return True

        try:
            response = payload if isinstance(payload, Response) else Response(payload)
            response.request(request)
            ok = response.is_success()
        except Exception as exc:
            message = (
                f"Exception while handling inbound response: {exc}\n"
                f"Original response data:\n{_describe_payload(payload)}"
            )
            error = DecodeError(message, context=payload)
            error.__cause__ = exc
            options["error_message"] = message
            options["error"] = error
            self._on_error(request, options)
            return False

        if not ok:
            status = response.status()
            message = f"Agent returned status {status}: {response.error() or 'no error text'}"
            error_cls = response_error_for_status(status_code(status))
            options["error_message"] = message
            options["error"] = error_cls(message, status=status_code(status), response=response)
            options["response"] = response
            self._on_error(request, options)
            return False

        try:
            on_success(response, request)
        except Exception as exc:
            self.logger.discarded("on_success", exc)
        return True

    def on_dispatch_error(self, request: Request, options: EffectiveOptions) -> None:
        self._after_dispatch(request, options)
        self._on_error(request, options)

    def _after_dispatch(self, request: Request, options: EffectiveOptions) -> None:
        after = options.get("after_dispatch")
        if not callable(after):
            return
        try:
            after(request, options)
        except Exception as exc:
            self.logger.discarded("after_dispatch", exc)

    def _on_error(self, request: Request, options: EffectiveOptions) -> None:
        on_error = options.get("on_error")
        if not callable(on_error):
            self.logger.warn("Dispatch of %s request failed: %s", request.type(), options.get("error_message"))
            return
        try:
            on_error(request, options)
        except Exception as exc:
            self.logger.discarded("on_error", exc)


def _describe_payload(payload: Any) -> str:
    if isinstance(payload, (str, bytes)):
        return payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
    try:
        return encode(payload)
    except JolokiaError:
        return repr(payload)


__all__ = [
    "DispatchCycle",
    "DispatchState",
    "FALLBACK_TIMEOUT_MS",
    "TimerFactory",
    "TimerHandle",
    "TransportDispatcher",
    "asyncio_timer",
    "default_timer",
    "default_transport",
    "inline_timer",
]
