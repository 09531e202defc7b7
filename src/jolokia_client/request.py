"""Outbound Jolokia requests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .fields import FieldSpec
from .message import Message
from .options import DEFAULT_CONNECTION_OPTIONS, ConnectionDefaults, EffectiveOptions, resolve_options

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .dispatcher import DispatchCycle, TransportDispatcher
    from .transport.base import Transport


class Request(Message):
    """A Jolokia request plus the connection options used to send it.

    Connection options and the transport are client-side state: they are
    never part of the wire form and survive :meth:`from_wire`.

    Example::

        req = Request({"type": "read", "mbean": "java.lang:type=Memory"})
        req.dispatch({
            "url": "http://localhost:8778/jolokia/",
            "on_success": lambda resp, req: print(resp.value()),
        })
    """

    fields = (
        FieldSpec("type"),
        FieldSpec("mbean"),
        FieldSpec("attribute"),
        FieldSpec("path"),
        FieldSpec("value"),
        FieldSpec("arguments", compound=True),
        FieldSpec("operation"),
    )

    def __init__(
        self,
        wire: str | bytes | Mapping[str, Any] | None = None,
        *,
        transport: "Transport | None" = None,
        defaults: ConnectionDefaults | None = None,
        connection_options: Mapping[str, Any] | None = None,
    ) -> None:
        self.transport = transport
        self.defaults = defaults or DEFAULT_CONNECTION_OPTIONS
        self._connection_options: dict[str, Any] = dict(connection_options or {})
        super().__init__(wire)

    def connection_options(self, *args: Any) -> Any:
        """Get or set the per-request connection options.

        ``connection_options()`` returns the live mapping,
        ``connection_options(obj)`` and ``connection_options(True, obj)``
        replace it, ``connection_options(False, obj)`` merges ``obj`` into
        it and ``connection_options(key, value)`` sets one entry. Values are
        stored by reference so callbacks survive.
        """
        if not args:
            return self._connection_options
        if len(args) == 1:
            self._connection_options = dict(args[0] or {})
            return self
        if len(args) > 2:
            raise TypeError(f"connection_options() takes at most 2 arguments ({len(args)} given)")

        selector, value = args
        if selector is True:
            self._connection_options = dict(value or {})
        elif selector is False:
            self._connection_options.update(value or {})
        else:
            self._connection_options[selector] = value
        return self

    def resolve_options(self, options: Mapping[str, Any] | None = None) -> EffectiveOptions:
        return resolve_options(self, options)

    def dispatch(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        dispatcher: "TransportDispatcher | None" = None,
    ) -> "DispatchCycle":
        """Send this request; the outcome is reported through the callbacks."""
        from .dispatcher import TransportDispatcher

        if dispatcher is None:
            dispatcher = TransportDispatcher(self.transport, defaults=self.defaults)
        return dispatcher.dispatch(self, options)


__all__ = ["Request"]
