"""Behaviour shared by Jolokia requests and responses."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from .codec import WIRE_INDENT, WireObject, decode_object, encode
from .fields import FieldSpec, FieldStore, install_accessors


class Message:
    """A set of protocol fields with a JSON wire form.

    Subclasses list their protocol fields in ``fields``; an accessor method
    is generated for each one when the subclass is created.
    """

    fields: ClassVar[tuple[FieldSpec, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        install_accessors(cls, cls.fields)

    def __init__(self, wire: str | bytes | Mapping[str, Any] | None = None) -> None:
        self._fields = FieldStore(self)
        if wire:
            self.from_wire(wire)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(spec.name for spec in cls.fields)

    def set(self, key: Any, value: Any = None) -> Any:
        return self._fields.set(key, value)

    def get(self, key: str) -> Any:
        return self._fields.get(key)

    def to_wire_object(self) -> WireObject:
        return self._fields.snapshot(self.field_names())

    def to_wire_string(self, indent: int | None = None) -> str:
        return encode(self.to_wire_object(), indent=indent)

    def from_wire(self, payload: str | bytes | Mapping[str, Any]) -> Any:
        obj = decode_object(payload)
        self._reset()
        self._populate(obj)
        return self

    def _reset(self) -> None:
        self._fields.clear()

    def _populate(self, obj: Mapping[str, Any]) -> None:
        for name in self.field_names():
            if name in obj:
                getattr(self, name)(obj[name])

    def __str__(self) -> str:
        return self.to_wire_string(indent=WIRE_INDENT)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_wire_object()!r})"


__all__ = ["Message"]
