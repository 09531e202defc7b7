"""Protocol field storage and generated get/set accessors.

Every value written into a :class:`FieldStore` is deep copied through the
wire encoding, so a message never shares mutable state with the caller or
with another message. Message classes declare their protocol fields as a
table of :class:`FieldSpec` entries; :func:`install_accessors` turns each
entry into a method that reads when called without arguments and writes
(returning the owning message) when called with one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Mapping

from .codec import deep_copy
from .errors import ConfigurationError


@dataclass(frozen=True)
class FieldSpec:
    name: str
    compound: bool = False


class FieldStore:
    """Ordered mapping of field name to a private copy of its value."""

    def __init__(self, owner: Any) -> None:
        self._owner = owner
        self._values: dict[str, Any] = {}

    def set(self, key: Any, value: Any = None) -> Any:
        if isinstance(key, Mapping):
            for item_key, item_value in key.items():
                self.set(item_key, item_value)
            return self._owner
        if isinstance(key, (list, tuple)):
            for pair in key:
                if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                    raise ConfigurationError(f"Batch set expects (key, value) pairs, got {pair!r}")
            for item_key, item_value in key:
                self.set(item_key, item_value)
            return self._owner
        if not key:
            return self._owner

        copied = deep_copy(value)
        self._values[key] = copied
        return self._owner

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def clear(self) -> None:
        self._values = {}

    def snapshot(self, names: Iterable[str]) -> dict[str, Any]:
        return {name: self._values[name] for name in names if name in self._values}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


_UNSET: Any = object()


def field_accessor(name: str) -> Callable[..., Any]:
    def accessor(self: Any, value: Any = _UNSET) -> Any:
        if value is _UNSET:
            return self.get(name)
        return self.set(name, value)

    accessor.__name__ = name
    accessor.__doc__ = f"Get or set the ``{name}`` field."
    return accessor


def object_field_accessor(name: str) -> Callable[..., Any]:
    """Accessor for compound fields.

    ``f()`` reads, ``f(obj)`` and ``f(True, obj)`` replace, ``f(False, obj)``
    merges ``obj`` into the stored object and ``f(key, value)`` sets a
    single entry of it.
    """

    def accessor(self: Any, *args: Any) -> Any:
        if not args:
            return self.get(name)
        if len(args) == 1:
            return self.set(name, args[0])
        if len(args) > 2:
            raise TypeError(f"{name}() takes at most 2 arguments ({len(args)} given)")

        selector, value = args
        if selector is True:
            return self.set(name, value)

        current = self.get(name)
        if selector is False:
            return self.set(name, _merged(current, value))

        if isinstance(current, list):
            updated: Any = list(current)
            _put_index(updated, selector, value)
        else:
            updated = dict(current) if isinstance(current, Mapping) else {}
            updated[selector] = value
        return self.set(name, updated)

    accessor.__name__ = name
    accessor.__doc__ = f"Get, replace, merge into, or set one entry of the ``{name}`` field."
    return accessor


def _merged(current: Any, value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        merged: Any = list(current) if isinstance(current, list) else []
        for index, item in enumerate(value):
            _put_index(merged, index, item)
        return merged
    merged = dict(current) if isinstance(current, Mapping) else {}
    merged.update(value or {})
    return merged


def _put_index(items: list[Any], index: Any, value: Any) -> None:
    """Assign by position; indices past the end pad with ``None``."""
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise ConfigurationError(f"List entries need a non-negative integer index, got {index!r}")
    if index >= len(items):
        items.extend([None] * (index + 1 - len(items)))
    items[index] = value


def install_accessors(cls: type, specs: Iterable[FieldSpec]) -> None:
    """Attach one accessor per FieldSpec unless the class (or a base) defines one."""
    for spec in specs:
        if any(spec.name in klass.__dict__ for klass in cls.__mro__):
            continue
        builder = object_field_accessor if spec.compound else field_accessor
        setattr(cls, spec.name, builder(spec.name))


__all__ = [
    "FieldSpec",
    "FieldStore",
    "field_accessor",
    "install_accessors",
    "object_field_accessor",
]
