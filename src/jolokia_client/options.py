"""Connection defaults and per-dispatch option resolution.

Three layers feed one dispatch: options passed to the call, options stored
on the :class:`~jolokia_client.request.Request`, and a library-wide
:class:`ConnectionDefaults` value. Earlier layers win; ``None`` counts as
"not set" everywhere.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from .errors import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .request import Request
    from .response import Response

EffectiveOptions = dict[str, Any]

BeforeDispatch = Callable[["Request", EffectiveOptions], Optional["Response"]]
AfterDispatch = Callable[["Request", EffectiveOptions], Any]
OnSuccess = Callable[["Response", "Request"], Any]
OnError = Callable[["Request", EffectiveOptions], Any]


@dataclass(frozen=True)
class ConnectionDefaults:
    url: str = "/jolokia/"
    timeout: int = 15000
    method: str = "POST"
    login_name: str | None = None
    login_password: str | None = None
    asynchronous: bool = True
    before_dispatch: BeforeDispatch | None = None
    after_dispatch: AfterDispatch | None = None
    on_success: OnSuccess | None = None
    on_error: OnError | None = None

    def as_options(self) -> EffectiveOptions:
        return {field.name: getattr(self, field.name) for field in fields(self)}

    def with_overrides(self, **changes: Any) -> "ConnectionDefaults":
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "JOLOKIA_",
    ) -> "ConnectionDefaults":
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}
        if env.get(f"{prefix}URL"):
            changes["url"] = env[f"{prefix}URL"]
        if env.get(f"{prefix}TIMEOUT"):
            try:
                changes["timeout"] = int(env[f"{prefix}TIMEOUT"])
            except ValueError as exc:
                raise ConfigurationError(f"{prefix}TIMEOUT must be an integer (milliseconds)") from exc
        if env.get(f"{prefix}USER"):
            changes["login_name"] = env[f"{prefix}USER"]
        if env.get(f"{prefix}PASSWORD"):
            changes["login_password"] = env[f"{prefix}PASSWORD"]
        return cls(**changes)


DEFAULT_CONNECTION_OPTIONS = ConnectionDefaults()


def resolve_options(
    request: "Request",
    explicit: Mapping[str, Any] | None = None,
    defaults: ConnectionDefaults | None = None,
) -> EffectiveOptions:
    """Merge call options over the request's options over the defaults."""
    from .request import Request

    if not isinstance(request, Request):
        raise ConfigurationError(
            f"Options can only be resolved for a Request, got {type(request).__name__}"
        )

    resolved: EffectiveOptions = dict(explicit or {})

    base = defaults if defaults is not None else request.defaults
    combined: EffectiveOptions = {}
    for layer in (base.as_options(), request.connection_options()):
        for key, value in layer.items():
            if value is None:
                continue
            combined[key] = _layer_value(value)

    for key, value in combined.items():
        if resolved.get(key) is None:
            resolved[key] = value
    return resolved


def _layer_value(value: Any) -> Any:
    if callable(value):
        return value
    if isinstance(value, (dict, list)):
        return copy.deepcopy(value)
    return value


__all__ = [
    "AfterDispatch",
    "BeforeDispatch",
    "ConnectionDefaults",
    "DEFAULT_CONNECTION_OPTIONS",
    "EffectiveOptions",
    "OnError",
    "OnSuccess",
    "resolve_options",
]
