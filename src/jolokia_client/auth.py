"""Transport-level credentials taken from connection options."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from .logger import BoundLogger


class Credentials:
    """HTTP basic credentials built from ``login_name``/``login_password``."""

    def __init__(self, login_name: str | None, login_password: str | None) -> None:
        self.login_name = login_name
        self.login_password = login_password

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "Credentials":
        return cls(options.get("login_name"), options.get("login_password"))

    @property
    def has_credentials(self) -> bool:
        return bool(self.login_name)

    def httpx_auth(self) -> httpx.BasicAuth | None:
        if not self.has_credentials:
            return None
        assert self.login_name is not None
        return httpx.BasicAuth(self.login_name, self.login_password or "")

    def apply(self, kwargs: dict[str, Any], logger: BoundLogger) -> dict[str, Any]:
        """Add an ``auth`` entry to httpx request kwargs when credentials are set."""
        auth = self.httpx_auth()
        if auth is not None:
            logger.trace("Using basic auth for user %s", self.login_name)
            kwargs["auth"] = auth
        return kwargs

    def __repr__(self) -> str:
        masked = "***" if self.login_password else None
        return f"Credentials(login_name={self.login_name!r}, login_password={masked!r})"


__all__ = ["Credentials"]
