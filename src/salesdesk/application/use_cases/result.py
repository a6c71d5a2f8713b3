"""Result container shared by the proxy use cases."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from salesdesk.application.exceptions import ProxyRequestError


@dataclass
class ProxyResult:
    """A JSON body and the HTTP status the route should answer with."""

    body: Any
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def require(data: Mapping[str, Any] | None, *keys: str, message: str | None = None) -> list[Any]:
    """Return the values of *keys* from *data*, raising if any is missing or empty."""
    values = [(data or {}).get(key) for key in keys]
    if any(value is None or value == "" for value in values):
        verb = "is" if len(keys) == 1 else "are"
        raise ProxyRequestError(message or f"{' and '.join(keys)} {verb} required")
    return values
