"""Keyed query cache with a per-query staleness window.

A cached value is returned while it is younger than the window; after that
the next read fetches again.  Concurrent reads of a stale key may fetch twice;
whichever finishes last wins.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

PRODUCTS_STALE_AFTER = 10.0
CHATS_STALE_AFTER = 5.0
WHATSAPP_CONTACTS_STALE_AFTER = 30.0


@dataclass
class _Entry:
    value: Any
    fetched_at: float


class QueryCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._entries: dict[str, _Entry] = {}

    def is_fresh(self, key: str, stale_after: float) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self.clock() - entry.fetched_at < stale_after

    async def get_or_fetch(
        self, key: str, fetch: Callable[[], Awaitable[T]], stale_after: float
    ) -> T:
        """Return the cached value for *key*, fetching when missing or stale."""
        if self.is_fresh(key, stale_after):
            return self._entries[key].value
        value = await fetch()
        self._entries[key] = _Entry(value=value, fetched_at=self.clock())
        return value

    def peek(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
