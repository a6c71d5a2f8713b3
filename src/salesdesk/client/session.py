"""Admin session for the dashboard client.

The session token returned by ``POST /auth/login`` is kept in a token store so
a restarted client picks the session back up.  ``Session`` is created from
the store at startup and clears it on logout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger


class TokenStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Keeps the token for the lifetime of the process."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Keeps the token in a small file (e.g. ``~/.salesdesk/session``)."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        token = self.path.read_text(encoding="utf-8").strip()
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class Session:
    """Login state of the dashboard."""

    def __init__(self, store: TokenStore) -> None:
        self.store = store
        self.token: str | None = store.load()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def login(self, http: httpx.AsyncClient, username: str, password: str) -> bool:
        """Exchange the admin credentials for a session token; False when rejected."""
        response = await http.post("/auth/login", json={"username": username, "password": password})
        if response.status_code == 401:
            logger.warning("Login rejected for user={}", username)
            return False
        response.raise_for_status()

        self.token = response.json()["token"]
        self.store.save(self.token)
        return True

    async def validate(self, http: httpx.AsyncClient) -> bool:
        """Check the stored token with the backend, dropping it when rejected."""
        if self.token is None:
            return False
        response = await http.get("/auth/session", headers=self.auth_headers())
        if response.status_code == 401:
            self.logout()
            return False
        response.raise_for_status()
        return True

    def logout(self) -> None:
        self.token = None
        self.store.clear()
