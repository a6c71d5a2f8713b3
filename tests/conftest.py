"""Shared fixtures for the SalesDesk tests."""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest

from salesdesk.config import Settings
from salesdesk.infrastructure.catalog_store import SqlCatalogStore


def pytest_configure(config):
    """Set pytest-asyncio mode to auto so async test functions work without markers."""
    config.option.asyncio_mode = "auto"


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture()
def now() -> datetime:
    return NOW


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Create a Settings instance suitable for tests.

    Uses ``_env_file=None`` so a local .env is never loaded.  Auth is disabled
    unless a test turns it back on.
    """
    values = dict(
        n8n_webhook_url="https://n8n.test/webhook",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        database_url=f"sqlite:///{tmp_path / 'catalog.sqlite'}",
        database_create_schema=True,
        whatsapp_api_base_url="https://wa.test/api",
        whatsapp_api_token="tok",
        whatsapp_vendor_uid="vendor-1",
        llm_gateway_api_key="llm-key",
        auth_enabled=False,
        admin_username="admin",
        admin_password="secret-pass",
        session_secret="test-secret-that-is-long-enough-for-hs256",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    """Build test settings with per-test overrides."""
    return lambda **overrides: make_settings(tmp_path, **overrides)


@pytest.fixture()
def store(tmp_path: Path) -> SqlCatalogStore:
    """A SqlCatalogStore on a fresh SQLite file with the schema created."""
    svc = SqlCatalogStore(f"sqlite:///{tmp_path / 'store.sqlite'}", create_schema=True)
    svc.connect()
    yield svc
    svc.close()


class RecordingTransport:
    """Collects every request and answers with a handler-supplied response."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture()
def recorder() -> Callable[..., RecordingTransport]:
    """Factory for a RecordingTransport around a request handler."""
    return RecordingTransport
