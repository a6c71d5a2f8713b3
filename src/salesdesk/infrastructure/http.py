"""Shared outbound HTTP client."""

from __future__ import annotations

import httpx

from salesdesk.config import Settings


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the single ``httpx.AsyncClient`` the proxies share.

    No retries are configured: every proxy call maps to exactly one upstream
    request.
    """
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        headers={"Accept": "application/json"},
    )
