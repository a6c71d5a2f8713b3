"""n8n workflow webhook gateway."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.domain.protocols import UpstreamReply


class N8nWorkflowGateway:
    """Sends requests to sub-paths of the configured n8n webhook URL."""

    def __init__(self, webhook_url: str, http: httpx.AsyncClient) -> None:
        self.webhook_url = webhook_url
        self.http = http

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> UpstreamReply:
        if not self.webhook_url:
            raise NotConfiguredError("N8N webhook URL not configured")

        url = f"{self.webhook_url.rstrip('/')}/{path.lstrip('/')}"
        logger.info("n8n request | {} {}", method, url)
        try:
            response = await self.http.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"n8n webhook unreachable: {exc}", status_code=502) from exc

        logger.info(
            "n8n response | status={} bytes={}", response.status_code, len(response.content)
        )
        return UpstreamReply(status_code=response.status_code, text=response.text)
