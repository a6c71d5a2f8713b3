"""WhatsApp vendor API gateway.

Every call is authenticated twice, as the vendor API expects: a ``token``
query parameter and, for reads, an ``Authorization: Bearer`` header.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.domain.protocols import UpstreamReply


class WhatsAppGateway:
    """Async client for the vendor's send-message and contact endpoints."""

    def __init__(
        self, base_url: str, api_token: str, vendor_uid: str, http: httpx.AsyncClient
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.vendor_uid = vendor_uid
        self.http = http

    async def send_message(self, body: Mapping[str, Any]) -> UpstreamReply:
        logger.info("WhatsApp send-message | to={}", body.get("phone_number"))
        return await self._call("POST", "contact/send-message", json=dict(body))

    async def get_contacts(self) -> UpstreamReply:
        return await self._call("GET", "contacts", bearer=True)

    async def get_contact(self, phone_number_or_email: str) -> UpstreamReply:
        return await self._call(
            "GET",
            "contact",
            params={"phone_number_or_email": phone_number_or_email},
            bearer=True,
        )

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        bearer: bool = False,
    ) -> UpstreamReply:
        if not (self.api_token and self.vendor_uid):
            raise NotConfiguredError("WhatsApp API credentials not configured")

        url = f"{self.base_url}/{self.vendor_uid}/{path}"
        query = {**(params or {}), "token": self.api_token}
        headers = {"Authorization": f"Bearer {self.api_token}"} if bearer else None
        try:
            response = await self.http.request(
                method, url, params=query, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"WhatsApp API unreachable: {exc}") from exc

        logger.info("WhatsApp {} {} | status={}", method, path, response.status_code)
        return UpstreamReply(status_code=response.status_code, text=response.text)
