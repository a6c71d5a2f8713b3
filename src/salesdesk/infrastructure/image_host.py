"""Cloudinary image host gateway.

Uploads, deletes and renames are signed requests: the parameters are sorted
by name, joined as ``k=v&k=v``, the API secret is appended, and the SHA-1 hex
digest of that string is sent as ``signature``.  Listing goes through the
Admin API with HTTP Basic auth.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError

MAX_LIST_RESULTS = 500


def sign_params(params: Mapping[str, Any], api_secret: str) -> str:
    """Return the Cloudinary request signature for *params*."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryImageHost:
    """Thin async client for the Cloudinary upload and admin APIs."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        http: httpx.AsyncClient,
        base_url: str = "https://api.cloudinary.com/v1_1",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upload(self, image: str, public_id: str, folder: str) -> dict[str, Any]:
        """Upload a base64 data URI (or remote URL) under ``{folder}/{public_id}``."""
        return await self._signed_post(
            "image/upload", {"public_id": f"{folder}/{public_id}"}, file=image
        )

    async def list_resources(self, folder: str) -> list[dict[str, Any]]:
        self._require_credentials()
        url = f"{self.base_url}/{self.cloud_name}/resources/image/upload"
        params = {"prefix": f"{folder}/", "type": "upload", "max_results": MAX_LIST_RESULTS}
        try:
            response = await self.http.get(
                url, params=params, auth=httpx.BasicAuth(self.api_key, self.api_secret)
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Cloudinary unreachable: {exc}") from exc
        result = self._json(response)
        return list(result.get("resources") or [])

    async def destroy(self, public_id: str) -> dict[str, Any]:
        return await self._signed_post("image/destroy", {"public_id": public_id})

    async def rename(self, from_public_id: str, to_public_id: str) -> dict[str, Any]:
        return await self._signed_post(
            "image/rename", {"from_public_id": from_public_id, "to_public_id": to_public_id}
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_credentials(self) -> None:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise NotConfiguredError("Cloudinary credentials not configured")

    async def _signed_post(
        self, endpoint: str, params: dict[str, Any], file: str | None = None
    ) -> dict[str, Any]:
        self._require_credentials()
        signed = {**params, "timestamp": int(self.clock())}
        form = {
            **signed,
            "api_key": self.api_key,
            "signature": sign_params(signed, self.api_secret),
        }
        if file is not None:
            form["file"] = file

        url = f"{self.base_url}/{self.cloud_name}/{endpoint}"
        logger.info("Cloudinary request | POST {} | params={}", endpoint, sorted(params))
        try:
            response = await self.http.post(url, data=form)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Cloudinary unreachable: {exc}") from exc
        return self._json(response)

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            result = response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Cloudinary returned invalid JSON (status {response.status_code})",
                details=response.text,
            ) from exc

        error = result.get("error") if isinstance(result, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning("Cloudinary error | status={} | {}", response.status_code, message)
            raise UpstreamError(message or "Cloudinary request failed", details=result)
        return result
