"""Image proxy: upload, list, delete and rename product images."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from salesdesk.application.exceptions import UnknownActionError
from salesdesk.application.use_cases.result import ProxyResult, require
from salesdesk.domain.images import DEFAULT_FOLDER
from salesdesk.domain.protocols import IImageHost


class ImageProxy:
    """Runs one image action against the image host.

    Parameters
    ----------
    host:
        The image host gateway.
    default_folder:
        Folder used when a request does not name one.
    clock:
        Seconds-since-epoch source, used to name uploads sent without a filename.
    """

    def __init__(
        self,
        host: IImageHost,
        default_folder: str = DEFAULT_FOLDER,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.host = host
        self.default_folder = default_folder
        self.clock = clock

    async def dispatch(self, action: str, params: Mapping[str, Any]) -> ProxyResult:
        logger.info("Image proxy | action={}", action)
        if action == "upload":
            return await self.upload(params)
        if action == "list":
            return await self.list_images(params)
        if action == "delete":
            return await self.delete(params)
        if action == "rename":
            return await self.rename(params)
        raise UnknownActionError(action)

    async def upload(self, params: Mapping[str, Any]) -> ProxyResult:
        (image,) = require(params, "image", message="Image data is required")
        folder = params.get("folder") or self.default_folder
        filename = params.get("filename") or f"image-{int(self.clock())}"

        result = await self.host.upload(image, filename, folder)
        logger.info("Image uploaded | public_id={}", result.get("public_id"))
        return ProxyResult(
            {"success": True, "url": result.get("secure_url"), "public_id": result.get("public_id")}
        )

    async def list_images(self, params: Mapping[str, Any]) -> ProxyResult:
        folder = params.get("folder") or self.default_folder
        resources = await self.host.list_resources(folder)
        images = [
            {
                "name": resource["public_id"].split("/")[-1],
                "url": resource.get("secure_url"),
                "public_id": resource["public_id"],
                "created_at": resource.get("created_at"),
            }
            for resource in resources
            if resource.get("public_id")
        ]
        return ProxyResult({"success": True, "images": images})

    async def delete(self, params: Mapping[str, Any]) -> ProxyResult:
        (public_id,) = require(params, "public_id")
        result = await self.host.destroy(public_id)
        return ProxyResult({"success": result.get("result") == "ok"})

    async def rename(self, params: Mapping[str, Any]) -> ProxyResult:
        from_public_id, to_public_id = require(params, "from_public_id", "to_public_id")
        result = await self.host.rename(from_public_id, to_public_id)
        return ProxyResult(
            {"success": True, "url": result.get("secure_url"), "public_id": result.get("public_id")}
        )
