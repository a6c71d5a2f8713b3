"""Dashboard client: the data operations behind each admin panel.

Each method is one proxied call (or a cached read of one).  Reads go through
the :class:`~salesdesk.client.cache.QueryCache` staleness windows; writes
invalidate the cache entries they affect.
"""

from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from salesdesk.application.exceptions import (
    ApiError,
    InputValidationError,
    UploadValidationError,
)
from salesdesk.client.cache import (
    CHATS_STALE_AFTER,
    PRODUCTS_STALE_AFTER,
    WHATSAPP_CONTACTS_STALE_AFTER,
    QueryCache,
)
from salesdesk.client.session import Session
from salesdesk.domain.conversations import (
    derive_contacts,
    messages_for_contact,
    normalize_chat_rows,
)
from salesdesk.domain.dashboard import chat_stats, inventory_stats
from salesdesk.domain.images import (
    DEFAULT_FOLDER,
    MAX_UPLOAD_BYTES,
    is_jpeg,
    rename_target,
    upload_public_name,
)
from salesdesk.domain.models import (
    CATEGORIES,
    Category,
    ChatMessage,
    ChatRow,
    ChatStats,
    Contact,
    ImageAsset,
    InventoryStats,
    Product,
)
from salesdesk.domain.products import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    action_prefix,
    normalize_products,
    product_to_record,
    validate_product,
)

PRODUCTS_KEY = "products"
MESSAGES_KEY = "all-messages"
WHATSAPP_CONTACTS_KEY = "whatsapp-contacts"

# Fetch action per category, as the database proxy names them
_GET_ACTIONS: dict[Category, str] = {
    "laptops": "get-laptop",
    "desktops": "get-desktops",
    "accessories": "get-accessories",
}


def _product_action(verb: str, category: str) -> str:
    try:
        return f"{verb}-{action_prefix(category)}"
    except ValueError as exc:
        raise InputValidationError(str(exc)) from exc


class DashboardClient:
    """Async client for the backend proxies.

    Parameters
    ----------
    http:
        Client whose base URL points at the backend.
    session:
        Admin session whose token is sent with every call.
    cache:
        Query cache; a fresh one is created when omitted.
    low_stock_threshold:
        Stock level at or below which a product counts as low stock.
    clock:
        Seconds-since-epoch source used to name uploads.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        session: Session | None = None,
        cache: QueryCache | None = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.http = http
        self.session = session
        self.cache = cache or QueryCache()
        self.low_stock_threshold = low_stock_threshold
        self.clock = clock

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def call(self, function: str, action: str, data: Any = None, **params: Any) -> Any:
        """POST ``{action, data, **params}`` to a proxy and return its JSON.

        Raises:
            ApiError: The proxy answered non-2xx or with an ``error`` field.
        """
        body = {"action": action, "data": data, **params}
        headers = self.session.auth_headers() if self.session else {}
        response = await self.http.post(f"/functions/{function}", json=body, headers=headers)

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        error = payload.get("error") if isinstance(payload, dict) else None
        if not response.is_success or error:
            message = error or f"{function} failed with status {response.status_code}"
            raise ApiError(str(message), status_code=response.status_code)
        return payload

    async def close(self) -> None:
        await self.http.aclose()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_products(self) -> list[Product]:
        return await self.cache.get_or_fetch(
            PRODUCTS_KEY, self._fetch_all_products, PRODUCTS_STALE_AFTER
        )

    async def _fetch_category(self, category: Category) -> list[Product]:
        try:
            rows = await self.call("postgres-api", _GET_ACTIONS[category])
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Could not load {} | {}", category, exc)
            return []
        return normalize_products(category, rows or [], self.low_stock_threshold)

    async def _fetch_all_products(self) -> list[Product]:
        per_category = await asyncio.gather(
            *(self._fetch_category(category) for category in CATEGORIES)
        )
        return [product for products in per_category for product in products]

    async def add_product(self, product: Product) -> Any:
        return await self._write_product("add", product)

    async def update_product(self, product: Product) -> Any:
        return await self._write_product("update", product)

    async def delete_product(self, product_id: str, category: str) -> Any:
        action = _product_action("delete", category)
        result = await self.call("postgres-api", action, {"id": product_id})
        self.cache.invalidate(PRODUCTS_KEY)
        return result

    async def _write_product(self, verb: str, product: Product) -> Any:
        problems = validate_product(product)
        if problems:
            raise InputValidationError("; ".join(problems))
        action = _product_action(verb, product.category)
        result = await self.call("postgres-api", action, product_to_record(product))
        self.cache.invalidate(PRODUCTS_KEY)
        return result

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def get_chat_rows(self) -> list[ChatRow]:
        async def fetch() -> list[ChatRow]:
            rows = await self.call("postgres-api", "get-chats")
            return normalize_chat_rows(rows or [])

        return await self.cache.get_or_fetch(MESSAGES_KEY, fetch, CHATS_STALE_AFTER)

    async def get_contacts(self, now: datetime | None = None) -> list[Contact]:
        return derive_contacts(await self.get_chat_rows(), now)

    async def get_chat_messages(self, contact_id: str | None) -> list[ChatMessage]:
        if not contact_id:
            return []
        return messages_for_contact(await self.get_chat_rows(), contact_id)

    async def send_message(self, contact_id: str, message: str) -> Any:
        """Record an agent reply in the chat log."""
        result = await self.call(
            "postgres-api", "send-message", {"contactId": contact_id, "message": message}
        )
        self.cache.invalidate(MESSAGES_KEY)
        return result

    async def send_whatsapp_message(
        self,
        phone_number: str,
        contact_id: str,
        message: str | None = None,
        template_name: str | None = None,
        template_language: str | None = None,
        template_fields: Mapping[str, str] | None = None,
    ) -> Any:
        """Send through WhatsApp, then record the message in the chat log."""
        data = {
            "phone_number": phone_number,
            "message_body": message,
            "template_name": template_name,
            "template_language": template_language,
            **(template_fields or {}),
        }
        result = await self.call("whatsapp-api", "send-message", data)
        await self.send_message(contact_id, message or f"[Template: {template_name}]")
        return result

    async def get_whatsapp_contacts(self) -> Any:
        async def fetch() -> Any:
            return await self.call("whatsapp-api", "get-contacts")

        return await self.cache.get_or_fetch(
            WHATSAPP_CONTACTS_KEY, fetch, WHATSAPP_CONTACTS_STALE_AFTER
        )

    async def get_whatsapp_contact(self, phone_number_or_email: str) -> Any:
        return await self.call(
            "whatsapp-api", "get-contact", {"phone_number_or_email": phone_number_or_email}
        )

    async def call_workflow(self, action: str, data: Mapping[str, Any] | None = None) -> Any:
        """Run an n8n workflow action (``get_products``, ``send_message`` ...)."""
        return await self.call("n8n-proxy", action, dict(data) if data is not None else None)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def upload_image(self, content: bytes, content_type: str, file_name: str) -> ImageAsset:
        """Validate and upload a JPEG; nothing is sent when validation fails."""
        if not is_jpeg(content_type):
            raise UploadValidationError("Only JPG/JPEG images are allowed")
        if len(content) > MAX_UPLOAD_BYTES:
            raise UploadValidationError("Image size must be less than 5MB")

        filename = upload_public_name(file_name, int(self.clock() * 1000))
        data_uri = f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"
        result = await self.call("cloudinary-upload", "upload", image=data_uri, filename=filename)
        return ImageAsset(name=filename, url=result["url"], public_id=result["public_id"])

    async def list_images(self, folder: str = DEFAULT_FOLDER) -> list[ImageAsset]:
        result = await self.call("cloudinary-upload", "list", folder=folder)
        return [
            ImageAsset(
                name=image["name"],
                url=image["url"],
                public_id=image["public_id"],
                created_at=image.get("created_at"),
            )
            for image in result.get("images", [])
        ]

    async def delete_image(self, public_id: str) -> bool:
        result = await self.call("cloudinary-upload", "delete", public_id=public_id)
        return bool(result.get("success"))

    async def rename_image(
        self, image: ImageAsset, new_name: str, folder: str = DEFAULT_FOLDER
    ) -> ImageAsset:
        """Rename *image*; an unchanged name makes no call."""
        target = rename_target(new_name)
        if not target:
            raise InputValidationError("Please enter a valid name")
        if target == image.name:
            return image

        result = await self.call(
            "cloudinary-upload",
            "rename",
            from_public_id=image.public_id,
            to_public_id=f"{folder}/{target}",
        )
        return ImageAsset(
            name=target,
            url=result["url"],
            public_id=result["public_id"],
            created_at=image.created_at,
        )

    # ------------------------------------------------------------------
    # Dashboard overview
    # ------------------------------------------------------------------

    async def dashboard_stats(self) -> tuple[ChatStats, InventoryStats]:
        contacts, products = await asyncio.gather(self.get_contacts(), self.get_products())
        return chat_stats(contacts), inventory_stats(products)
