"""Sales-agent proxy: prepares the conversation and opens the completion stream.

The system prompt is rebuilt on every request from the live catalog, so the
agent always quotes current prices and stock.  The upstream event stream is
handed back untouched; the route pipes it to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.domain.models import (
    CATEGORIES,
    Accessory,
    AgentMessage,
    Category,
    Desktop,
    Laptop,
    Product,
)
from salesdesk.domain.products import DEFAULT_LOW_STOCK_THRESHOLD, normalize_products
from salesdesk.domain.protocols import ICatalogStore, ICompletionStream, ILLMGateway

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits to continue."
GENERIC_FAILURE_MESSAGE = "AI service error"

PERSONA = (
    "You are TinoChat, an AI Sales Agent for a computer store. You help customers "
    "find the right laptops, desktops and accessories."
)

GUIDELINES = """\
## Guidelines:
- Be friendly, helpful, and enthusiastic about products
- Use emojis sparingly to make responses engaging
- Format product recommendations clearly with name, price, and key specs
- Ask clarifying questions about budget, use case, and preferences
- Recommend products based on customer needs
- Mention stock availability when relevant
- Keep responses concise but informative
- If a product is out of stock, suggest alternatives"""

_SECTION_TITLES: dict[Category, str] = {
    "laptops": "Laptops",
    "desktops": "Desktops",
    "accessories": "Accessories",
}


def _specs(product: Product) -> str:
    if isinstance(product, Accessory):
        return ""
    parts = [product.processor, product.generation]
    if product.ram_gb:
        parts.append(f"{product.ram_gb}GB RAM")
    if product.storage_gb:
        storage_type = product.storage_type if isinstance(product, Laptop) else ""
        parts.append(f"{product.storage_gb}GB {storage_type}".strip())
    if isinstance(product, Laptop):
        parts.append(product.screen_size)
    elif isinstance(product, Desktop):
        parts.append(product.monitor_size)
    parts += [product.graphics, product.condition]
    return ", ".join(part for part in parts if part)


def _availability(product: Product) -> str:
    if product.stock_quantity is None:
        return "Stock not tracked"
    if product.stock_quantity <= 0:
        return "Out of stock"
    return f"{product.stock_quantity} in stock"


def describe_product(product: Product) -> str:
    line = f"- {product.display_name}"
    if product.price_range:
        line += f" - ₹{product.price_range}"
    specs = _specs(product)
    if specs:
        line += f" ({specs})"
    return f"{line} - {_availability(product)}"


def build_system_prompt(catalog: dict[Category, list[Product]]) -> str:
    """Render the persona, the current catalog and the reply guidelines."""
    sections = [PERSONA, "", "## Available Products:"]
    for category in CATEGORIES:
        products = catalog.get(category) or []
        sections.append(f"\n### {_SECTION_TITLES[category]}:")
        if products:
            sections.extend(describe_product(product) for product in products)
        else:
            sections.append("- None listed right now")
    sections += ["", GUIDELINES]
    return "\n".join(sections)


class AgentProxy:
    """Builds the agent conversation and opens the upstream completion stream.

    Parameters
    ----------
    gateway:
        The OpenAI-compatible LLM gateway.
    store:
        Catalog store the system prompt is built from; ``None`` or an
        unreachable store yields an empty catalog.
    low_stock_threshold:
        Threshold used when normalising catalog rows.
    """

    def __init__(
        self,
        gateway: ILLMGateway,
        store: ICatalogStore | None = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.low_stock_threshold = low_stock_threshold

    def load_catalog(self) -> dict[Category, list[Product]]:
        if self.store is None:
            return {}
        try:
            return {
                category: normalize_products(
                    category, self.store.list_rows(category), self.low_stock_threshold
                )
                for category in CATEGORIES
            }
        except (NotConfiguredError, UpstreamError) as exc:
            logger.warning("Catalog unavailable for agent prompt | {}", exc)
            return {}

    def build_messages(
        self,
        messages: Sequence[AgentMessage],
        history: Sequence[AgentMessage] = (),
        catalog: dict[Category, list[Product]] | None = None,
    ) -> list[AgentMessage]:
        """System prompt first, then the prior history, then the new messages."""
        system = AgentMessage(role="system", content=build_system_prompt(catalog or {}))
        return [
            system,
            *(AgentMessage(role=m.role, content=m.content) for m in history),
            *(AgentMessage(role=m.role, content=m.content) for m in messages),
        ]

    async def open_stream(
        self, messages: Sequence[AgentMessage], history: Sequence[AgentMessage] = ()
    ) -> ICompletionStream:
        """Open the completion stream.

        Raises:
            UpstreamError: 429 and 402 keep their status with a user-facing
                message; every other gateway failure becomes a 500.
        """
        catalog = await asyncio.to_thread(self.load_catalog)
        payload = self.build_messages(messages, history, catalog)
        logger.info("Agent request | history={} | messages={}", len(history), len(messages))

        try:
            return await self.gateway.open_stream(payload)
        except UpstreamError as exc:
            logger.error("AI gateway error | status={} | {}", exc.status_code, exc.details)
            if exc.status_code == 429:
                raise UpstreamError(RATE_LIMITED_MESSAGE, status_code=429) from exc
            if exc.status_code == 402:
                raise UpstreamError(CREDITS_EXHAUSTED_MESSAGE, status_code=402) from exc
            raise UpstreamError(GENERIC_FAILURE_MESSAGE, status_code=500) from exc
