"""Domain service interfaces (ports).

These protocols define the contracts that infrastructure implementations
must satisfy.  The proxy use cases depend on these abstractions, not on
concrete classes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from salesdesk.domain.models import AgentMessage, Category


@dataclass
class UpstreamReply:
    """Status code and raw text body of an upstream HTTP call."""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


# ---------------------------------------------------------------------------
# Workflow engine
# ---------------------------------------------------------------------------


@runtime_checkable
class IWorkflowGateway(Protocol):
    """Interface for the n8n workflow webhook.

    Implementations: N8nWorkflowGateway (httpx).
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> UpstreamReply: ...


# ---------------------------------------------------------------------------
# Image host
# ---------------------------------------------------------------------------


@runtime_checkable
class IImageHost(Protocol):
    """Interface for the image hosting provider.

    Implementations: CloudinaryImageHost (httpx, signed requests).
    """

    async def upload(self, image: str, public_id: str, folder: str) -> dict[str, Any]: ...

    async def list_resources(self, folder: str) -> list[dict[str, Any]]: ...

    async def destroy(self, public_id: str) -> dict[str, Any]: ...

    async def rename(self, from_public_id: str, to_public_id: str) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Catalog / chat database
# ---------------------------------------------------------------------------


@runtime_checkable
class ICatalogStore(Protocol):
    """Interface for the product and chat tables.

    Implementations: SqlCatalogStore (SQLAlchemy Core).
    """

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def list_tables(self) -> list[str]: ...

    def describe_table(self, table: str) -> list[dict[str, Any]]: ...

    def list_rows(self, category: Category) -> list[dict[str, Any]]: ...

    def insert_row(self, category: Category, data: Mapping[str, Any]) -> dict[str, Any]: ...

    def update_row(
        self, category: Category, row_number: int, data: Mapping[str, Any]
    ) -> dict[str, Any]: ...

    def delete_row(self, category: Category, row_number: int) -> None: ...

    def list_chats(self) -> list[dict[str, Any]]: ...

    def insert_chat_message(
        self, contact_uid: str, content: str, role: str = "assistant"
    ) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# WhatsApp vendor API
# ---------------------------------------------------------------------------


@runtime_checkable
class IMessagingGateway(Protocol):
    """Interface for the WhatsApp send/contact API.

    Implementations: WhatsAppGateway (httpx).
    """

    async def send_message(self, body: Mapping[str, Any]) -> UpstreamReply: ...

    async def get_contacts(self) -> UpstreamReply: ...

    async def get_contact(self, phone_number_or_email: str) -> UpstreamReply: ...


# ---------------------------------------------------------------------------
# LLM gateway
# ---------------------------------------------------------------------------


@runtime_checkable
class ICompletionStream(Protocol):
    """An opened upstream completion stream that must be closed after use."""

    def iter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class ILLMGateway(Protocol):
    """Interface for the OpenAI-compatible chat completion gateway.

    Implementations: OpenAIGateway (openai SDK, raw streaming response).
    """

    async def open_stream(self, messages: list[AgentMessage]) -> ICompletionStream: ...
