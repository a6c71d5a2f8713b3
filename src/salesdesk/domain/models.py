"""Domain entities and value objects.

Every entity here is a read-side projection of data owned by an external
system (the chat/product database, the image host).  Nothing in this module
talks to the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Literal

from pydantic import BaseModel, Field

StockStatus = Literal["active", "low_stock", "out_of_stock"]
Category = Literal["laptops", "desktops", "accessories"]
ChatRole = Literal["user", "assistant"]

CATEGORIES: tuple[Category, ...] = ("laptops", "desktops", "accessories")
STOCK_STATUSES: tuple[StockStatus, ...] = ("active", "low_stock", "out_of_stock")

# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


@dataclass
class ChatRow:
    """A single stored chat row after normalisation."""

    id: str
    contact_uid: str
    content: str
    role: ChatRole
    created_at: datetime


@dataclass
class Contact:
    """Conversation summary shown in the chat list."""

    id: str
    name: str
    phone_number: str
    last_message: str
    time: str
    unread: int
    online: bool = False


@dataclass
class ChatMessage:
    """A message inside one conversation, as displayed in the chat window."""

    id: str
    contact_id: str
    message: str
    sender: Literal["user", "agent"]
    timestamp: datetime


# ---------------------------------------------------------------------------
# Products: tagged variant over the three catalog tables
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class ProductBase:
    """Fields every catalog item carries regardless of category."""

    category: ClassVar[Category]

    id: str
    display_name: str
    price_range: str = ""
    price: float | None = None
    stock_quantity: int | None = None
    status: StockStatus = "active"
    image_url_1: str | None = None
    image_url_2: str | None = None
    updated_at: str | None = None


@dataclass(kw_only=True)
class Laptop(ProductBase):
    category: ClassVar[Category] = "laptops"

    brand: str = ""
    model: str = ""
    processor: str = ""
    generation: str = ""
    ram_gb: int | None = None
    storage_type: str = ""
    storage_gb: int | None = None
    screen_size: str = ""
    graphics: str = ""
    condition: str = "Used"
    special_feature: str = ""
    warranty_in_months: int | None = None


@dataclass(kw_only=True)
class Desktop(ProductBase):
    category: ClassVar[Category] = "desktops"

    brand: str = ""
    model: str = ""
    processor: str = ""
    generation: str = ""
    ram_gb: int | None = None
    ram_type: str = ""
    storage_gb: int | None = None
    monitor_size: str = ""
    graphics: str = ""
    condition: str = "Used"
    special_feature: str = ""
    warranty_in_months: int | None = None


@dataclass(kw_only=True)
class Accessory(ProductBase):
    category: ClassVar[Category] = "accessories"

    name: str = ""


Product = Laptop | Desktop | Accessory


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@dataclass
class ImageAsset:
    """An image stored on the image host."""

    name: str
    url: str
    public_id: str
    created_at: str | None = None


# ---------------------------------------------------------------------------
# Dashboard statistics
# ---------------------------------------------------------------------------


@dataclass
class ChatStats:
    total_conversations: int
    unread_conversations: int
    active_today: int
    pending_replies: int


@dataclass
class InventoryStats:
    by_category: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Shared DTO (used by the agent proxy and the live chat client)
# ---------------------------------------------------------------------------


class AgentMessage(BaseModel):
    """A single message in an agent conversation."""

    role: str = Field(description="Message role: 'user', 'assistant' or 'system'")
    content: str = Field(description="Message content")
