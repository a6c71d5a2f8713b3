"""Dashboard overview statistics."""

from __future__ import annotations

from collections.abc import Sequence

from salesdesk.domain.conversations import is_today_label
from salesdesk.domain.models import (
    CATEGORIES,
    STOCK_STATUSES,
    ChatStats,
    Contact,
    InventoryStats,
    Product,
)


def chat_stats(contacts: Sequence[Contact]) -> ChatStats:
    return ChatStats(
        total_conversations=len(contacts),
        unread_conversations=sum(1 for c in contacts if c.unread > 0),
        active_today=sum(1 for c in contacts if is_today_label(c.time or "")),
        pending_replies=sum(c.unread for c in contacts),
    )


def inventory_stats(products: Sequence[Product]) -> InventoryStats:
    """Count products per category (empty categories omitted) and per stock status."""
    by_category = {
        category: count
        for category in CATEGORIES
        if (count := sum(1 for p in products if p.category == category))
    }
    by_status = {
        status: sum(1 for p in products if p.status == status) for status in STOCK_STATUSES
    }
    return InventoryStats(by_category=by_category, by_status=by_status)
