"""Database proxy: product CRUD and chat log actions on the catalog store.

Actions are either fixed (``list-tables``, ``describe-table``, ``get-chats``,
``send-message``) or ``<verb>-<category>`` where the verb is one of
get/add/update/delete and the category accepts its singular or plural name
(``get-laptop`` and ``get-laptops`` are the same action).

The store is synchronous; routes call :meth:`DatabaseProxy.dispatch` from a
worker thread.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from salesdesk.application.exceptions import ProxyRequestError, UnknownActionError
from salesdesk.application.use_cases.result import ProxyResult, require
from salesdesk.domain.models import Category
from salesdesk.domain.products import resolve_category
from salesdesk.domain.protocols import ICatalogStore

CRUD_VERBS = ("get", "add", "update", "delete")


def parse_crud_action(action: str) -> tuple[str, Category] | None:
    """Split ``update-laptop`` into ``("update", "laptops")``; ``None`` if it isn't one."""
    verb, _, noun = action.partition("-")
    if verb not in CRUD_VERBS or not noun:
        return None
    category = resolve_category(noun)
    return (verb, category) if category else None


def _row_number(data: Mapping[str, Any] | None) -> int:
    (raw_id,) = require(data, "id", message="data.id (row number) is required")
    try:
        return int(raw_id)
    except (TypeError, ValueError) as exc:
        raise ProxyRequestError(f"Invalid row id: {raw_id!r}") from exc


class DatabaseProxy:
    """Runs one database action against the catalog store."""

    def __init__(self, store: ICatalogStore) -> None:
        self.store = store

    def dispatch(self, action: str, data: Mapping[str, Any] | None) -> ProxyResult:
        logger.info("Database proxy | action={}", action)

        if action == "list-tables":
            return ProxyResult(self.store.list_tables())
        if action == "describe-table":
            (table,) = require(data, "table")
            return ProxyResult(self.store.describe_table(str(table)))
        if action == "get-chats":
            return ProxyResult(self.store.list_chats())
        if action == "send-message":
            contact_id, message = require(data, "contactId", "message")
            return ProxyResult(self.store.insert_chat_message(str(contact_id), str(message)))

        parsed = parse_crud_action(action)
        if parsed is None:
            raise UnknownActionError(action)
        verb, category = parsed
        return self._crud(verb, category, data)

    def _crud(
        self, verb: str, category: Category, data: Mapping[str, Any] | None
    ) -> ProxyResult:
        if verb == "get":
            return ProxyResult(self.store.list_rows(category))

        if verb == "add":
            return ProxyResult(self.store.insert_row(category, data or {}))
        if verb == "update":
            row_number = _row_number(data)
            return ProxyResult(self.store.update_row(category, row_number, data or {}))

        self.store.delete_row(category, _row_number(data))
        return ProxyResult({"success": True})
