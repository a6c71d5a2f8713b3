"""Tests for SqlCatalogStore on SQLite."""

import pytest

from salesdesk.application.exceptions import (
    NotConfiguredError,
    ProxyRequestError,
    RecordNotFoundError,
    UpstreamError,
)
from salesdesk.infrastructure.catalog_store import SqlCatalogStore


class TestCatalogStore:
    def test_rows_ordered_by_row_number(self, store):
        store.insert_row("desktops", {"brand": "HP"})
        store.insert_row("desktops", {"brand": "Lenovo"})
        assert [r["brand"] for r in store.list_rows("desktops")] == ["HP", "Lenovo"]
        assert [r["row_number"] for r in store.list_rows("desktops")] == [1, 2]

    def test_blank_integer_becomes_null(self, store):
        row = store.insert_row("laptops", {"brand": "Dell", "ram_gb": "", "storage_gb": "512"})
        assert row["ram_gb"] is None
        assert row["storage_gb"] == 512

    def test_update_ignores_read_only_columns(self, store):
        row = store.insert_row("accessories", {"accessories_name": "Mouse"})
        updated = store.update_row(
            "accessories", row["row_number"], {"row_number": 50, "accessories_name": "Keyboard"}
        )
        assert updated["row_number"] == row["row_number"]
        assert updated["accessories_name"] == "Keyboard"

    def test_update_unknown_row(self, store):
        with pytest.raises(RecordNotFoundError, match="No laptops row with id 7"):
            store.update_row("laptops", 7, {"brand": "x"})

    def test_delete_unknown_row_is_silent(self, store):
        store.delete_row("laptops", 7)
        assert store.list_rows("laptops") == []

    def test_chat_messages(self, store):
        store.insert_chat_message("c1", "hello", role="user")
        row = store.insert_chat_message("c1", "hi there")
        assert row["role"] == "assistant"
        assert [r["content"] for r in store.list_chats()] == ["hi there", "hello"]

    def test_describe_table(self, store):
        columns = {c["name"]: c for c in store.describe_table("accessories")}
        assert set(columns) == {
            "row_number",
            "accessories_name",
            "price_range_inr",
            "stock_quantity",
            "image_url_1",
            "image_url_2",
            "updated_at",
        }
        with pytest.raises(ProxyRequestError):
            store.describe_table("missing")

    def test_unconfigured_store(self):
        store = SqlCatalogStore("")
        store.connect()
        assert store.engine is None
        with pytest.raises(NotConfiguredError, match="Database connection not configured"):
            store.list_tables()

    def test_sql_errors_become_upstream_errors(self, tmp_path):
        store = SqlCatalogStore(f"sqlite:///{tmp_path / 'empty.sqlite'}")
        store.connect()
        try:
            with pytest.raises(UpstreamError) as excinfo:
                store.list_rows("laptops")
            assert excinfo.value.status_code == 500
        finally:
            store.close()
