"""Tests for dashboard statistics and quick-reply templates."""

from salesdesk.domain.dashboard import chat_stats, inventory_stats
from salesdesk.domain.models import Accessory, Contact, Laptop
from salesdesk.domain.templates import MESSAGE_TEMPLATES, find_templates


def _contact(id: str, unread: int, time: str) -> Contact:
    return Contact(id=id, name=id, phone_number="", last_message="", time=time, unread=unread)


class TestChatStats:
    def test_counts(self):
        stats = chat_stats(
            [
                _contact("a", 2, "5m ago"),
                _contact("b", 0, "Just now"),
                _contact("c", 3, "4d ago"),
            ]
        )
        assert stats.total_conversations == 3
        assert stats.unread_conversations == 2
        assert stats.active_today == 2
        assert stats.pending_replies == 5

    def test_empty(self):
        stats = chat_stats([])
        assert stats.total_conversations == 0
        assert stats.pending_replies == 0


class TestInventoryStats:
    def test_empty_categories_omitted_statuses_always_present(self):
        stats = inventory_stats(
            [
                Laptop(id="1", display_name="a", status="active"),
                Laptop(id="2", display_name="b", status="low_stock"),
                Accessory(id="3", display_name="c", status="out_of_stock"),
            ]
        )
        assert stats.by_category == {"laptops": 2, "accessories": 1}
        assert stats.by_status == {"active": 1, "low_stock": 1, "out_of_stock": 1}

    def test_no_products(self):
        stats = inventory_stats([])
        assert stats.by_category == {}
        assert stats.by_status == {"active": 0, "low_stock": 0, "out_of_stock": 0}


class TestTemplates:
    def test_empty_term_returns_everything(self):
        assert find_templates() == MESSAGE_TEMPLATES

    def test_search_omits_categories_without_match(self):
        found = find_templates("EMI")
        assert found == {"Pricing": ["EMI options are available. Shall I share the details?"]}

    def test_no_match(self):
        assert find_templates("refund") == {}
