"""Tests for contact derivation, relative-time labels and chat-list filters."""

from datetime import UTC, datetime, timedelta

import pytest

from salesdesk.domain.conversations import (
    ContactFilters,
    apply_contact_filters,
    derive_contacts,
    filter_contacts,
    format_relative_time,
    group_messages_by_day,
    is_today_label,
    matches_search,
    messages_for_contact,
    normalize_chat_rows,
    parse_relative_time,
    sort_contacts,
)
from salesdesk.domain.models import Contact


def _contact(name: str, unread: int = 0, time: str = "Just now", **kwargs) -> Contact:
    return Contact(
        id=kwargs.pop("id", name.lower()),
        name=name,
        phone_number=kwargs.pop("phone_number", ""),
        last_message=kwargs.pop("last_message", ""),
        time=time,
        unread=unread,
    )


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class TestRelativeTimeFormatting:
    @pytest.mark.parametrize(
        ("delta", "label"),
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=5), "5m ago"),
            (timedelta(minutes=59), "59m ago"),
            (timedelta(hours=3), "3h ago"),
            (timedelta(days=2), "2d ago"),
        ],
    )
    def test_recent_labels(self, now, delta, label):
        assert format_relative_time(now - delta, now) == label

    def test_older_than_a_week_is_absolute_date(self, now):
        assert format_relative_time(now - timedelta(days=10), now) == "06/05/2025"

    def test_naive_moment_treated_as_utc(self, now):
        naive = (now - timedelta(minutes=5)).replace(tzinfo=None)
        assert format_relative_time(naive, now) == "5m ago"


class TestRelativeTimeParsing:
    def test_just_now_is_now(self, now):
        assert parse_relative_time("Just now", now) == _ms(now)

    def test_minutes_hours_days(self, now):
        assert parse_relative_time("5m ago", now) == _ms(now - timedelta(minutes=5))
        assert parse_relative_time("3h ago", now) == _ms(now - timedelta(hours=3))
        assert parse_relative_time("2d ago", now) == _ms(now - timedelta(days=2))

    def test_absolute_date(self, now):
        assert parse_relative_time("06/01/2025", now) == _ms(datetime(2025, 6, 1, tzinfo=UTC))

    def test_unparseable_is_epoch(self, now):
        assert parse_relative_time("whenever", now) == 0
        assert parse_relative_time("", now) == 0


class TestTodayLabel:
    def test_today_labels(self):
        assert is_today_label("Just now")
        assert is_today_label("12m ago")
        assert is_today_label("4h ago")

    def test_not_today(self):
        assert not is_today_label("1d ago")
        assert not is_today_label("06/01/2025")


class TestSearch:
    def test_name_and_message_case_insensitive(self):
        contact = _contact("Alice", last_message="Need a Gaming Laptop")
        assert matches_search(contact, "ALI")
        assert matches_search(contact, "gaming")

    def test_phone_is_literal_substring(self):
        contact = _contact("Bob", phone_number="919876543210")
        assert matches_search(contact, "98765")
        assert not matches_search(contact, "+91")

    def test_empty_search_matches_everything(self):
        assert matches_search(_contact("Anyone"), "")


class TestFilters:
    def test_unread_and_read(self):
        contacts = [_contact("A", unread=2), _contact("B", unread=0)]
        assert [c.name for c in filter_contacts(contacts, ContactFilters(unread="unread"))] == ["A"]
        assert [c.name for c in filter_contacts(contacts, ContactFilters(unread="read"))] == ["B"]

    def test_today_filter(self):
        contacts = [_contact("A", time="5m ago"), _contact("B", time="1d ago")]
        assert [c.name for c in filter_contacts(contacts, ContactFilters(date="today"))] == ["A"]

    def test_week_filter_excludes_only_older_day_labels(self):
        contacts = [
            _contact("A", time="3d ago"),
            _contact("B", time="8d ago"),
            _contact("C", time="06/01/2020"),
        ]
        kept = [c.name for c in filter_contacts(contacts, ContactFilters(date="week"))]
        assert kept == ["A", "C"]

    def test_month_filter_threshold(self):
        contacts = [_contact("A", time="30d ago"), _contact("B", time="31d ago")]
        assert [c.name for c in filter_contacts(contacts, ContactFilters(date="month"))] == ["A"]

    def test_active_filter_detection_ignores_sort(self):
        assert not ContactFilters(sort="name-asc").is_active
        assert ContactFilters(unread="unread").is_active
        assert ContactFilters(date="week").is_active

    def test_cleared_resets_filters_and_sort(self):
        filters = ContactFilters(search="ali", unread="read", date="today", sort="unread")
        cleared = filters.cleared()
        assert cleared == ContactFilters(search="ali")
        assert not cleared.is_active


class TestSorting:
    def test_date_desc_and_asc(self, now):
        contacts = [_contact("Old", time="2d ago"), _contact("New", time="Just now")]
        assert [c.name for c in sort_contacts(contacts, "date-desc", now)] == ["New", "Old"]
        assert [c.name for c in sort_contacts(contacts, "date-asc", now)] == ["Old", "New"]

    def test_unread_sort_is_stable(self, now):
        contacts = [
            _contact("A", unread=1),
            _contact("B", unread=3),
            _contact("C", unread=1),
        ]
        assert [c.name for c in sort_contacts(contacts, "unread", now)] == ["B", "A", "C"]

    def test_equal_date_keys_do_not_raise(self, now):
        contacts = [_contact("A", time="garbage"), _contact("B", time="also garbage")]
        assert len(sort_contacts(contacts, "date-desc", now)) == 2

    def test_name_sorts(self, now):
        contacts = [_contact("charlie"), _contact("Alice"), _contact("bob")]
        ascending = [c.name for c in sort_contacts(contacts, "name-asc", now)]
        descending = [c.name for c in sort_contacts(contacts, "name-desc", now)]
        assert ascending == ["Alice", "bob", "charlie"]
        assert descending == ["charlie", "bob", "Alice"]

    def test_name_sort_ignores_case_and_accents(self, now):
        names = ["Bob", "alice", "Émile", "zoe"]
        contacts = [_contact(name) for name in names]
        ascending = [c.name for c in sort_contacts(contacts, "name-asc", now)]
        assert ascending == ["alice", "Bob", "Émile", "zoe"]


class TestFilterAndSortScenario:
    def test_unread_filter_with_date_sort(self, now):
        contacts = [
            _contact("Alice", unread=2, time="5m ago"),
            _contact("Bob", unread=0, time="3d ago"),
        ]
        result = apply_contact_filters(contacts, ContactFilters(unread="unread"), now)
        assert [c.name for c in result] == ["Alice"]


class TestContactDerivation:
    def _rows(self, now):
        return normalize_chat_rows(
            [
                {
                    "id": 1,
                    "contact_uid": "919876543210",
                    "content": "Hi",
                    "role": "user",
                    "created_at": (now - timedelta(hours=2)).isoformat(),
                },
                {
                    "id": 2,
                    "contact_uid": "919876543210",
                    "content": "Hello! How can I help?",
                    "role": "assistant",
                    "created_at": (now - timedelta(minutes=5)).isoformat(),
                },
                {
                    "id": 3,
                    "contact_uid": "abcdef123",
                    "content": "Price?",
                    "created_at": (now - timedelta(days=1)).isoformat(),
                },
                {"id": 4, "content": "orphan row"},
            ],
            now,
        )

    def test_rows_without_contact_are_dropped(self, now):
        rows = self._rows(now)
        assert len(rows) == 3
        assert rows[2].role == "user"

    def test_missing_timestamp_defaults_to_now(self, now):
        rows = normalize_chat_rows([{"contact_uid": "x"}], now)
        assert rows[0].created_at == now

    def test_contacts_newest_first_with_labels(self, now):
        contacts = derive_contacts(self._rows(now), now)
        assert [c.id for c in contacts] == ["919876543210", "abcdef123"]

        phone_contact = contacts[0]
        assert phone_contact.name == "+91 98765 43210"
        assert phone_contact.phone_number == "919876543210"
        assert phone_contact.last_message == "Hello! How can I help?"
        assert phone_contact.time == "5m ago"
        assert phone_contact.unread == 1

        other = contacts[1]
        assert other.name == "Contact abcdef12"
        assert other.phone_number == ""
        assert other.time == "1d ago"

    def test_ten_digit_and_other_numbers(self, now):
        rows = normalize_chat_rows(
            [
                {"contact_uid": "9876543210", "created_at": now.isoformat()},
                {"contact_uid": "14155550123", "created_at": now.isoformat()},
            ],
            now,
        )
        names = {c.id: c.name for c in derive_contacts(rows, now)}
        assert names["9876543210"] == "98765 43210"
        assert names["14155550123"] == "+14155550123"

    def test_unread_capped_at_nine(self, now):
        rows = normalize_chat_rows(
            [{"contact_uid": "c1", "role": "user", "created_at": now.isoformat()}] * 12, now
        )
        assert derive_contacts(rows, now)[0].unread == 9

    def test_messages_for_contact_oldest_first(self, now):
        messages = messages_for_contact(self._rows(now), "919876543210")
        assert [m.message for m in messages] == ["Hi", "Hello! How can I help?"]
        assert [m.sender for m in messages] == ["user", "agent"]

    def test_group_messages_by_day(self, now):
        rows = normalize_chat_rows(
            [
                {"contact_uid": "c", "content": "a", "created_at": "2025-06-13T10:00:00+00:00"},
                {"contact_uid": "c", "content": "b", "created_at": "2025-06-13T18:00:00+00:00"},
                {"contact_uid": "c", "content": "c", "created_at": "2025-06-14T09:00:00+00:00"},
            ],
            now,
        )
        groups = group_messages_by_day(messages_for_contact(rows, "c"))
        assert [(day.isoformat(), [m.message for m in msgs]) for day, msgs in groups] == [
            ("2025-06-13", ["a", "b"]),
            ("2025-06-14", ["c"]),
        ]
