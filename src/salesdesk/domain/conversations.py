"""Conversation list logic: contact derivation, relative-time labels, filters.

The chat store only holds individual message rows.  Contacts are derived
from them, and the chat list filters and sorts contacts on the human-readable
relative-time label (``"5m ago"``, ``"2d ago"``, ``"Just now"``, or an
absolute date) rather than on a real timestamp.  The label heuristics are
intentionally lossy and must stay that way until the chat source emits an
absolute timestamp per contact.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from itertools import groupby
from typing import Any, Literal

from pyuca import Collator

from salesdesk.domain.models import ChatMessage, ChatRow, Contact

UnreadFilter = Literal["all", "unread", "read"]
DateFilter = Literal["all", "today", "week", "month"]
SortOption = Literal["date-desc", "date-asc", "unread", "name-asc", "name-desc"]

JUST_NOW = "Just now"
MAX_UNREAD_BADGE = 9

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_PHONE_DIGITS = re.compile(r"\d{10,15}")
_ABSOLUTE_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%d %b %Y", "%b %d, %Y")
_UNIT_MS = {"m ago": 60_000, "h ago": 3_600_000, "d ago": 86_400_000}

# Unicode collation, independent of the process locale
_COLLATOR = Collator()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _to_epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return int(moment.timestamp() * 1000)


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse a database/ISO timestamp into an aware datetime."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        try:
            moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Relative-time labels
# ---------------------------------------------------------------------------


def format_relative_time(moment: datetime, now: datetime | None = None) -> str:
    """Render *moment* as the chat list label relative to *now*."""
    now = now or _utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    diff_mins = int((now - moment).total_seconds() // 60)
    diff_hours = diff_mins // 60
    diff_days = diff_hours // 24

    if diff_mins < 1:
        return JUST_NOW
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"
    return moment.strftime("%m/%d/%Y")


def parse_relative_time(label: str, now: datetime | None = None) -> int:
    """Estimate epoch milliseconds for a relative-time label.

    ``"Just now"`` maps to *now*; ``"Nm ago"`` / ``"Nh ago"`` / ``"Nd ago"``
    subtract N minutes / hours / days; anything else is parsed as a date and
    falls back to ``0`` (the epoch) when that fails.
    """
    now_ms = _to_epoch_ms(now or _utcnow())
    if label == JUST_NOW:
        return now_ms

    for suffix, unit_ms in _UNIT_MS.items():
        if suffix in label:
            amount = _leading_int(label)
            if amount is not None:
                return now_ms - amount * unit_ms
            break

    parsed = _parse_timestamp(label)
    if parsed is not None:
        return _to_epoch_ms(parsed)
    for fmt in _ABSOLUTE_DATE_FORMATS:
        try:
            return _to_epoch_ms(datetime.strptime(label, fmt))
        except ValueError:
            continue
    return 0


def is_today_label(label: str) -> bool:
    return "m ago" in label or "h ago" in label or label == JUST_NOW


def _within_days(label: str, max_days: int) -> bool:
    if "d ago" not in label:
        return True
    days = _leading_int(label)
    return days is None or days <= max_days


# ---------------------------------------------------------------------------
# Contact derivation from raw chat rows
# ---------------------------------------------------------------------------


def normalize_chat_rows(
    rows: Iterable[Mapping[str, Any]], now: datetime | None = None
) -> list[ChatRow]:
    """Drop rows without a contact and fill defaults for the rest."""
    now = now or _utcnow()
    normalized: list[ChatRow] = []
    for raw in rows:
        contact_uid = raw.get("contact_uid")
        if not contact_uid:
            continue
        raw_id = raw.get("id")
        normalized.append(
            ChatRow(
                id=str(raw_id) if raw_id is not None else uuid.uuid4().hex,
                contact_uid=str(contact_uid),
                content=raw.get("content") or "",
                role="assistant" if raw.get("role") == "assistant" else "user",
                created_at=_parse_timestamp(raw.get("created_at")) or now,
            )
        )
    return normalized


def _display_name_for(contact_uid: str) -> tuple[str, str]:
    """Return ``(display_name, phone_number)`` for a contact uid."""
    match = _PHONE_DIGITS.search(contact_uid)
    if not match:
        return f"Contact {contact_uid[:8]}", ""

    phone = match.group(0)
    if phone.startswith("91"):
        display = f"+{phone[:2]} {phone[2:7]} {phone[7:]}"
    elif len(phone) == 10:
        display = f"{phone[:5]} {phone[5:]}"
    else:
        display = f"+{phone}"
    return display, phone


def derive_contacts(rows: Iterable[ChatRow], now: datetime | None = None) -> list[Contact]:
    """Group chat rows per contact into chat-list summaries, newest first."""
    by_contact: dict[str, list[ChatRow]] = {}
    for row in rows:
        by_contact.setdefault(row.contact_uid, []).append(row)

    latest: dict[str, datetime] = {}
    contacts: list[Contact] = []
    for contact_uid, contact_rows in by_contact.items():
        contact_rows.sort(key=lambda r: r.created_at, reverse=True)
        last = contact_rows[0]
        latest[contact_uid] = last.created_at
        unread = sum(1 for r in contact_rows if r.role == "user")
        name, phone = _display_name_for(contact_uid)
        contacts.append(
            Contact(
                id=contact_uid,
                name=name,
                phone_number=phone,
                last_message=last.content,
                time=format_relative_time(last.created_at, now),
                unread=min(unread, MAX_UNREAD_BADGE),
            )
        )

    contacts.sort(key=lambda c: latest[c.id], reverse=True)
    return contacts


def messages_for_contact(rows: Iterable[ChatRow], contact_id: str) -> list[ChatMessage]:
    """Return one conversation's messages, oldest first."""
    selected = sorted((r for r in rows if r.contact_uid == contact_id), key=lambda r: r.created_at)
    return [
        ChatMessage(
            id=r.id,
            contact_id=r.contact_uid,
            message=r.content,
            sender="agent" if r.role == "assistant" else "user",
            timestamp=r.created_at,
        )
        for r in selected
    ]


def group_messages_by_day(messages: Iterable[ChatMessage]) -> list[tuple[date, list[ChatMessage]]]:
    """Group already-ordered messages by calendar day."""
    return [
        (day, list(items)) for day, items in groupby(messages, key=lambda m: m.timestamp.date())
    ]


# ---------------------------------------------------------------------------
# Chat list filtering and sorting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContactFilters:
    """Current chat-list UI state."""

    search: str = ""
    unread: UnreadFilter = "all"
    date: DateFilter = "all"
    sort: SortOption = "date-desc"

    @property
    def is_active(self) -> bool:
        """True when a non-default date or unread filter is applied (sort is ignored)."""
        return self.date != "all" or self.unread != "all"

    def cleared(self) -> ContactFilters:
        """Reset date, unread and sort to their defaults, keeping the search text."""
        return replace(self, unread="all", date="all", sort="date-desc")


def matches_search(contact: Contact, term: str) -> bool:
    term_lower = term.lower()
    return (
        term_lower in (contact.name or "").lower()
        or term_lower in (contact.last_message or "").lower()
        or term in (contact.phone_number or "")
    )


def _matches_unread(contact: Contact, unread: UnreadFilter) -> bool:
    if unread == "unread":
        return contact.unread > 0
    if unread == "read":
        return contact.unread == 0
    return True


def _matches_date(contact: Contact, date_filter: DateFilter) -> bool:
    label = contact.time or ""
    if date_filter == "today":
        return is_today_label(label)
    if date_filter == "week":
        return _within_days(label, 7)
    if date_filter == "month":
        return _within_days(label, 30)
    return True


def filter_contacts(contacts: Iterable[Contact], filters: ContactFilters) -> list[Contact]:
    return [
        c
        for c in contacts
        if matches_search(c, filters.search)
        and _matches_unread(c, filters.unread)
        and _matches_date(c, filters.date)
    ]


def _name_key(contact: Contact) -> tuple[int, ...]:
    return _COLLATOR.sort_key(contact.name or "")


def sort_contacts(
    contacts: Iterable[Contact], sort: SortOption, now: datetime | None = None
) -> list[Contact]:
    """Order contacts for display.  All sorts are stable."""
    now = now or _utcnow()
    items = list(contacts)
    if sort == "date-desc":
        return sorted(items, key=lambda c: parse_relative_time(c.time or "", now), reverse=True)
    if sort == "date-asc":
        return sorted(items, key=lambda c: parse_relative_time(c.time or "", now))
    if sort == "unread":
        return sorted(items, key=lambda c: c.unread, reverse=True)
    if sort == "name-asc":
        return sorted(items, key=_name_key)
    if sort == "name-desc":
        return sorted(items, key=_name_key, reverse=True)
    return items


def apply_contact_filters(
    contacts: Iterable[Contact], filters: ContactFilters, now: datetime | None = None
) -> list[Contact]:
    """Filter then sort: the visible chat list for the current UI state."""
    return sort_contacts(filter_contacts(contacts, filters), filters.sort, now)
