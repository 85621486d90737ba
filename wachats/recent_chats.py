"""Recent WhatsApp chats: snapshot, query, and build the searchable list."""

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode

from . import config
from .contacts import GROUP_SUFFIX, format_phone_number, jid_to_digits
from .snapshot import PERMISSION_HINT, snapshot
from .sqlite_cli import ChatRow, build_query, run_query
from .utils import cocoa_to_datetime


@dataclass(frozen=True)
class ChatEntry:
    row: ChatRow
    digits: str | None
    title: str
    subtitle: str
    when: datetime | None

    @property
    def jid(self):
        return self.row.jid

    @property
    def is_group(self):
        return self.row.jid.endswith(GROUP_SUFFIX)

    @property
    def link(self):
        return whatsapp_link(self.digits) if self.digits else None


def whatsapp_link(digits):
    """Deep link that opens the chat with digits, without a message body."""
    return "whatsapp://send?" + urlencode({"phone": digits, "text": ""})


def load_recent_chats():
    """Copy the configured database and return its most recent ChatRows."""
    sql = build_query(config.include_groups())
    with snapshot(config.get_db_path()) as snap:
        return run_query(
            snap.path, sql,
            sqlite_bin=config.get_sqlite_binary(),
            timeout=config.get_query_timeout(),
        )


def _to_entry(row, default_country):
    digits = jid_to_digits(row.jid, default_country)
    return ChatEntry(
        row=row,
        digits=digits,
        title=row.name or digits or row.jid,
        subtitle=f"+{format_phone_number(digits)}" if digits else row.jid,
        when=cocoa_to_datetime(row.last_date),
    )


def build_entries(rows, default_country=None):
    """Normalize rows into entries, newest first, undated last, one per JID."""
    seen = set()
    entries = []
    for row in rows:
        if row.jid in seen:
            continue
        seen.add(row.jid)
        entries.append(_to_entry(row, default_country))
    # sort is stable, so rows with equal dates keep query order
    dated = sorted((e for e in entries if e.when), key=lambda e: e.when, reverse=True)
    return dated + [e for e in entries if not e.when]


def search(entries, query):
    """Keep entries where every term appears in title, subtitle, jid, digits or preview."""
    terms = (query or "").lower().split()
    if not terms:
        return list(entries)
    matches = []
    for e in entries:
        haystack = " ".join(
            s for s in (e.title, e.subtitle, e.jid, e.digits, e.row.preview) if s
        ).lower()
        if all(t in haystack for t in terms):
            matches.append(e)
    return matches


def failure_message(exc):
    """User-facing text for a failed refresh."""
    return (
        f"Cannot read WhatsApp database: {exc} - "
        f"If this is a permissions issue: {PERMISSION_HINT}"
    )
