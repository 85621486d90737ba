"""CLI entry point: list, search and link recent WhatsApp chats."""

import argparse
import json
import os
import shutil
import subprocess
import sys

from . import config
from .recent_chats import build_entries, failure_message, load_recent_chats, search
from .snapshot import PERMISSION_HINT, SourceUnreadable
from .sqlite_cli import QueryExecutionFailed
from .utils import cocoa_to_millis


def _positive_int(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def _load_entries(query=None):
    rows = load_recent_chats()
    entries = build_entries(rows, config.get_default_country())
    return search(entries, query)


def _entry_to_dict(e):
    return {
        "jid": e.jid,
        "name": e.row.name,
        "digits": e.digits,
        "title": e.title,
        "subtitle": e.subtitle,
        "lastMessage": e.when.isoformat() if e.when else None,
        "lastMessageMs": cocoa_to_millis(e.row.last_date),
        "preview": e.row.preview,
        "link": e.link,
    }


def cmd_list(parsed):
    entries = _load_entries(parsed.query)
    if parsed.limit is not None:
        entries = entries[:parsed.limit]

    if parsed.json:
        print(json.dumps([_entry_to_dict(e) for e in entries], indent=2, ensure_ascii=False))
        return 0

    if not entries:
        print("No chats found.")
        return 0

    for e in entries:
        stamp = e.when.astimezone().strftime("%m/%d %H:%M") if e.when else "--/-- --:--"
        tag = " (group)" if e.is_group else ""
        print(f"[{stamp}] {e.title}{tag}  {e.subtitle}")
        if e.row.preview:
            preview = " ".join(e.row.preview.split())
            print(f"    {preview[:100]}")
    return 0


def cmd_link(parsed):
    entries = _load_entries(parsed.query)
    if not entries:
        print(f"No chat matches '{parsed.query}'", file=sys.stderr)
        return 1
    for e in entries:
        if e.link:
            print(e.link)
            return 0
    # Only groups (or unparseable JIDs) matched
    print(f"No phone number for {entries[0].title}; JID: {entries[0].jid}", file=sys.stderr)
    return 1


def cmd_doctor(parsed):
    """Check the sqlite3 binary and database access, like the old setup script."""
    ok = True
    sqlite_bin = config.get_sqlite_binary()
    found = shutil.which(sqlite_bin)
    if found:
        try:
            result = subprocess.run([found, "--version"], capture_output=True, text=True, timeout=10)
            print(f"sqlite3: {found} ({result.stdout.strip() or 'unknown version'})")
        except (OSError, subprocess.SubprocessError) as e:
            print(f"sqlite3: {found} failed to run: {e}")
            ok = False
    else:
        print(f"sqlite3: '{sqlite_bin}' not found. Install it, e.g. brew install sqlite3")
        ok = False

    db_path = config.get_db_path()
    if not db_path.exists():
        print(f"database: {db_path} not found. Use WhatsApp Desktop at least once.")
        ok = False
    elif not os.access(db_path, os.R_OK):
        print(f"database: {db_path} is not readable. {PERMISSION_HINT}")
        ok = False
    else:
        print(f"database: {db_path}")

    country = config.get_default_country()
    print(f"default country: {country or '(none)'}")
    print(f"include groups: {'yes' if config.include_groups() else 'no'}")
    return 0 if ok else 1


def main(args=None):
    """Run the CLI. Returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="wachats",
        description="Search recent WhatsApp Desktop chats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wachats list                         # 200 most recent 1:1 chats
  wachats list alice --groups          # Search, including group chats
  wachats link alice                   # whatsapp:// link for the first match
  wachats doctor                       # Check sqlite3 and database access
        """,
    )
    parser.add_argument("--config-dir", help="Directory holding config.json (default ~/.config/wachats)")
    parser.add_argument("--db", help="Path to ChatStorage.sqlite")
    parser.add_argument("--country", help="Default country code for numbers, e.g. US")
    parser.add_argument("--groups", action="store_true", default=None, help="Include group chats")

    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List recent chats")
    p_list.add_argument("query", nargs="?", help="Only chats matching every word")
    p_list.add_argument("--json", action="store_true", help="Print JSON")
    p_list.add_argument("--limit", "-n", type=_positive_int, help="Show at most N chats")
    p_list.set_defaults(func=cmd_list)

    p_link = sub.add_parser("link", help="Print the deep link for a chat")
    p_link.add_argument("query", help="Name, number or JID to match")
    p_link.set_defaults(func=cmd_link)

    p_doctor = sub.add_parser("doctor", help="Check setup")
    p_doctor.set_defaults(func=cmd_doctor)

    parsed = parser.parse_args(args)

    try:
        config.init(parsed.config_dir, overrides={
            "dbPath": parsed.db,
            "defaultCountry": parsed.country,
            "includeGroups": parsed.groups,
        })
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"Error: could not load config.json: {e}", file=sys.stderr)
        return 1

    try:
        return parsed.func(parsed)
    except (SourceUnreadable, QueryExecutionFailed) as e:
        message = failure_message(e)
        print(message, file=sys.stderr)
        config.notify(message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
