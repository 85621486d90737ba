"""Run queries through the sqlite3 command-line tool and decode its output.

Builds of sqlite3 differ in which output flags they support, so the query is
tried in JSON mode first and then in header + comma-separated list mode.
Both decoders produce the same ChatRow shape.
"""

import json
import re
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .contacts import INDIVIDUAL_SUFFIX

SQLITE_BIN = "sqlite3"
QUERY_LIMIT = 200
DEFAULT_TIMEOUT = 30

# user@server JIDs, or bare digits when the column was stored as a number
JID_RE = re.compile(r"^(?:[\w.+:-]+@[\w.-]+|\d+)$")


class QueryExecutionFailed(RuntimeError):
    """Every output mode failed to run the query."""

    def __init__(self, message, stderr=""):
        super().__init__(message)
        self.stderr = stderr


class DecodeFailure(ValueError):
    """sqlite3 output was readable but not in the expected shape."""


@dataclass(frozen=True)
class ChatRow:
    jid: str
    name: str | None = None
    last_date: float | None = None
    preview: str | None = None


def build_query(include_groups=False):
    if include_groups:
        where = "ZCONTACTJID IS NOT NULL"
    else:
        where = f"ZCONTACTJID LIKE '%{INDIVIDUAL_SUFFIX}'"
    return (
        "SELECT ZCONTACTJID AS jid, ZPARTNERNAME AS name, "
        "ZLASTMESSAGEDATE AS lastDate, ZLASTMESSAGETEXT AS preview "
        f"FROM ZWACHATSESSION WHERE {where} "
        f"ORDER BY ZLASTMESSAGEDATE DESC LIMIT {QUERY_LIMIT};"
    )


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def _to_text(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value if value != "" else None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _make_row(record):
    """Coerce a loosely typed record into a ChatRow, or None if it has no valid jid."""
    jid = _to_text(record.get("jid"))
    if not jid or not JID_RE.match(jid):
        return None
    return ChatRow(
        jid=jid,
        name=_to_text(record.get("name")),
        last_date=_to_number(record.get("lastDate")),
        preview=_to_text(record.get("preview")),
    )


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

def decode_json(text):
    """Decode `sqlite3 -json` output (an array of objects)."""
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeFailure(f"invalid JSON output: {e}") from e
    if not isinstance(data, list):
        raise DecodeFailure(f"expected a JSON array, got {type(data).__name__}")

    rows = []
    for item in data:
        if not isinstance(item, dict):
            continue
        row = _make_row(item)
        if row:
            rows.append(row)
    return rows


def decode_table(text):
    """
    Decode `sqlite3 -header -list -separator ,` output.

    The first line holds column names. Values are split on commas with no
    quoting support, so a comma inside a name or preview shifts the columns
    after it. Missing cells come back as None.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    header = [col.strip() for col in lines[0].split(",")]
    if "jid" not in header:
        raise DecodeFailure(f"no jid column in header: {lines[0][:80]!r}")

    rows = []
    for line in lines[1:]:
        values = line.split(",")
        record = dict(zip(header, values))
        # Lines of a multi-line preview have no JID in the first field.
        row = _make_row(record)
        if row:
            rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Output modes
# ---------------------------------------------------------------------------

class OutputMode(ABC):
    name: str
    flags: list[str]

    def command(self, sqlite_bin, db_path, sql):
        return [sqlite_bin, *self.flags, str(db_path), sql]

    @abstractmethod
    def decode(self, text) -> list[ChatRow]:
        ...


class JsonMode(OutputMode):
    name = "json"
    flags = ["-json"]

    def decode(self, text):
        return decode_json(text)


class TableMode(OutputMode):
    name = "table"
    flags = ["-header", "-list", "-separator", ","]

    def decode(self, text):
        return decode_table(text)


# Tried in order; only the last one may raise.
OUTPUT_MODES = (JsonMode(), TableMode())


def _run(cmd, timeout):
    """Run cmd, returning (returncode, stdout, stderr)."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        return 127, "", f"{cmd[0]}: command not found"
    except subprocess.TimeoutExpired:
        return -1, "", f"{cmd[0]} timed out after {timeout}s"
    except OSError as e:
        return 126, "", f"{cmd[0]}: {e}"
    return result.returncode, result.stdout, result.stderr


def run_query(db_path, sql, sqlite_bin=SQLITE_BIN, timeout=DEFAULT_TIMEOUT):
    """Run sql against db_path, returning a list of ChatRow."""
    last = OUTPUT_MODES[-1]
    for mode in OUTPUT_MODES:
        code, stdout, stderr = _run(mode.command(sqlite_bin, db_path, sql), timeout)

        if code != 0:
            if mode is last:
                raise QueryExecutionFailed(
                    f"sqlite3 query failed (exit {code}): {stderr.strip()[:200]}",
                    stderr=stderr,
                )
            print(f"Warning: sqlite3 {mode.name} mode exited {code}, retrying", file=sys.stderr)
            continue

        try:
            return mode.decode(stdout)
        except DecodeFailure as e:
            if mode is last:
                print(f"Warning: could not decode sqlite3 output: {e}", file=sys.stderr)
                return []
            print(f"Warning: sqlite3 {mode.name} output unusable ({e}), retrying", file=sys.stderr)

    return []
