"""Shared fixtures for wachats tests."""

import json
import sqlite3
import tempfile

import pytest

from wachats import config


@pytest.fixture(autouse=True)
def config_dir(tmp_path):
    """Write a minimal config.json pointing at a per-test database and init config."""
    cfg = {
        "dbPath": str(tmp_path / "ChatStorage.sqlite"),
        "defaultCountry": "",
        "includeGroups": False,
    }
    (tmp_path / "config.json").write_text(json.dumps(cfg))
    config.init(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def temp_root(tmp_path, monkeypatch):
    """Send tempfile.mkdtemp() into a directory the test can inspect."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


def make_chat_db(db_path, sessions):
    """Create a ZWACHATSESSION table. Each session is (jid, name, last_date, preview)."""
    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE ZWACHATSESSION (
            Z_PK INTEGER PRIMARY KEY,
            ZCONTACTJID VARCHAR,
            ZPARTNERNAME VARCHAR,
            ZLASTMESSAGEDATE TIMESTAMP,
            ZLASTMESSAGETEXT VARCHAR
        )
    """)
    conn.executemany(
        "INSERT INTO ZWACHATSESSION (ZCONTACTJID, ZPARTNERNAME, ZLASTMESSAGEDATE, ZLASTMESSAGETEXT) "
        "VALUES (?, ?, ?, ?)",
        sessions,
    )
    conn.commit()
    conn.close()
    return db_path
