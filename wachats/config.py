"""Configuration loader: all settings go through here.

config.json lives in the config directory (default ~/.config/wachats) and is
read once by init(). Recognized keys:

    dbPath          path to ChatStorage.sqlite (~ is expanded)
    defaultCountry  region code used when a number has no country code, e.g. "US"
    includeGroups   list group chats too
    sqlitePath      sqlite3 binary to run
    queryTimeout    seconds before a sqlite3 call is abandoned
    notify_command  shell command that receives error notifications on stdin
"""

import json
import os
import subprocess
import sys
from pathlib import Path

from .sqlite_cli import DEFAULT_TIMEOUT, SQLITE_BIN

DEFAULT_CONFIG_DIR = "~/.config/wachats"
DEFAULT_DB = "~/Library/Group Containers/group.net.whatsapp.WhatsApp.shared/ChatStorage.sqlite"

_config = None  # Set once at startup


def init(config_dir=None, overrides=None):
    """Called by CLI to load config.json and apply command-line overrides."""
    global _config
    config_dir = Path(os.path.expanduser(config_dir or DEFAULT_CONFIG_DIR))
    cfg = {}
    path = config_dir / "config.json"
    if path.exists():
        cfg = json.loads(path.read_text())
        if not isinstance(cfg, dict):
            raise ValueError(f"{path} must contain a JSON object")
    for key, value in (overrides or {}).items():
        if value is not None:
            cfg[key] = value
    _config = cfg


def load_config() -> dict:
    if _config is None:
        raise RuntimeError("config.init() must be called before reading settings")
    return dict(_config)


def resolve_path(p: str | None) -> Path:
    raw = (p or "").strip() or DEFAULT_DB
    return Path(os.path.expanduser(raw))


def get_db_path() -> Path:
    return resolve_path(load_config().get("dbPath"))


def get_default_country() -> str | None:
    country = (load_config().get("defaultCountry") or "").strip()
    return country.upper() or None


def include_groups() -> bool:
    value = load_config().get("includeGroups", False)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def get_sqlite_binary() -> str:
    return os.path.expanduser(load_config().get("sqlitePath") or SQLITE_BIN)


def get_query_timeout() -> float:
    try:
        return float(load_config().get("queryTimeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT


def notify(message: str):
    """Send a notification via the user's configured notify_command. No-op if not set."""
    cmd = load_config().get("notify_command")
    if not cmd:
        return
    cmd = os.path.expanduser(cmd)
    try:
        subprocess.run(cmd, input=message, text=True, timeout=30, shell=True)
    except (OSError, subprocess.SubprocessError) as e:
        print(f"Warning: notification failed: {e}", file=sys.stderr)
