"""Shared utilities for wachats."""

import math
from datetime import datetime, timedelta, timezone

COCOA_EPOCH_OFFSET = 978307200  # seconds between 1970-01-01 and 2001-01-01
COCOA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def _as_seconds(value):
    """Coerce a native timestamp to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return seconds


def cocoa_to_millis(cocoa_seconds):
    """Convert Core Data seconds (since 2001-01-01) to Unix epoch milliseconds."""
    seconds = _as_seconds(cocoa_seconds)
    if seconds is None:
        return None
    return round(seconds * 1000) + COCOA_EPOCH_OFFSET * 1000


def cocoa_to_datetime(cocoa_seconds):
    """
    Convert Core Data seconds (since 2001-01-01) to an aware UTC datetime.

    Precision is one millisecond. Returns None for missing or non-numeric
    values instead of raising.
    """
    seconds = _as_seconds(cocoa_seconds)
    if seconds is None:
        return None
    try:
        return COCOA_EPOCH + timedelta(milliseconds=round(seconds * 1000))
    except OverflowError:
        return None
