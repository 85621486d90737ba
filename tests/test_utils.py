"""Tests for wachats/utils.py: Core Data timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest

from wachats.utils import COCOA_EPOCH_OFFSET, cocoa_to_datetime, cocoa_to_millis


class TestCocoaToDatetime:
    def test_zero_is_2001(self):
        dt = cocoa_to_datetime(0)
        assert dt == datetime(2001, 1, 1, tzinfo=timezone.utc)
        assert dt.isoformat() == "2001-01-01T00:00:00+00:00"

    def test_offset_matches_unix_epoch(self):
        dt = cocoa_to_datetime(-COCOA_EPOCH_OFFSET)
        assert dt == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_real_value(self):
        # 2024-01-01T00:00:00Z
        assert cocoa_to_datetime(725760000) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_millisecond_precision(self):
        dt = cocoa_to_datetime(1.2344)
        assert dt.microsecond == 234000

    def test_numeric_string(self):
        assert cocoa_to_datetime("60") == datetime(2001, 1, 1, 0, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "  ", "abc", float("nan"), float("inf"), True, [], 1e300])
    def test_absent_or_bad_values(self, value):
        assert cocoa_to_datetime(value) is None

    def test_differences_are_preserved(self):
        for x, y in [(0, 1), (700000000.5, 12.25), (-5, 3)]:
            assert cocoa_to_datetime(x) - cocoa_to_datetime(y) == timedelta(seconds=x - y)


class TestCocoaToMillis:
    def test_zero(self):
        assert cocoa_to_millis(0) == 978307200000

    def test_affine(self):
        for x, y in [(0, 1), (700000000.5, 12.25), (-5, 3), (86400, 0)]:
            assert cocoa_to_millis(x) - cocoa_to_millis(y) == int((x - y) * 1000)

    def test_monotonic(self):
        values = [-10, 0, 0.001, 1, 725760000]
        millis = [cocoa_to_millis(v) for v in values]
        assert millis == sorted(millis)

    def test_none(self):
        assert cocoa_to_millis(None) is None
        assert cocoa_to_millis("not a number") is None
