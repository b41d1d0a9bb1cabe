"""Leave-cycle policy — start parsing, expiry, days remaining."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from leavetracker.leave.cycle import (
    cycle_expired,
    days_remaining_in_cycle,
    parse_cycle_start,
)
from tests.conftest import utc


class TestParseCycleStart:

    def test_zulu_string(self):
        assert parse_cycle_start("2024-01-15T00:00:00Z") == utc(2024, 1, 15)

    def test_naive_datetime_is_utc(self):
        assert parse_cycle_start(datetime(2024, 1, 15, 8)) == utc(2024, 1, 15, 8)

    def test_offset_is_normalized_to_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        parsed = parse_cycle_start(datetime(2024, 1, 15, 5, 30, tzinfo=ist))
        assert parsed == utc(2024, 1, 15)
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_missing_or_invalid_is_none(self, value):
        assert parse_cycle_start(value) is None


class TestCycleExpired:

    def test_fresh_cycle_not_expired(self):
        start = utc(2024, 1, 15)
        assert not cycle_expired(start, start)

    def test_day_364_not_expired(self):
        start = utc(2024, 1, 15)
        assert not cycle_expired(start, start + timedelta(days=364, hours=23))

    def test_day_365_expired(self):
        start = utc(2024, 1, 15)
        assert cycle_expired(start, start + timedelta(days=365))

    def test_missing_start_is_expired(self):
        assert cycle_expired(None, utc(2024, 6, 10))

    def test_unreadable_start_is_expired(self):
        assert cycle_expired("garbage", utc(2024, 6, 10))

    def test_custom_cycle_length(self):
        start = utc(2024, 1, 1)
        assert cycle_expired(start, utc(2024, 1, 31), cycle_days=30)
        assert not cycle_expired(start, utc(2024, 1, 30), cycle_days=30)


class TestDaysRemaining:

    def test_counts_down(self):
        start = utc(2024, 1, 1)
        assert days_remaining_in_cycle(start, utc(2024, 1, 11)) == 355

    def test_never_negative(self):
        assert days_remaining_in_cycle(utc(2020, 1, 1), utc(2024, 1, 1)) == 0

    def test_missing_start_reports_full_cycle(self):
        assert days_remaining_in_cycle(None, utc(2024, 1, 1), cycle_days=30) == 30
