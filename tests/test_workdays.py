"""Working-day calendar helpers — parsing, weekend detection, spans."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from leavetracker.leave.workdays import (
    is_weekend,
    next_working_day,
    parse_calendar_date,
    working_day_span,
)


class TestParseCalendarDate:

    def test_plain_date_passes_through(self):
        assert parse_calendar_date(date(2024, 6, 10)) == date(2024, 6, 10)

    def test_iso_string(self):
        assert parse_calendar_date("2024-06-10") == date(2024, 6, 10)

    def test_zulu_timestamp_keeps_its_day(self):
        assert parse_calendar_date("2024-06-10T23:30:00.000Z") == date(2024, 6, 10)

    def test_offset_timestamp_uses_utc_day(self):
        """23:30 at UTC-5 is 04:30 next day in UTC, same as the datetime form."""
        text = "2024-06-10T23:30:00-05:00"
        assert parse_calendar_date(text) == date(2024, 6, 11)
        assert parse_calendar_date(text) == parse_calendar_date(datetime.fromisoformat(text))

    def test_naive_timestamp_taken_as_utc(self):
        assert parse_calendar_date("2024-06-10T23:30:00") == date(2024, 6, 10)

    def test_aware_datetime_uses_utc_day(self):
        # 01:00 on the 11th in UTC+5:30 is still the 10th in UTC
        ist = timezone(timedelta(hours=5, minutes=30))
        assert parse_calendar_date(datetime(2024, 6, 11, 1, 0, tzinfo=ist)) == date(2024, 6, 10)

    @pytest.mark.parametrize("value", ["", "10/06/2024", "not-a-date", 20240610, None])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            parse_calendar_date(value)


class TestIsWeekend:

    def test_saturday_and_sunday(self):
        assert is_weekend(date(2024, 6, 8))
        assert is_weekend(date(2024, 6, 9))

    def test_weekdays(self):
        for day in range(10, 15):  # Mon 10 .. Fri 14 June 2024
            assert not is_weekend(date(2024, 6, day))


class TestWorkingDaySpan:

    def test_zero_count_is_empty(self):
        assert working_day_span(date(2024, 6, 10), 0) == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            working_day_span(date(2024, 6, 10), -1)

    def test_within_one_week(self):
        """Mon + 3 → Mon, Tue, Wed."""
        assert working_day_span(date(2024, 6, 10), 3) == [
            date(2024, 6, 10),
            date(2024, 6, 11),
            date(2024, 6, 12),
        ]

    def test_friday_start_skips_weekend(self):
        """Fri 2024-06-07 + 3 → Fri, Mon, Tue."""
        assert working_day_span(date(2024, 6, 7), 3) == [
            date(2024, 6, 7),
            date(2024, 6, 10),
            date(2024, 6, 11),
        ]

    def test_weekend_start_moves_to_monday(self):
        assert working_day_span(date(2024, 6, 8), 2) == [
            date(2024, 6, 10),
            date(2024, 6, 11),
        ]

    def test_span_never_contains_weekends(self):
        span = working_day_span(date(2024, 1, 1), 60)
        assert len(span) == 60
        assert len(set(span)) == 60
        assert not any(is_weekend(d) for d in span)
        assert span == sorted(span)

    def test_next_working_day(self):
        assert next_working_day(date(2024, 6, 7)) == date(2024, 6, 7)
        assert next_working_day(date(2024, 6, 9)) == date(2024, 6, 10)
