"""Tests for shared date helpers."""

from datetime import date, datetime

from rental_booking.utils import (
    combine_date_time,
    format_api_datetime,
    parse_date,
    rental_days_between,
)


class TestFormatApiDatetime:
    def test_format(self):
        assert format_api_datetime(datetime(2026, 2, 16, 9, 0)) == "2026-02-16 09:00:00"

    def test_keeps_seconds(self):
        assert format_api_datetime(datetime(2026, 2, 16, 9, 5, 7)) == "2026-02-16 09:05:07"


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2024-06-15") == date(2024, 6, 15)

    def test_api_datetime(self):
        assert parse_date("2026-02-16 09:00:00") == date(2026, 2, 16)

    def test_datetime_object(self):
        assert parse_date(datetime(2026, 2, 16, 9)) == date(2026, 2, 16)

    def test_date_object(self):
        assert parse_date(date(2026, 2, 16)) == date(2026, 2, 16)

    def test_blank_and_garbage(self):
        assert parse_date(None) is None
        assert parse_date("   ") is None
        assert parse_date("16.02.2026") is None
        assert parse_date("2026-02-30") is None


class TestCombineDateTime:
    def test_combines(self):
        assert combine_date_time("2026-02-16", "09:30") == datetime(2026, 2, 16, 9, 30)

    def test_strips_whitespace(self):
        assert combine_date_time(" 2026-02-16 ", " 09:30") == datetime(2026, 2, 16, 9, 30)

    def test_invalid(self):
        assert combine_date_time("2026-02-16", "25:00") is None
        assert combine_date_time("tomorrow", "09:00") is None
        assert combine_date_time(None, "09:00") is None


class TestRentalDays:
    def test_whole_days(self):
        assert rental_days_between(datetime(2026, 2, 16, 9), datetime(2026, 2, 19, 9)) == 3

    def test_started_day_counts(self):
        assert rental_days_between(datetime(2026, 2, 16, 9), datetime(2026, 2, 19, 9, 1)) == 4

    def test_short_rental(self):
        assert rental_days_between(datetime(2026, 2, 16, 9), datetime(2026, 2, 16, 18)) == 1
