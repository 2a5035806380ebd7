"""Tests for the UTC clock and SigV4 date formats."""

from datetime import datetime, timedelta, timezone

import pytest

from s3direct.timeutil import (
    basic_date,
    basic_date_time,
    iso_date_time,
    parse_basic_date_time,
    utc_now,
)


class TestFormats:
    """Fixed-format renderings of one instant."""

    def test_basic_date(self, now):
        assert basic_date(now) == "20240115"

    def test_basic_date_time(self, now):
        assert basic_date_time(now) == "20240115T123045Z"

    def test_iso_date_time(self, now):
        assert iso_date_time(now) == "2024-01-15T12:30:45.000Z"

    def test_zero_padding(self):
        """Single-digit fields are zero-padded."""
        instant = datetime(2024, 3, 5, 1, 2, 3, tzinfo=timezone.utc)
        assert basic_date_time(instant) == "20240305T010203Z"
        assert basic_date(instant) == "20240305"

    def test_day_is_prefix_of_date_time(self, now):
        """The scope day always equals the date part of the timestamp."""
        assert basic_date_time(now).startswith(basic_date(now))

    def test_non_utc_is_converted(self):
        """An aware non-UTC instant is rendered in UTC."""
        plus_two = timezone(timedelta(hours=2))
        instant = datetime(2024, 1, 16, 1, 0, 0, tzinfo=plus_two)
        assert basic_date_time(instant) == "20240115T230000Z"
        assert basic_date(instant) == "20240115"

    def test_naive_rejected(self):
        """A naive datetime is a caller error."""
        with pytest.raises(ValueError):
            basic_date(datetime(2024, 1, 15))


class TestClock:
    def test_utc_now_is_aware_utc(self):
        current = utc_now()
        assert current.tzinfo is not None
        assert current.utcoffset() == timedelta(0)
        assert current.microsecond == 0

    def test_parse_round_trip(self, now):
        assert parse_basic_date_time(basic_date_time(now)) == now

    def test_parse_rejects_other_formats(self):
        with pytest.raises(ValueError):
            parse_basic_date_time("2024-01-15T12:30:45Z")
