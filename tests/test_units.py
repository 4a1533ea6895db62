"""
Unit tests for unit conversions.

Tests informational unit conversions and calendar-aware month handling.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from cloud_footprint.core.units import (
    convert_byte_seconds_to_gigabyte_hours,
    convert_byte_seconds_to_terabyte_hours,
    convert_bytes_to_gigabytes,
    convert_bytes_to_terabytes,
    convert_gigabyte_hours_to_terabyte_hours,
    convert_gigabyte_months_to_gigabyte_hours,
    convert_gigabyte_months_to_terabyte_hours,
    convert_gigabytes_to_terabyte_hours,
    convert_terabytes_to_gigabytes,
    days_in_month,
)


class TestByteConversions:
    """Test byte and byte-second conversions."""

    def test_byte_seconds_to_terabyte_hours(self):
        """One terabyte held for one hour is one terabyte-hour."""
        assert convert_byte_seconds_to_terabyte_hours(2 ** 40 * 3600) == 1.0

    def test_byte_seconds_to_gigabyte_hours(self):
        """One gigabyte held for one hour is one gigabyte-hour."""
        assert convert_byte_seconds_to_gigabyte_hours(2 ** 30 * 3600) == 1.0

    def test_bytes_to_gigabytes(self):
        assert convert_bytes_to_gigabytes(1073741824) == 1.0
        assert convert_bytes_to_gigabytes(536870912) == 0.5

    def test_bytes_to_terabytes(self):
        assert convert_bytes_to_terabytes(1099511627776) == 1.0

    def test_terabytes_to_gigabytes(self):
        assert convert_terabytes_to_gigabytes(2.5) == 2500.0

    def test_gigabyte_hours_to_terabyte_hours(self):
        assert convert_gigabyte_hours_to_terabyte_hours(1500) == 1.5

    def test_gigabytes_to_terabyte_hours(self):
        """Gigabytes are held for one full day."""
        assert convert_gigabytes_to_terabyte_hours(1000) == 24.0

    @pytest.mark.parametrize("value", [0, 1, 3.6e12, 123456789.0, 1e18])
    def test_terabyte_hours_binary_ratio_to_gigabyte_hours(self, value):
        """Byte conversions are binary: a terabyte is 1024 gigabytes."""
        assert convert_byte_seconds_to_terabyte_hours(value) == pytest.approx(
            convert_byte_seconds_to_gigabyte_hours(value) / 1024, rel=1e-9
        )
        assert convert_bytes_to_terabytes(value) == pytest.approx(
            convert_bytes_to_gigabytes(value) / 1024, rel=1e-9
        )

    def test_zero_maps_to_zero(self):
        """Verify zero usage converts to zero in every unit."""
        assert convert_byte_seconds_to_terabyte_hours(0) == 0
        assert convert_byte_seconds_to_gigabyte_hours(0) == 0
        assert convert_bytes_to_gigabytes(0) == 0
        assert convert_bytes_to_terabytes(0) == 0
        assert convert_gigabyte_months_to_terabyte_hours(0, date(2021, 2, 1)) == 0


class TestMonthConversions:
    """Test conversions that depend on the calendar month."""

    @pytest.mark.parametrize("day, expected", [
        (date(2021, 2, 10), 28),
        (date(2020, 2, 10), 29),  # Leap year
        (date(2021, 4, 30), 30),
        (date(2021, 10, 1), 31),
    ])
    def test_days_in_month(self, day, expected):
        assert days_in_month(day) == expected

    def test_aware_datetime_uses_utc_month(self):
        """An aware timestamp late on Jan 31 west of UTC is already February in UTC."""
        eastern = timezone(timedelta(hours=-5))
        timestamp = datetime(2021, 1, 31, 22, 0, tzinfo=eastern)
        assert days_in_month(timestamp) == 28

    def test_gigabyte_months_to_terabyte_hours_uses_actual_month_length(self):
        """Verify February and October produce different TB-hours."""
        # 1000 GB-months = 1 TB-month = 24 * days TB-hours
        assert convert_gigabyte_months_to_terabyte_hours(1000, date(2021, 2, 1)) == 24 * 28
        assert convert_gigabyte_months_to_terabyte_hours(1000, date(2021, 10, 1)) == 24 * 31

    def test_gigabyte_months_to_gigabyte_hours(self):
        assert convert_gigabyte_months_to_gigabyte_hours(2, date(2021, 4, 5)) == 2 * 24 * 30
