"""
Unit conversions for billing usage amounts.

Billing exports report storage, memory and network usage in a handful of
informational units. These helpers translate them into the units the
estimators' coefficients are expressed in.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Union

BYTES_PER_GIGABYTE = 1073741824  # 2 ** 30
BYTES_PER_TERABYTE = 1099511627776  # 2 ** 40
SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24

Timestamp = Union[date, datetime]


def convert_byte_seconds_to_terabyte_hours(usage_amount: float) -> float:
    """Convert byte-seconds to terabyte-hours (bytes to TB, then seconds to hours)."""
    return usage_amount / BYTES_PER_TERABYTE / SECONDS_PER_HOUR


def convert_byte_seconds_to_gigabyte_hours(usage_amount: float) -> float:
    return usage_amount / BYTES_PER_GIGABYTE / SECONDS_PER_HOUR


def convert_bytes_to_gigabytes(usage_amount: float) -> float:
    return usage_amount / BYTES_PER_GIGABYTE


def convert_bytes_to_terabytes(usage_amount: float) -> float:
    return usage_amount / BYTES_PER_TERABYTE


def convert_terabytes_to_gigabytes(usage_amount: float) -> float:
    return usage_amount * 1000


def convert_gigabyte_hours_to_terabyte_hours(usage_amount: float) -> float:
    return usage_amount / 1000


def convert_gigabytes_to_terabyte_hours(usage_amount: float) -> float:
    """Convert gigabytes held for one day into terabyte-hours."""
    return (usage_amount / 1000) * HOURS_PER_DAY


def days_in_month(timestamp: Timestamp) -> int:
    """Number of days in the calendar month containing the timestamp.

    Aware datetimes are normalised to UTC before the month is taken.
    """
    if isinstance(timestamp, datetime) and timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return calendar.monthrange(timestamp.year, timestamp.month)[1]


def convert_gigabyte_months_to_terabyte_hours(
    usage_amount: float,
    timestamp: Timestamp
) -> float:
    """Convert gigabyte-months into terabyte-hours.

    The month length is the actual length of the calendar month containing
    the timestamp (28-31 days), matching how billing exports prorate
    monthly storage.

    Args:
        usage_amount: Amount in gigabyte-months
        timestamp: Day the usage was billed on

    Returns:
        Amount in terabyte-hours
    """
    return (usage_amount / 1000) * (HOURS_PER_DAY * days_in_month(timestamp))


def convert_gigabyte_months_to_gigabyte_hours(
    usage_amount: float,
    timestamp: Timestamp
) -> float:
    return usage_amount * HOURS_PER_DAY * days_in_month(timestamp)
