"""
Data models for billing export rows.

Defines the decoded usage row the estimation engine consumes.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Union


class UsageUnit(Enum):
    """Normalized units a usage amount can be reported in."""
    SECONDS = "seconds"
    HOURS = "hours"
    VCPU_HOURS = "vcpu-hours"
    BYTE_SECONDS = "byte-seconds"
    GIGABYTE_HOURS = "gigabyte-hours"
    GIGABYTE_MONTHS = "gigabyte-months"
    BYTES = "bytes"
    GIGABYTES = "gigabytes"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "UsageUnit":
        """Map a provider's unit spelling onto a UsageUnit.

        Unrecognized spellings map to UNKNOWN rather than raising, since
        billing exports carry many units with no power semantics.
        """
        if not raw:
            return cls.UNKNOWN
        return _UNIT_ALIASES.get(raw.strip().lower(), cls.UNKNOWN)


_UNIT_ALIASES = {
    "seconds": UsageUnit.SECONDS,
    "second": UsageUnit.SECONDS,
    "s": UsageUnit.SECONDS,
    "hours": UsageUnit.HOURS,
    "hour": UsageUnit.HOURS,
    "hrs": UsageUnit.HOURS,
    "h": UsageUnit.HOURS,
    "vcpu-hours": UsageUnit.VCPU_HOURS,
    "vcpu-hour": UsageUnit.VCPU_HOURS,
    "byte-seconds": UsageUnit.BYTE_SECONDS,
    "byte-second": UsageUnit.BYTE_SECONDS,
    "gibibyte hour": UsageUnit.GIGABYTE_HOURS,
    "gibibyte-hours": UsageUnit.GIGABYTE_HOURS,
    "gb-hours": UsageUnit.GIGABYTE_HOURS,
    "gb-hrs": UsageUnit.GIGABYTE_HOURS,
    "gibibyte month": UsageUnit.GIGABYTE_MONTHS,
    "gibibyte-months": UsageUnit.GIGABYTE_MONTHS,
    "gb-mo": UsageUnit.GIGABYTE_MONTHS,
    "gb-month": UsageUnit.GIGABYTE_MONTHS,
    "bytes": UsageUnit.BYTES,
    "byte": UsageUnit.BYTES,
    "gibibyte": UsageUnit.GIGABYTES,
    "gigabytes": UsageUnit.GIGABYTES,
    "gb": UsageUnit.GIGABYTES,
}


@dataclass(frozen=True)
class UsageRow:
    """One decoded line of a cloud billing export.

    Rows are produced by the billing export source for a query window and
    are never modified afterwards. The usage amount is interpreted in the
    row's usage unit; cost is carried through to the estimates untouched.
    """
    timestamp: Union[date, datetime]
    cloud_provider: str
    account_id: str
    account_name: str
    service_name: str
    usage_type: str
    usage_unit: str
    usage_amount: float
    cost: float
    region: Optional[str] = None
    machine_type: Optional[str] = None
    replication_factor: Optional[int] = None

    @property
    def day(self) -> date:
        """The billing day this row belongs to.

        Aware datetimes are normalised to UTC first, matching the month
        used for GB-month proration.
        """
        if isinstance(self.timestamp, datetime):
            if self.timestamp.tzinfo is not None:
                return self.timestamp.astimezone(timezone.utc).date()
            return self.timestamp.date()
        return self.timestamp

    @property
    def unit(self) -> UsageUnit:
        return UsageUnit.parse(self.usage_unit)
