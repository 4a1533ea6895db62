"""
Per-resource footprint estimators.

Each estimator turns one usage row of its resource kind into energy
(kilowatt-hours) and emissions (kg CO2e). Provider differences come only
from the CloudConstants table passed in, never from estimator subclasses.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple

import structlog

from .constants import CloudConstants, MachineType
from .units import (
    SECONDS_PER_HOUR,
    convert_byte_seconds_to_gigabyte_hours,
    convert_byte_seconds_to_terabyte_hours,
    convert_bytes_to_gigabytes,
    convert_gigabyte_hours_to_terabyte_hours,
    convert_gigabyte_months_to_gigabyte_hours,
    convert_gigabyte_months_to_terabyte_hours,
)
from cloud_footprint.billing.models import UsageRow, UsageUnit

logger = structlog.get_logger()


@dataclass(frozen=True)
class FootprintEstimate:
    """Energy and emissions estimate for one row, or a merged group of rows."""
    timestamp: date
    kilowatt_hours: float
    co2e: float
    uses_average_cpu_constant: bool
    cloud_provider: str
    account_id: str
    account_name: str
    service_name: str
    cost: float
    region: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "kilowattHours": self.kilowatt_hours,
            "co2e": self.co2e,
            "usesAverageCPUConstant": self.uses_average_cpu_constant,
            "cloudProvider": self.cloud_provider,
            "accountId": self.account_id,
            "accountName": self.account_name,
            "serviceName": self.service_name,
            "cost": self.cost,
            "region": self.region,
        }


def estimate_co2(
    kilowatt_hours: float,
    region: Optional[str],
    constants: CloudConstants
) -> Tuple[float, str]:
    """Convert kilowatt-hours to kg CO2e using the region's grid factor.

    Returns:
        Tuple of (co2e, region label). Unknown regions use the provider's
        default factor and are labelled "Unknown".
    """
    factor, region_label = constants.get_emissions_factor(region)
    if region_label != region:
        logger.debug("region_fallback", region=region, provider=constants.provider)
    return kilowatt_hours * factor, region_label


def sanitize_usage_amount(row: UsageRow) -> float:
    """Usage amount as a finite non-negative float.

    Billing exports occasionally emit degenerate rows (NaN, negative
    corrections, blanks). Those are treated as zero usage.
    """
    try:
        amount = float(row.usage_amount)
    except (TypeError, ValueError):
        amount = math.nan
    if not math.isfinite(amount) or amount < 0:
        logger.debug(
            "usage_amount_clamped",
            usage_amount=row.usage_amount,
            usage_type=row.usage_type,
        )
        return 0.0
    return amount


def resolve_replication_factor(row: UsageRow, constants: CloudConstants) -> int:
    """Explicit row replication factor, else the provider's rule, else 1."""
    if row.replication_factor is not None and row.replication_factor >= 1:
        return row.replication_factor
    return constants.get_replication_factor(row.service_name, row.usage_type)


def build_estimate(
    row: UsageRow,
    kilowatt_hours: float,
    constants: CloudConstants,
    uses_average_cpu_constant: bool = False
) -> FootprintEstimate:
    co2e, region = estimate_co2(kilowatt_hours, row.region, constants)
    return FootprintEstimate(
        timestamp=row.day,
        kilowatt_hours=kilowatt_hours,
        co2e=co2e,
        uses_average_cpu_constant=uses_average_cpu_constant,
        cloud_provider=row.cloud_provider,
        account_id=row.account_id,
        account_name=row.account_name,
        service_name=row.service_name,
        cost=row.cost,
        region=region,
    )


class ComputeEstimator:
    """Estimates energy drawn by vCPUs.

    kWh = watts per vCPU * vCPU-hours * PUE * replication / 1000, where the
    watts come from the machine type's processor at the provider's average
    utilization, or from the provider's fallback wattage when the machine
    type is unknown.
    """

    def estimate(self, row: UsageRow, constants: CloudConstants) -> FootprintEstimate:
        amount = sanitize_usage_amount(row)
        machine_type = constants.get_machine_type(row.machine_type)
        watts, used_average = constants.get_watts_per_vcpu(machine_type)
        if used_average:
            logger.debug(
                "machine_type_fallback",
                machine_type=row.machine_type,
                provider=constants.provider,
                watts=watts,
            )

        vcpu_hours = self._vcpu_hours(amount, row.unit, machine_type)
        replication_factor = resolve_replication_factor(row, constants)
        kilowatt_hours = (
            watts * vcpu_hours * constants.pue * replication_factor / 1000
        )
        return build_estimate(row, kilowatt_hours, constants, used_average)

    @staticmethod
    def _vcpu_hours(
        amount: float,
        unit: UsageUnit,
        machine_type: Optional[MachineType]
    ) -> float:
        if unit == UsageUnit.SECONDS:
            return amount / SECONDS_PER_HOUR
        if unit == UsageUnit.HOURS and machine_type is not None and machine_type.vcpus:
            # Instance-hours: every vCPU of the instance ran for each hour
            return amount * machine_type.vcpus
        return amount


class StorageEstimator:
    """Estimates energy drawn by one storage class (SSD or HDD).

    The coefficient is in Wh per terabyte-hour.
    """

    def __init__(self, coefficient: float):
        self.coefficient = coefficient

    def estimate(self, row: UsageRow, constants: CloudConstants) -> FootprintEstimate:
        amount = sanitize_usage_amount(row)
        terabyte_hours = self._terabyte_hours(amount, row)
        replication_factor = resolve_replication_factor(row, constants)
        # Each replica draws power independently
        kilowatt_hours = (
            terabyte_hours * self.coefficient * constants.pue * replication_factor / 1000
        )
        return build_estimate(row, kilowatt_hours, constants)

    @staticmethod
    def _terabyte_hours(amount: float, row: UsageRow) -> float:
        unit = row.unit
        if unit == UsageUnit.GIGABYTE_HOURS:
            return convert_gigabyte_hours_to_terabyte_hours(amount)
        if unit == UsageUnit.GIGABYTE_MONTHS:
            return convert_gigabyte_months_to_terabyte_hours(amount, row.timestamp)
        return convert_byte_seconds_to_terabyte_hours(amount)


class NetworkingEstimator:
    """Estimates energy for data transferred out of the provider's network.

    The coefficient is in kWh per gigabyte.
    """

    def __init__(self, coefficient: float):
        self.coefficient = coefficient

    def estimate(self, row: UsageRow, constants: CloudConstants) -> FootprintEstimate:
        amount = sanitize_usage_amount(row)
        if row.unit == UsageUnit.GIGABYTES:
            gigabytes = amount
        else:
            gigabytes = convert_bytes_to_gigabytes(amount)
        kilowatt_hours = gigabytes * self.coefficient * constants.pue
        return build_estimate(row, kilowatt_hours, constants)


class MemoryEstimator:
    """Estimates energy drawn by provisioned memory.

    The coefficient is in kWh per gigabyte-hour.
    """

    def __init__(self, coefficient: float):
        self.coefficient = coefficient

    def estimate(self, row: UsageRow, constants: CloudConstants) -> FootprintEstimate:
        amount = sanitize_usage_amount(row)
        unit = row.unit
        if unit == UsageUnit.GIGABYTE_HOURS:
            gigabyte_hours = amount
        elif unit == UsageUnit.GIGABYTE_MONTHS:
            gigabyte_hours = convert_gigabyte_months_to_gigabyte_hours(amount, row.timestamp)
        else:
            gigabyte_hours = convert_byte_seconds_to_gigabyte_hours(amount)
        replication_factor = resolve_replication_factor(row, constants)
        kilowatt_hours = (
            gigabyte_hours * self.coefficient * constants.pue * replication_factor
        )
        return build_estimate(row, kilowatt_hours, constants)
