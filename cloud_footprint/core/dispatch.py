"""
Usage-row classification.

Decides which estimator, if any, a billing row belongs to. Rows that do
not describe power-drawing resources (support fees, licences, ingress
traffic, request counts) classify as UNKNOWN and are skipped.
"""

from enum import Enum
from typing import Tuple

from .constants import UsageClassification
from cloud_footprint.billing.models import UsageRow, UsageUnit


class ResourceKind(Enum):
    """Resource kinds with an estimator, plus the explicit skip variant."""
    COMPUTE = "compute"
    SSD_STORAGE = "ssd_storage"
    HDD_STORAGE = "hdd_storage"
    NETWORKING = "networking"
    MEMORY = "memory"
    UNKNOWN = "unknown"


COMPUTE_UNITS = (UsageUnit.SECONDS, UsageUnit.HOURS, UsageUnit.VCPU_HOURS)
CAPACITY_UNITS = (
    UsageUnit.BYTE_SECONDS,
    UsageUnit.GIGABYTE_HOURS,
    UsageUnit.GIGABYTE_MONTHS,
)
TRANSFER_UNITS = (UsageUnit.BYTES, UsageUnit.GIGABYTES)


def _contains_any(usage_type: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword in usage_type for keyword in keywords)


def classify_usage(row: UsageRow, classification: UsageClassification) -> ResourceKind:
    """Classify a usage row by its unit and usage-type keywords.

    Order of precedence:
    1. Excluded usage types (fees, licences) are never estimated
    2. Capacity units: memory, then SSD, then HDD storage
    3. Time units: compute
    4. Transfer units: ingress is skipped, egress is networking

    Args:
        row: Usage row to classify
        classification: Provider keyword lists

    Returns:
        The ResourceKind, UNKNOWN when no estimator applies
    """
    usage_type = (row.usage_type or "").lower()
    unit = row.unit

    if _contains_any(usage_type, classification.excluded):
        return ResourceKind.UNKNOWN

    if unit in CAPACITY_UNITS:
        if _contains_any(usage_type, classification.memory):
            return ResourceKind.MEMORY
        if _contains_any(usage_type, classification.ssd):
            return ResourceKind.SSD_STORAGE
        if _contains_any(usage_type, classification.hdd):
            return ResourceKind.HDD_STORAGE
        return ResourceKind.UNKNOWN

    if unit in COMPUTE_UNITS:
        if _contains_any(usage_type, classification.compute):
            return ResourceKind.COMPUTE
        return ResourceKind.UNKNOWN

    if unit in TRANSFER_UNITS:
        # Inbound transfer is not metered for power
        if _contains_any(usage_type, classification.ingress):
            return ResourceKind.UNKNOWN
        if _contains_any(usage_type, classification.networking):
            return ResourceKind.NETWORKING
        return ResourceKind.UNKNOWN

    return ResourceKind.UNKNOWN
