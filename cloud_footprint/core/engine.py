"""
Footprint estimation engine.

Dispatches usage rows to the estimator for their resource kind and folds
the resulting estimates into per-day results. The engine is synchronous
and holds no state between runs; the constants tables it is built from
are shared read-only.
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

import structlog

from .aggregation import (
    EstimationResult,
    MutableEstimationResult,
    append_or_accumulate_estimates_by_day,
    to_estimation_results,
)
from .constants import CLOUD_CONSTANTS_BY_PROVIDER, CloudConstants, get_cloud_constants
from .dispatch import ResourceKind, classify_usage
from .estimators import (
    ComputeEstimator,
    FootprintEstimate,
    MemoryEstimator,
    NetworkingEstimator,
    StorageEstimator,
)
from cloud_footprint.billing.models import UsageRow
from cloud_footprint.billing.repository import BillingExportSource

logger = structlog.get_logger()


Estimator = Union[ComputeEstimator, StorageEstimator, NetworkingEstimator, MemoryEstimator]


@dataclass(frozen=True)
class ProviderEstimators:
    """The estimator instances configured for one provider."""
    constants: CloudConstants
    compute: ComputeEstimator
    ssd_storage: StorageEstimator
    hdd_storage: StorageEstimator
    networking: NetworkingEstimator
    memory: MemoryEstimator
    _by_kind: Mapping[ResourceKind, Optional[Estimator]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, "_by_kind", MappingProxyType({
            ResourceKind.COMPUTE: self.compute,
            ResourceKind.SSD_STORAGE: self.ssd_storage,
            ResourceKind.HDD_STORAGE: self.hdd_storage,
            ResourceKind.NETWORKING: self.networking,
            ResourceKind.MEMORY: self.memory,
            ResourceKind.UNKNOWN: None,
        }))

    @classmethod
    def from_constants(cls, constants: CloudConstants) -> "ProviderEstimators":
        return cls(
            constants=constants,
            compute=ComputeEstimator(),
            ssd_storage=StorageEstimator(constants.ssd_coefficient),
            hdd_storage=StorageEstimator(constants.hdd_coefficient),
            networking=NetworkingEstimator(constants.networking_coefficient),
            memory=MemoryEstimator(constants.memory_coefficient),
        )

    def for_kind(self, kind: ResourceKind) -> Optional[Estimator]:
        """Estimator for a resource kind, None for UNKNOWN."""
        return self._by_kind[kind]


class FootprintEngine:
    """Turns batches of usage rows into per-day footprint estimates."""

    def __init__(self, constants_by_provider: Optional[Dict[str, CloudConstants]] = None):
        """Build estimators for every provider with a constants table.

        Args:
            constants_by_provider: Provider tables; defaults to the built-ins
        """
        self.constants_by_provider = (
            CLOUD_CONSTANTS_BY_PROVIDER if constants_by_provider is None
            else constants_by_provider
        )
        self._estimators: Dict[str, ProviderEstimators] = {
            constants.provider: ProviderEstimators.from_constants(constants)
            for constants in self.constants_by_provider.values()
        }

    def estimate_row(self, row: UsageRow) -> Optional[FootprintEstimate]:
        """Estimate a single row.

        Returns:
            The estimate, or None when the row has no estimator (unknown
            provider or a usage type without power semantics)
        """
        constants = get_cloud_constants(row.cloud_provider, self.constants_by_provider)
        if constants is None:
            logger.debug("usage_row_skipped", reason="unknown_provider",
                         cloud_provider=row.cloud_provider)
            return None

        estimators = self._estimators[constants.provider]
        kind = classify_usage(row, constants.classification)
        estimator = estimators.for_kind(kind)
        if estimator is None:
            logger.debug("usage_row_skipped", reason="unknown_usage_type",
                         usage_type=row.usage_type, usage_unit=row.usage_unit,
                         service_name=row.service_name)
            return None

        return estimator.estimate(row, constants)

    def estimate_rows(self, rows: Iterable[UsageRow]) -> List[EstimationResult]:
        """Estimate a batch of rows and aggregate them by day.

        Rows are processed in the order given so floating point totals are
        reproducible.

        Args:
            rows: Usage rows from a billing export

        Returns:
            One EstimationResult per day, in first-seen day order
        """
        results: MutableEstimationResult = {}
        row_count = 0
        skipped = 0
        for row in rows:
            row_count += 1
            estimate = self.estimate_row(row)
            if estimate is None:
                skipped += 1
                continue
            append_or_accumulate_estimates_by_day(results, estimate)

        logger.info(
            "estimation_run_complete",
            rows=row_count,
            skipped=skipped,
            days=len(results),
        )
        return to_estimation_results(results)

    def get_estimates(
        self,
        source: BillingExportSource,
        start: date,
        end: date
    ) -> List[EstimationResult]:
        """Fetch rows for [start, end) from a billing export and estimate them.

        Errors raised by the source propagate unchanged.
        """
        rows = source.get_usage_rows(start, end)
        return self.estimate_rows(rows)
