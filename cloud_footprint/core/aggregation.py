"""
Daily aggregation of footprint estimates.

Merges per-row estimates into one line per day, service, region and
account. Days and lines keep the order they were first seen in the input.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .estimators import FootprintEstimate

# Caller-owned accumulator; dict insertion order is first-seen day order.
MutableEstimationResult = Dict[date, List[FootprintEstimate]]


@dataclass
class EstimationResult:
    """All service estimates for one day."""
    timestamp: date
    service_estimates: List[FootprintEstimate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "serviceEstimates": [
                estimate.to_dict() for estimate in self.service_estimates
            ],
        }


def _merge_key(estimate: FootprintEstimate) -> Tuple[str, str, str]:
    return (estimate.service_name, estimate.region, estimate.account_id)


def _find_matching_index(
    estimates: List[FootprintEstimate],
    key: Tuple[str, str, str]
) -> Optional[int]:
    for index, existing in enumerate(estimates):
        if _merge_key(existing) == key:
            return index
    return None


def _accumulate(existing: FootprintEstimate, new: FootprintEstimate) -> FootprintEstimate:
    return replace(
        existing,
        kilowatt_hours=existing.kilowatt_hours + new.kilowatt_hours,
        co2e=existing.co2e + new.co2e,
        cost=existing.cost + new.cost,
        uses_average_cpu_constant=(
            existing.uses_average_cpu_constant or new.uses_average_cpu_constant
        ),
    )


def append_or_accumulate_estimates_by_day(
    results: MutableEstimationResult,
    estimate: FootprintEstimate
) -> MutableEstimationResult:
    """Add an estimate to the accumulator, merging with a matching line.

    A line matches when it has the same day, service, region and account.
    Matching lines are summed (kWh, CO2e, cost) in place of the existing
    entry so its position is kept; the average-constant flag is set if
    either side used it. Otherwise the estimate is appended.

    Args:
        results: Accumulator owned by the caller, modified in place
        estimate: Estimate to add

    Returns:
        The same accumulator, for use in folds
    """
    day_estimates = results.setdefault(estimate.timestamp, [])
    index = _find_matching_index(day_estimates, _merge_key(estimate))
    if index is None:
        day_estimates.append(estimate)
    else:
        day_estimates[index] = _accumulate(day_estimates[index], estimate)
    return results


def to_estimation_results(results: MutableEstimationResult) -> List[EstimationResult]:
    return [
        EstimationResult(timestamp=day, service_estimates=list(estimates))
        for day, estimates in results.items()
    ]


def aggregate_estimates_by_day(
    estimates: Iterable[FootprintEstimate]
) -> List[EstimationResult]:
    """Fold estimates, in input order, into day-ordered results."""
    results: MutableEstimationResult = {}
    for estimate in estimates:
        append_or_accumulate_estimates_by_day(results, estimate)
    return to_estimation_results(results)


def reaggregate(results: Iterable[EstimationResult]) -> List[EstimationResult]:
    """Aggregate already aggregated results again.

    Aggregated output has no two lines sharing a key, so this returns an
    equal result; useful for combining results of several runs.
    """
    return aggregate_estimates_by_day(
        estimate
        for result in results
        for estimate in result.service_estimates
    )


def total_kilowatt_hours(results: Iterable[EstimationResult]) -> float:
    return sum(
        estimate.kilowatt_hours
        for result in results
        for estimate in result.service_estimates
    )


def total_co2e(results: Iterable[EstimationResult]) -> float:
    return sum(
        estimate.co2e
        for result in results
        for estimate in result.service_estimates
    )
