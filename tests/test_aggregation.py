"""
Unit tests for daily aggregation.

Tests accumulation by day/service/region/account, ordering, and
total preservation.
"""

from datetime import date

import pytest

from cloud_footprint.core.aggregation import (
    EstimationResult,
    aggregate_estimates_by_day,
    append_or_accumulate_estimates_by_day,
    reaggregate,
    total_co2e,
    total_kilowatt_hours,
)
from cloud_footprint.core.estimators import FootprintEstimate


def _estimate(**overrides) -> FootprintEstimate:
    data = dict(
        timestamp=date(2020, 10, 28),
        kilowatt_hours=1.0,
        co2e=0.5,
        uses_average_cpu_constant=False,
        cloud_provider="GCP",
        account_id="acct-1",
        account_name="Account One",
        service_name="Compute Engine",
        cost=10.0,
        region="us-east1",
    )
    data.update(overrides)
    return FootprintEstimate(**data)


class TestAppendOrAccumulate:
    """Test the single-step accumulation."""

    def test_new_day_creates_entry(self):
        results = {}
        append_or_accumulate_estimates_by_day(results, _estimate())
        assert list(results) == [date(2020, 10, 28)]
        assert len(results[date(2020, 10, 28)]) == 1

    def test_matching_key_accumulates(self):
        """Same day, service, region and account sum instead of overwriting."""
        results = {}
        append_or_accumulate_estimates_by_day(results, _estimate(kilowatt_hours=1.0, co2e=0.5, cost=10))
        append_or_accumulate_estimates_by_day(results, _estimate(kilowatt_hours=2.0, co2e=1.0, cost=5))

        merged = results[date(2020, 10, 28)]
        assert len(merged) == 1
        assert merged[0].kilowatt_hours == 3.0
        assert merged[0].co2e == 1.5
        assert merged[0].cost == 15

    def test_average_flag_is_sticky(self):
        """The merged line uses the average constant if any contributing row did."""
        results = {}
        append_or_accumulate_estimates_by_day(results, _estimate(uses_average_cpu_constant=True))
        append_or_accumulate_estimates_by_day(results, _estimate(uses_average_cpu_constant=False))
        assert results[date(2020, 10, 28)][0].uses_average_cpu_constant is True

    @pytest.mark.parametrize("override", [
        {"service_name": "Cloud SQL"},
        {"region": "us-west1"},
        {"account_id": "acct-2"},
    ])
    def test_different_key_appends(self, override):
        results = {}
        append_or_accumulate_estimates_by_day(results, _estimate())
        append_or_accumulate_estimates_by_day(results, _estimate(**override))
        assert len(results[date(2020, 10, 28)]) == 2

    def test_merged_entry_keeps_position(self):
        results = {}
        append_or_accumulate_estimates_by_day(results, _estimate(service_name="A"))
        append_or_accumulate_estimates_by_day(results, _estimate(service_name="B"))
        append_or_accumulate_estimates_by_day(results, _estimate(service_name="A"))
        names = [e.service_name for e in results[date(2020, 10, 28)]]
        assert names == ["A", "B"]


class TestAggregateByDay:
    """Test whole-run aggregation."""

    def test_days_in_first_seen_order(self):
        """Days are not re-sorted chronologically."""
        estimates = [
            _estimate(timestamp=date(2020, 11, 2)),
            _estimate(timestamp=date(2020, 10, 28)),
            _estimate(timestamp=date(2020, 11, 2), service_name="Cloud SQL"),
        ]
        results = aggregate_estimates_by_day(estimates)
        assert [r.timestamp for r in results] == [date(2020, 11, 2), date(2020, 10, 28)]
        assert [e.service_name for e in results[0].service_estimates] == [
            "Compute Engine", "Cloud SQL"]

    def test_days_are_unique(self):
        estimates = [_estimate(timestamp=date(2020, 10, d % 3 + 1)) for d in range(12)]
        results = aggregate_estimates_by_day(estimates)
        days = [r.timestamp for r in results]
        assert len(days) == len(set(days)) == 3

    def test_total_preserved(self):
        """Sum of kWh over the result equals sum over the input."""
        estimates = [
            _estimate(timestamp=date(2020, 10, 1 + i % 4),
                      service_name=["A", "B", "C"][i % 3],
                      kilowatt_hours=0.1 * (i + 1),
                      co2e=0.01 * (i + 1))
            for i in range(30)
        ]
        results = aggregate_estimates_by_day(estimates)
        assert total_kilowatt_hours(results) == pytest.approx(
            sum(e.kilowatt_hours for e in estimates), rel=1e-12)
        assert total_co2e(results) == pytest.approx(
            sum(e.co2e for e in estimates), rel=1e-12)

    def test_reaggregation_is_idempotent(self):
        estimates = [
            _estimate(service_name="A"),
            _estimate(service_name="A"),
            _estimate(service_name="B", region="us-west1"),
            _estimate(timestamp=date(2020, 11, 2)),
        ]
        results = aggregate_estimates_by_day(estimates)
        assert reaggregate(results) == results

    def test_empty_input(self):
        assert aggregate_estimates_by_day([]) == []


class TestSerialization:
    """Test outbound dictionaries."""

    def test_to_dict_uses_camel_case_keys(self):
        result = EstimationResult(timestamp=date(2020, 10, 28),
                                  service_estimates=[_estimate()])
        data = result.to_dict()
        assert data["timestamp"] == "2020-10-28"
        line = data["serviceEstimates"][0]
        assert line["kilowattHours"] == 1.0
        assert line["usesAverageCPUConstant"] is False
        assert line["serviceName"] == "Compute Engine"
        assert line["accountId"] == "acct-1"
