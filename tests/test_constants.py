"""
Unit tests for provider constants.

Tests machine-type resolution, fallback wattage, emissions factor
lookups and replication factors.
"""

import pytest

from cloud_footprint.core.constants import (
    AWS_CLOUD_CONSTANTS,
    CLOUD_CONSTANTS_BY_PROVIDER,
    GCP_CLOUD_CONSTANTS,
    SKYLAKE,
    CASCADE_LAKE,
    UNKNOWN_REGION,
    ProcessorFamily,
    compute_median,
    get_cloud_constants,
    machine_series,
)


class TestComputeMedian:
    """Test median computation used for the fallback wattage."""

    def test_odd_count(self):
        assert compute_median([3.0, 1.0, 2.0]) == 2.0

    def test_even_count_interpolates(self):
        assert compute_median([4.0, 1.0, 3.0, 2.0]) == 2.5

    def test_order_independent(self):
        """Verify the result does not depend on input order."""
        values = [5.375, 1.08, 2.455, 3.28, 2.2]
        assert compute_median(values) == compute_median(list(reversed(values)))

    def test_empty_values_raises_error(self):
        with pytest.raises(ValueError, match="Values list cannot be empty"):
            compute_median([])


class TestProcessorFamily:
    """Test processor wattage at a utilization."""

    def test_average_watts_at_half_utilization(self):
        family = ProcessorFamily("Test", 1.0, 3.0)
        assert family.average_watts(50) == 2.0

    def test_average_watts_bounds(self):
        family = ProcessorFamily("Test", 1.0, 3.0)
        assert family.average_watts(0) == 1.0
        assert family.average_watts(100) == 3.0

    def test_max_below_min_raises_error(self):
        with pytest.raises(ValueError, match="max_watts"):
            ProcessorFamily("Broken", 4.0, 1.0)


class TestMachineTypes:
    """Test machine type resolution."""

    def test_exact_machine_type(self):
        machine_type = GCP_CLOUD_CONSTANTS.get_machine_type("n1-standard-4")
        assert machine_type.vcpus == 4
        assert machine_type.processor == SKYLAKE

    def test_lookup_is_case_insensitive(self):
        machine_type = AWS_CLOUD_CONSTANTS.get_machine_type("M5.XLarge")
        assert machine_type.vcpus == 4

    def test_series_match_has_unknown_vcpus(self):
        """A custom machine type resolves its processor through its series."""
        machine_type = GCP_CLOUD_CONSTANTS.get_machine_type("n2-custom-8-32768")
        assert machine_type.processor == CASCADE_LAKE
        assert machine_type.vcpus is None

    def test_unknown_machine_type(self):
        assert GCP_CLOUD_CONSTANTS.get_machine_type("z9-mystery-2") is None
        assert GCP_CLOUD_CONSTANTS.get_machine_type(None) is None
        assert GCP_CLOUD_CONSTANTS.get_machine_type("") is None

    @pytest.mark.parametrize("name, series", [
        ("n2d-standard-2", "n2d"),
        ("m5.large", "m5"),
        ("db.r5.large", "r5"),
    ])
    def test_machine_series(self, name, series):
        assert machine_series(name) == series


class TestWattage:
    """Test per-vCPU wattage lookups and the fallback path."""

    def test_known_processor_not_flagged(self):
        machine_type = GCP_CLOUD_CONSTANTS.get_machine_type("n1-standard-1")
        watts, used_average = GCP_CLOUD_CONSTANTS.get_watts_per_vcpu(machine_type)
        assert watts == GCP_CLOUD_CONSTANTS.processors[SKYLAKE].average_watts(50)
        assert used_average is False

    def test_unknown_machine_type_uses_fallback(self):
        watts, used_average = GCP_CLOUD_CONSTANTS.get_watts_per_vcpu(None)
        assert watts == GCP_CLOUD_CONSTANTS.fallback_watts
        assert used_average is True

    def test_gcp_fallback_is_median_of_processors(self):
        """GCP has no explicit average, so the median processor wattage is used."""
        # Sorted averages at 50%: 1.08, 1.685, 2.2, 2.305, [2.455], 2.625, 3.28, 5.375, 5.645
        assert GCP_CLOUD_CONSTANTS.fallback_watts == \
            GCP_CLOUD_CONSTANTS.processors[SKYLAKE].average_watts(50)

    def test_aws_fallback_uses_explicit_average(self):
        # 0.74 + 0.5 * (3.5 - 0.74)
        assert AWS_CLOUD_CONSTANTS.fallback_watts == pytest.approx(2.12)


class TestEmissionsFactors:
    """Test region emissions factor lookups."""

    def test_known_region(self):
        factor, region = GCP_CLOUD_CONSTANTS.get_emissions_factor("us-east1")
        assert factor == 0.5
        assert region == "us-east1"

    def test_unknown_region_uses_default(self):
        factor, region = GCP_CLOUD_CONSTANTS.get_emissions_factor("mars-north1")
        assert factor == GCP_CLOUD_CONSTANTS.default_emissions_factor
        assert region == UNKNOWN_REGION

    def test_missing_region_uses_default(self):
        factor, region = AWS_CLOUD_CONSTANTS.get_emissions_factor(None)
        assert factor == AWS_CLOUD_CONSTANTS.default_emissions_factor
        assert region == "Unknown"


class TestReplicationFactors:
    """Test replication rules."""

    def test_multi_region_cloud_storage(self):
        assert GCP_CLOUD_CONSTANTS.get_replication_factor(
            "Cloud Storage", "Standard Storage US Multi-region") == 4

    def test_single_region_cloud_storage(self):
        assert GCP_CLOUD_CONSTANTS.get_replication_factor(
            "Cloud Storage", "Standard Storage Iowa") == 2

    def test_regional_cloud_sql(self):
        assert GCP_CLOUD_CONSTANTS.get_replication_factor(
            "Cloud SQL", "Cloud SQL for MySQL: Regional - vCPU") == 2

    def test_no_rule_defaults_to_one(self):
        assert GCP_CLOUD_CONSTANTS.get_replication_factor(
            "Compute Engine", "SSD backed PD Capacity") == 1


class TestConstantsValidation:
    """Test table validation and registry lookup."""

    def test_pue_below_one_raises_error(self):
        from dataclasses import replace
        with pytest.raises(ValueError, match="pue"):
            replace(GCP_CLOUD_CONSTANTS, pue=0.9)

    def test_negative_coefficient_raises_error(self):
        from dataclasses import replace
        with pytest.raises(ValueError, match="memory_coefficient"):
            replace(GCP_CLOUD_CONSTANTS, memory_coefficient=-1)

    def test_tables_are_read_only(self):
        """Shared tables cannot be edited through the frozen instance."""
        with pytest.raises(TypeError):
            GCP_CLOUD_CONSTANTS.emissions_factors["us-east1"] = 0.0
        with pytest.raises(TypeError):
            AWS_CLOUD_CONSTANTS.machine_types["x9.huge"] = None
        assert GCP_CLOUD_CONSTANTS.emissions_factors["us-east1"] == 0.5

    def test_caller_dict_is_copied(self):
        from dataclasses import replace
        factors = {"us-east1": 0.2}
        table = replace(GCP_CLOUD_CONSTANTS, emissions_factors=factors)
        factors["us-east1"] = 0.9
        assert table.emissions_factors["us-east1"] == 0.2

    def test_registry_lookup_case_insensitive(self):
        assert get_cloud_constants("gcp") is GCP_CLOUD_CONSTANTS
        assert get_cloud_constants("AWS") is AWS_CLOUD_CONSTANTS

    def test_unknown_provider_returns_none(self):
        assert get_cloud_constants("OnPrem") is None

    def test_registry_contains_builtin_providers(self):
        assert set(CLOUD_CONSTANTS_BY_PROVIDER) == {"GCP", "AWS"}
