"""
Provider constants for footprint estimation.

Holds the read-only lookup tables the estimators draw on: processor
wattages, machine types, storage/network/memory coefficients, datacenter
PUE, replication factors and regional grid emissions factors.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

UNKNOWN_REGION = "Unknown"


@dataclass(frozen=True)
class ProcessorFamily:
    """Per-vCPU power draw range of a CPU microarchitecture."""
    name: str
    min_watts: float  # Watts per vCPU at idle
    max_watts: float  # Watts per vCPU at 100% utilization

    def __post_init__(self):
        if self.min_watts < 0:
            raise ValueError(f"min_watts for {self.name} cannot be negative")
        if self.max_watts < self.min_watts:
            raise ValueError(f"max_watts for {self.name} must be >= min_watts")

    def average_watts(self, utilization: float) -> float:
        """Watts per vCPU at the given utilization percentage."""
        return self.min_watts + (utilization / 100) * (self.max_watts - self.min_watts)


@dataclass(frozen=True)
class MachineType:
    """An instance type and the processor it runs on."""
    name: str
    vcpus: Optional[int]
    processor: str


@dataclass(frozen=True)
class ReplicationRule:
    """Replication factor for a service, optionally narrowed by usage type."""
    service: str
    usage_type_keyword: Optional[str]
    factor: int

    def matches(self, service: str, usage_type: str) -> bool:
        if service.lower() != self.service.lower():
            return False
        if self.usage_type_keyword is None:
            return True
        return self.usage_type_keyword.lower() in usage_type.lower()


@dataclass(frozen=True)
class UsageClassification:
    """Usage-type keywords that decide which estimator a row belongs to.

    All keywords are matched case-insensitively as substrings of the
    row's usage type.
    """
    compute: Tuple[str, ...]
    memory: Tuple[str, ...]
    ssd: Tuple[str, ...]
    hdd: Tuple[str, ...]
    networking: Tuple[str, ...]
    ingress: Tuple[str, ...]
    excluded: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CloudConstants:
    """Constants table for a single cloud provider.

    Coefficient units:
        ssd_coefficient / hdd_coefficient: Wh per terabyte-hour
        networking_coefficient: kWh per gigabyte transferred
        memory_coefficient: kWh per gigabyte-hour
        emissions factors: kg CO2e per kWh
    """
    provider: str
    pue: float
    ssd_coefficient: float
    hdd_coefficient: float
    networking_coefficient: float
    memory_coefficient: float
    average_cpu_utilization: float
    processors: Mapping[str, ProcessorFamily]
    machine_types: Mapping[str, MachineType]
    series_processors: Mapping[str, str]
    emissions_factors: Mapping[str, float]
    default_emissions_factor: float
    replication_rules: Tuple[ReplicationRule, ...]
    classification: UsageClassification
    min_watts_avg: Optional[float] = None
    max_watts_avg: Optional[float] = None
    fallback_watts: float = field(init=False)

    def __post_init__(self):
        """Validate the table and precompute the fallback wattage."""
        if self.pue < 1:
            raise ValueError(f"pue for {self.provider} must be >= 1")
        for name in ("ssd_coefficient", "hdd_coefficient",
                     "networking_coefficient", "memory_coefficient"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} for {self.provider} cannot be negative")
        if not 0 <= self.average_cpu_utilization <= 100:
            raise ValueError("average_cpu_utilization must be between 0 and 100")
        if self.default_emissions_factor < 0:
            raise ValueError("default_emissions_factor cannot be negative")
        for region, factor in self.emissions_factors.items():
            if factor < 0:
                raise ValueError(f"Emissions factor for {region} cannot be negative")
        if (self.min_watts_avg is None) != (self.max_watts_avg is None):
            raise ValueError("min_watts_avg and max_watts_avg must be set together")

        # Private read-only copies; tables are shared between engines
        for name in ("processors", "machine_types", "series_processors", "emissions_factors"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "fallback_watts", self._compute_fallback_watts())

    def _compute_fallback_watts(self) -> float:
        if self.min_watts_avg is not None:
            return self.min_watts_avg + (self.average_cpu_utilization / 100) * (
                self.max_watts_avg - self.min_watts_avg
            )
        watts = [
            processor.average_watts(self.average_cpu_utilization)
            for processor in self.processors.values()
        ]
        if not watts:
            return 0.0
        return compute_median(watts)

    def get_machine_type(self, name: Optional[str]) -> Optional[MachineType]:
        """Resolve a machine type by exact name, then by series.

        A series-only match knows the processor but not the vCPU count.

        Returns:
            The MachineType, or None when the processor cannot be determined
        """
        if not name:
            return None
        key = name.strip().lower()
        if key in self.machine_types:
            return self.machine_types[key]
        processor = self.series_processors.get(machine_series(key))
        if processor is None:
            return None
        return MachineType(name=key, vcpus=None, processor=processor)

    def get_watts_per_vcpu(self, machine_type: Optional[MachineType]) -> Tuple[float, bool]:
        """Get the per-vCPU wattage for a machine type.

        Returns:
            Tuple of (watts, used_average). used_average is True when the
            fallback wattage was substituted for an unknown processor.
        """
        if machine_type is not None and machine_type.processor in self.processors:
            processor = self.processors[machine_type.processor]
            return processor.average_watts(self.average_cpu_utilization), False
        return self.fallback_watts, True

    def get_emissions_factor(self, region: Optional[str]) -> Tuple[float, str]:
        """Get the grid emissions factor for a region.

        Returns:
            Tuple of (kg CO2e per kWh, region label). Missing or unrecognized
            regions get the default factor and the "Unknown" label.
        """
        if region and region in self.emissions_factors:
            return self.emissions_factors[region], region
        return self.default_emissions_factor, UNKNOWN_REGION

    def get_replication_factor(self, service: str, usage_type: str) -> int:
        for rule in self.replication_rules:
            if rule.matches(service, usage_type):
                return rule.factor
        return 1


def machine_series(name: str) -> str:
    """Series prefix of a machine type, e.g. 'n2' or 'm5'."""
    name = name.lower()
    if name.startswith("db."):
        name = name[3:]
    return re.split(r"[.\-]", name, maxsplit=1)[0]


def compute_median(values: List[float]) -> float:
    """Median with linear interpolation between the two middle values.

    Values are sorted numerically first so the result does not depend on
    the order of the input.
    """
    if not values:
        raise ValueError("Values list cannot be empty")
    sorted_values = sorted(values)
    position = 0.5 * (len(sorted_values) - 1)
    lower_index = int(position)
    upper_index = min(lower_index + 1, len(sorted_values) - 1)
    fraction = position - lower_index
    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + fraction * (upper_value - lower_value)


def _processors(*families: ProcessorFamily) -> Dict[str, ProcessorFamily]:
    return {family.name: family for family in families}


def _machine_types(
    series_processors: Dict[str, str],
    vcpus_by_machine_type: Dict[str, int]
) -> Dict[str, MachineType]:
    return {
        name: MachineType(
            name=name,
            vcpus=vcpus,
            processor=series_processors[machine_series(name)]
        )
        for name, vcpus in vcpus_by_machine_type.items()
    }


CASCADE_LAKE = "Cascade Lake"
SKYLAKE = "Skylake"
BROADWELL = "Broadwell"
HASWELL = "Haswell"
COFFEE_LAKE = "Coffee Lake"
SANDY_BRIDGE = "Sandy Bridge"
IVY_BRIDGE = "Ivy Bridge"
AMD_EPYC_1ST_GEN = "AMD EPYC 1st Gen"
AMD_EPYC_2ND_GEN = "AMD EPYC 2nd Gen"
GRAVITON = "AWS Graviton"
GRAVITON2 = "AWS Graviton2"


_GCP_SERIES_PROCESSORS = {
    "e2": SKYLAKE,
    "n1": SKYLAKE,
    "n2": CASCADE_LAKE,
    "n2d": AMD_EPYC_2ND_GEN,
    "c2": CASCADE_LAKE,
    "m1": BROADWELL,
    "m2": CASCADE_LAKE,
    "a2": CASCADE_LAKE,
}

GCP_CLOUD_CONSTANTS = CloudConstants(
    provider="GCP",
    pue=1.1,
    ssd_coefficient=1.2,
    hdd_coefficient=0.65,
    networking_coefficient=0.001,
    memory_coefficient=0.000392,
    average_cpu_utilization=50,
    processors=_processors(
        ProcessorFamily(CASCADE_LAKE, 0.64, 3.97),
        ProcessorFamily(SKYLAKE, 0.65, 4.26),
        ProcessorFamily(BROADWELL, 0.71, 3.69),
        ProcessorFamily(HASWELL, 1.00, 4.25),
        ProcessorFamily(COFFEE_LAKE, 1.14, 5.42),
        ProcessorFamily(SANDY_BRIDGE, 2.17, 8.58),
        ProcessorFamily(IVY_BRIDGE, 3.04, 8.25),
        ProcessorFamily(AMD_EPYC_1ST_GEN, 0.82, 2.55),
        ProcessorFamily(AMD_EPYC_2ND_GEN, 0.47, 1.69),
    ),
    machine_types=_machine_types(_GCP_SERIES_PROCESSORS, {
        "e2-micro": 2,
        "e2-small": 2,
        "e2-medium": 2,
        "e2-standard-2": 2,
        "e2-standard-4": 4,
        "e2-standard-8": 8,
        "n1-standard-1": 1,
        "n1-standard-2": 2,
        "n1-standard-4": 4,
        "n1-standard-8": 8,
        "n1-highmem-2": 2,
        "n1-highmem-4": 4,
        "n2-standard-2": 2,
        "n2-standard-4": 4,
        "n2-standard-8": 8,
        "n2d-standard-2": 2,
        "n2d-standard-4": 4,
        "c2-standard-4": 4,
        "c2-standard-8": 8,
        "m1-ultramem-40": 40,
    }),
    series_processors=_GCP_SERIES_PROCESSORS,
    emissions_factors={
        "us-central1": 0.479,
        "us-central2": 0.479,
        "us-east1": 0.5,
        "us-east4": 0.383,
        "us-west1": 0.117,
        "us-west2": 0.248,
        "us-west3": 0.561,
        "us-west4": 0.491,
        "northamerica-northeast1": 0.014,
        "southamerica-east1": 0.109,
        "europe-central2": 0.622,
        "europe-north1": 0.133,
        "europe-west1": 0.2,
        "europe-west2": 0.257,
        "europe-west3": 0.319,
        "europe-west4": 0.474,
        "europe-west6": 0.011,
        "asia-east1": 0.541,
        "asia-east2": 0.626,
        "asia-northeast1": 0.524,
        "asia-northeast2": 0.524,
        "asia-northeast3": 0.5,
        "asia-south1": 0.723,
        "asia-southeast1": 0.493,
        "asia-southeast2": 0.772,
        "australia-southeast1": 0.725,
        # Multi-regions
        "us": 0.407,
        "asia": 0.608,
        "nam4": 0.489,
    },
    default_emissions_factor=0.4108907,
    replication_rules=(
        ReplicationRule("Cloud Storage", "multi-region", 4),
        ReplicationRule("Cloud Storage", "dual-region", 4),
        ReplicationRule("Cloud Storage", None, 2),
        ReplicationRule("Compute Engine", "regional", 2),
        ReplicationRule("Cloud Filestore", None, 2),
        ReplicationRule("Cloud SQL", "regional", 2),
        ReplicationRule("Cloud Memorystore for Redis", "standard", 2),
    ),
    classification=UsageClassification(
        compute=("core", "cpu"),
        memory=("ram", "memory", "redis capacity"),
        ssd=("ssd",),
        hdd=("storage", "pd capacity", "snapshot", "coldline", "nearline", "archive"),
        networking=("egress", "network", "download", "data transfer"),
        ingress=("ingress", "upload", "inbound"),
        excluded=("commitment", "license", "licensing", "support", "fee", "gpu", "static ip"),
    ),
)


_AWS_SERIES_PROCESSORS = {
    "t3": SKYLAKE,
    "m4": BROADWELL,
    "m5": SKYLAKE,
    "m5a": AMD_EPYC_1ST_GEN,
    "c4": HASWELL,
    "c5": CASCADE_LAKE,
    "c5a": AMD_EPYC_2ND_GEN,
    "r5": SKYLAKE,
    "a1": GRAVITON,
    "m6g": GRAVITON2,
    "c6g": GRAVITON2,
}

AWS_CLOUD_CONSTANTS = CloudConstants(
    provider="AWS",
    pue=1.135,
    ssd_coefficient=1.2,
    hdd_coefficient=0.65,
    networking_coefficient=0.001,
    memory_coefficient=0.000392,
    average_cpu_utilization=50,
    processors=_processors(
        ProcessorFamily(CASCADE_LAKE, 0.64, 3.97),
        ProcessorFamily(SKYLAKE, 0.65, 4.26),
        ProcessorFamily(BROADWELL, 0.71, 3.69),
        ProcessorFamily(HASWELL, 1.00, 4.25),
        ProcessorFamily(AMD_EPYC_1ST_GEN, 0.82, 2.55),
        ProcessorFamily(AMD_EPYC_2ND_GEN, 0.47, 1.69),
        ProcessorFamily(GRAVITON, 0.47, 1.69),
        ProcessorFamily(GRAVITON2, 0.47, 1.69),
    ),
    machine_types=_machine_types(_AWS_SERIES_PROCESSORS, {
        "t3.micro": 2,
        "t3.small": 2,
        "t3.medium": 2,
        "t3.large": 2,
        "m4.large": 2,
        "m5.large": 2,
        "m5.xlarge": 4,
        "m5.2xlarge": 8,
        "m5a.large": 2,
        "c4.large": 2,
        "c5.large": 2,
        "c5.xlarge": 4,
        "c5a.large": 2,
        "r5.large": 2,
        "r5.xlarge": 4,
        "a1.large": 2,
        "m6g.large": 2,
        "m6g.xlarge": 4,
    }),
    series_processors=_AWS_SERIES_PROCESSORS,
    emissions_factors={
        "us-east-1": 0.415755,
        "us-east-2": 0.440187,
        "us-west-1": 0.350861,
        "us-west-2": 0.350861,
        "ca-central-1": 0.12,
        "sa-east-1": 0.0617,
        "eu-west-1": 0.2786,
        "eu-west-2": 0.225,
        "eu-west-3": 0.0511,
        "eu-central-1": 0.338,
        "eu-north-1": 0.0088,
        "ap-south-1": 0.708,
        "ap-northeast-1": 0.506,
        "ap-northeast-2": 0.5,
        "ap-southeast-1": 0.408,
        "ap-southeast-2": 0.79,
    },
    default_emissions_factor=0.385,
    replication_rules=(
        ReplicationRule("Amazon Simple Storage Service", None, 3),
        ReplicationRule("Amazon Elastic File System", None, 3),
        ReplicationRule("Amazon Elastic Compute Cloud", "ebs:", 2),
        ReplicationRule("Amazon Relational Database Service", "multi-az", 2),
        ReplicationRule("Amazon DynamoDB", None, 3),
        ReplicationRule("Amazon ElastiCache", None, 2),
    ),
    classification=UsageClassification(
        compute=("boxusage", "instanceusage", "spotusage", "dedicatedusage", "vcpu"),
        memory=("memory", "gb-hours"),
        ssd=("gp2", "gp3", "io1", "io2", "ssd"),
        hdd=("timedstorage", "st1", "sc1", "snapshotusage", "volumeusage", "storage"),
        networking=("datatransfer-out", "out-bytes", "aws-out"),
        ingress=("datatransfer-in", "in-bytes", "aws-in"),
        excluded=("support", "fee", "requests", "tax", "commitment", "license"),
    ),
    min_watts_avg=0.74,
    max_watts_avg=3.5,
)


CLOUD_CONSTANTS_BY_PROVIDER: Dict[str, CloudConstants] = {
    GCP_CLOUD_CONSTANTS.provider: GCP_CLOUD_CONSTANTS,
    AWS_CLOUD_CONSTANTS.provider: AWS_CLOUD_CONSTANTS,
}


def get_cloud_constants(
    provider: str,
    constants_by_provider: Optional[Dict[str, CloudConstants]] = None
) -> Optional[CloudConstants]:
    """Look up a provider's constants table (case-insensitive).

    Returns None for providers without a table; callers skip such rows.
    """
    tables = CLOUD_CONSTANTS_BY_PROVIDER if constants_by_provider is None else constants_by_provider
    if not provider:
        return None
    for name, constants in tables.items():
        if name.lower() == provider.strip().lower():
            return constants
    return None
