"""
Constants configuration loading.

Reads YAML overrides for the built-in provider constants tables.
"""

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cloud_footprint.core.constants import CLOUD_CONSTANTS_BY_PROVIDER, CloudConstants

# Must be > 0
_POSITIVE_KEYS = {
    'pue',
    'ssd_coefficient',
    'hdd_coefficient',
    'networking_coefficient',
    'memory_coefficient',
    'max_watts_avg',
}
# May be 0 (idle utilisation, zero-carbon grids)
_NON_NEGATIVE_KEYS = {
    'average_cpu_utilization',
    'min_watts_avg',
    'default_emissions_factor',
}
_NUMERIC_KEYS = _POSITIVE_KEYS | _NON_NEGATIVE_KEYS
_ALLOWED_PROVIDER_KEYS = _NUMERIC_KEYS | {'emissions_factors'}


def load_constants_config(
    path: str,
    base: Optional[Dict[str, CloudConstants]] = None
) -> Dict[str, CloudConstants]:
    """Load provider constant overrides from a YAML file.

    Strict validation ensures a typo in a coefficient name fails loudly
    instead of silently leaving the built-in value in place.

    Args:
        path: Path to YAML configuration file
        base: Tables to apply overrides to; defaults to the built-ins

    Returns:
        New provider -> CloudConstants mapping (the base is not modified)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Constants config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    unknown_keys = set(raw_config.keys()) - {'providers'}
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'providers' not in raw_config:
        raise ValueError("Missing required 'providers' section")

    providers_data = raw_config['providers']
    if not isinstance(providers_data, dict):
        raise ValueError("'providers' must be a dictionary")

    tables = dict(CLOUD_CONSTANTS_BY_PROVIDER if base is None else base)
    names_by_lower = {name.lower(): name for name in tables}

    for provider_name, provider_data in providers_data.items():
        name = names_by_lower.get(str(provider_name).lower())
        if name is None:
            raise ValueError(
                f"Unknown provider '{provider_name}', expected one of: {sorted(tables)}"
            )
        if not isinstance(provider_data, dict):
            raise ValueError(f"Provider '{provider_name}' must be a dictionary")
        tables[name] = _apply_overrides(
            tables[name], provider_data, f"providers.{provider_name}"
        )

    return tables


def _apply_overrides(
    constants: CloudConstants,
    data: Dict[str, Any],
    path: str
) -> CloudConstants:
    """Validate one provider section and apply it to its table.

    Args:
        constants: Table to override
        data: Provider configuration data
        path: Path for error messages

    Returns:
        New CloudConstants with the overrides applied

    Raises:
        ValueError: If configuration is invalid
    """
    unknown_keys = set(data.keys()) - _ALLOWED_PROVIDER_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    changes: Dict[str, Any] = {}
    for key in _POSITIVE_KEYS & set(data.keys()):
        changes[key] = _parse_positive(data[key], f"{path}.{key}")
    for key in _NON_NEGATIVE_KEYS & set(data.keys()):
        changes[key] = _parse_non_negative(data[key], f"{path}.{key}")

    if 'emissions_factors' in data:
        factors_data = data['emissions_factors']
        if not isinstance(factors_data, dict):
            raise ValueError(f"'emissions_factors' in {path} must be a dictionary")
        emissions_factors = dict(constants.emissions_factors)
        for region, factor in factors_data.items():
            emissions_factors[str(region)] = _parse_non_negative(
                factor, f"{path}.emissions_factors.{region}"
            )
        changes['emissions_factors'] = emissions_factors

    # __post_init__ re-validates the combined table (e.g. pue >= 1)
    return replace(constants, **changes)


def _parse_non_negative(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    if value < 0:
        raise ValueError(f"'{path}' must be >= 0")
    return float(value)


def _parse_positive(value: Any, path: str) -> float:
    number = _parse_non_negative(value, path)
    if number == 0:
        raise ValueError(f"'{path}' must be > 0")
    return number
