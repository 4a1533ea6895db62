"""
Core modules for Cloud Footprint.

This package contains the footprint estimation engine: unit conversion,
provider constants, per-resource estimators, usage dispatch and daily
aggregation.
"""
