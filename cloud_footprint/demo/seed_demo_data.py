# cloud_footprint/demo/seed_demo_data.py

from datetime import date

from cloud_footprint.billing.db import DEFAULT_DB_PATH
from cloud_footprint.billing.models import UsageRow
from cloud_footprint.billing.repository import BillingExportTable


def _row(day: date, service: str, usage_type: str, unit: str, amount: float,
         cost: float, region=None, machine_type=None) -> UsageRow:
    return UsageRow(
        timestamp=day,
        cloud_provider="GCP",
        account_id="demo-project",
        account_name="Demo Project",
        service_name=service,
        usage_type=usage_type,
        usage_unit=unit,
        usage_amount=amount,
        cost=cost,
        region=region,
        machine_type=machine_type,
    )


DEMO_ROWS = [
    _row(date(2024, 3, 4), "Compute Engine", "N1 Predefined Instance Core running in Americas",
         "seconds", 86400 * 4, 4.56, "us-east1", "n1-standard-4"),
    _row(date(2024, 3, 4), "Compute Engine", "Custom Instance Core running in Americas",
         "seconds", 86400 * 2, 2.10, "us-east1"),
    _row(date(2024, 3, 4), "Compute Engine", "N1 Predefined Instance Ram running in Americas",
         "byte-seconds", 15 * 1073741824 * 86400, 1.20, "us-east1", "n1-standard-4"),
    _row(date(2024, 3, 4), "Cloud Storage", "Standard Storage US Multi-region",
         "byte-seconds", 500 * 1073741824 * 86400, 0.33, "us"),
    _row(date(2024, 3, 4), "Cloud SQL", "Cloud SQL: Storage PD SSD",
         "gibibyte month", 3.3, 0.57, "europe-west1"),
    _row(date(2024, 3, 5), "Cloud Storage", "Network Internet Egress from Americas to EMEA",
         "bytes", 12 * 1073741824, 1.44, "us-east1"),
    _row(date(2024, 3, 5), "Cloud Storage", "Network Internet Ingress from EMEA to Americas",
         "bytes", 40 * 1073741824, 0.0),
    _row(date(2024, 3, 5), "Support", "Support Fee", "requests", 1, 29.0),
]


def seed_demo_data(db_path: str = DEFAULT_DB_PATH) -> int:
    """Create the billing export table and insert the demo rows."""
    table = BillingExportTable(db_path)
    table.initialize_schema()
    table.insert_usage_rows(DEMO_ROWS)
    return len(DEMO_ROWS)


if __name__ == "__main__":
    count = seed_demo_data()
    print(f"Demo billing rows inserted: {count}")
