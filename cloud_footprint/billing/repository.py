"""
Billing export table access.

A SQLite-backed stand-in for a provider's billing export: rows are
loaded once, then queried by date range and handed to the estimation
engine in the order they were written.
"""

import sqlite3
from datetime import date
from typing import List, Optional, Protocol

import structlog

from .db import DEFAULT_DB_PATH, get_connection
from .errors import CreateQueryJobError, QueryResultsError
from .models import UsageRow

logger = structlog.get_logger()

_SELECT_COLUMNS = """
    SELECT usage_date, cloud_provider, account_id, account_name,
           service_name, usage_type, usage_unit, usage_amount, cost,
           region, machine_type, replication_factor
    FROM billing_export
"""


class BillingExportSource(Protocol):
    """Anything that can supply usage rows for a date range."""

    def get_usage_rows(self, start: date, end: date) -> List[UsageRow]:
        ...


class BillingExportTable:
    """Billing export rows stored in a local SQLite table."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the table accessor.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        """Create the billing_export table if it doesn't exist."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS billing_export (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    usage_date TEXT NOT NULL,
                    cloud_provider TEXT NOT NULL,
                    account_id TEXT NOT NULL,
                    account_name TEXT NOT NULL,
                    service_name TEXT NOT NULL,
                    usage_type TEXT NOT NULL,
                    usage_unit TEXT NOT NULL,
                    usage_amount REAL NOT NULL,
                    cost REAL NOT NULL DEFAULT 0,
                    region TEXT,
                    machine_type TEXT,
                    replication_factor INTEGER
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def insert_usage_rows(self, rows: List[UsageRow]) -> None:
        """Insert usage rows atomically.

        All rows are inserted in a single transaction; on failure none are.

        Args:
            rows: Usage rows to store, in delivery order
        """
        if not rows:
            return

        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN TRANSACTION")
            for row in rows:
                conn.execute("""
                    INSERT INTO billing_export
                    (usage_date, cloud_provider, account_id, account_name,
                     service_name, usage_type, usage_unit, usage_amount, cost,
                     region, machine_type, replication_factor)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    row.day.isoformat(),
                    row.cloud_provider,
                    row.account_id,
                    row.account_name,
                    row.service_name,
                    row.usage_type,
                    row.usage_unit,
                    row.usage_amount,
                    row.cost,
                    row.region,
                    row.machine_type,
                    row.replication_factor,
                ))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_usage_rows(
        self,
        start: date,
        end: date,
        provider: Optional[str] = None
    ) -> List[UsageRow]:
        """Get usage rows billed in [start, end).

        Args:
            start: First day included
            end: First day excluded
            provider: Optional filter for a single cloud provider

        Returns:
            Usage rows in the order they were written

        Raises:
            CreateQueryJobError: If the query cannot be prepared
            QueryResultsError: If the result rows cannot be read
        """
        query = _SELECT_COLUMNS + " WHERE usage_date >= ? AND usage_date < ?"
        params: list = [start.isoformat(), end.isoformat()]
        if provider:
            query += " AND cloud_provider = ?"
            params.append(provider)
        query += " ORDER BY id"

        conn = get_connection(self.db_path)
        try:
            try:
                cursor = conn.execute(query, params)
            except sqlite3.Error as e:
                reason = "notFound" if "no such table" in str(e).lower() else "invalidQuery"
                logger.error("billing_export_query_failed", reason=reason, error=str(e))
                raise CreateQueryJobError(reason, "query", str(e)) from e

            try:
                rows = [_decode_row(record) for record in cursor.fetchall()]
            except (sqlite3.Error, ValueError, TypeError) as e:
                logger.error("billing_export_results_failed", error=str(e))
                raise QueryResultsError("invalidResult", "billing_export", str(e)) from e
        finally:
            conn.close()

        logger.info(
            "billing_export_rows_fetched",
            start=start.isoformat(),
            end=end.isoformat(),
            rows=len(rows),
        )
        return rows


def _decode_row(record: tuple) -> UsageRow:
    return UsageRow(
        timestamp=date.fromisoformat(record[0]),
        cloud_provider=record[1],
        account_id=record[2],
        account_name=record[3],
        service_name=record[4],
        usage_type=record[5],
        usage_unit=record[6],
        usage_amount=record[7],
        cost=record[8],
        region=record[9],
        machine_type=record[10],
        replication_factor=record[11],
    )
