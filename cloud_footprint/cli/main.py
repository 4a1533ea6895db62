"""
CLI interface for Cloud Footprint.

Provides command-line access to footprint estimation over a billing export.
"""

import json
import sys
from datetime import datetime
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from cloud_footprint.billing.db import DEFAULT_DB_PATH
from cloud_footprint.billing.errors import BillingExportError
from cloud_footprint.billing.repository import BillingExportTable
from cloud_footprint.config.loader import load_constants_config
from cloud_footprint.core.aggregation import (
    EstimationResult,
    total_co2e,
    total_kilowatt_hours,
)
from cloud_footprint.core.constants import CLOUD_CONSTANTS_BY_PROVIDER
from cloud_footprint.core.engine import FootprintEngine
from cloud_footprint.logs import setup_logging

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1

DATE_FORMATS = ["%Y-%m-%d"]


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Cloud Footprint CLI."""
    setup_logging(debug=False)
    if ctx.invoked_subcommand is None:
        console.print("Cloud Footprint - Use --help to see available commands")


@app.command()
def status():
    """Check that Cloud Footprint is installed."""
    console.print("[green]✓[/] Cloud Footprint is ready")


@app.command()
def init(
    db: str = typer.Option(DEFAULT_DB_PATH, "--db", help="Path to the billing export database")
):
    """Initialize the billing export table."""
    try:
        BillingExportTable(db).initialize_schema()
        console.print("[green]✓[/] Billing export table initialized successfully")
        sys.exit(EXIT_CODE_OK)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)


@app.command()
def providers():
    """List providers with built-in constants."""
    table = Table(title="Provider constants")
    table.add_column("Provider")
    table.add_column("PUE", justify="right")
    table.add_column("Default kgCO2e/kWh", justify="right")
    table.add_column("Regions", justify="right")
    for name, constants in CLOUD_CONSTANTS_BY_PROVIDER.items():
        table.add_row(
            name,
            f"{constants.pue:.3f}",
            f"{constants.default_emissions_factor:.4f}",
            str(len(constants.emissions_factors)),
        )
    console.print(table)


@app.command()
def estimate(
    start: datetime = typer.Option(
        ...,
        "--start",
        "-s",
        formats=DATE_FORMATS,
        help="First day to include (YYYY-MM-DD)"
    ),
    end: datetime = typer.Option(
        ...,
        "--end",
        "-e",
        formats=DATE_FORMATS,
        help="First day to exclude (YYYY-MM-DD)"
    ),
    db: str = typer.Option(DEFAULT_DB_PATH, "--db", help="Path to the billing export database"),
    constants: Optional[str] = typer.Option(
        None,
        "--constants",
        "-c",
        help="YAML file overriding provider constants"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print estimates as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log per-row estimation decisions"
    )
):
    """
    Estimate energy and emissions for billing rows in [start, end).

    Rows whose usage type has no power semantics (fees, ingress, requests)
    are skipped. Machine types and regions that are not in the provider
    constants fall back to averages and are flagged in the output.
    """
    setup_logging(debug=verbose)

    if start >= end:
        console.print("[red]Error:[/] --start must be before --end")
        sys.exit(EXIT_CODE_ERROR)

    try:
        constants_by_provider = load_constants_config(constants) if constants else None
        engine = FootprintEngine(constants_by_provider)
        results = engine.get_estimates(BillingExportTable(db), start.date(), end.date())
    except BillingExportError as e:
        console.print(f"[red]Billing export error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    if json_output:
        typer.echo(json.dumps([result.to_dict() for result in results], indent=2))
        sys.exit(EXIT_CODE_OK)

    if not results:
        console.print(
            f"\n[bold yellow]No footprint estimates between "
            f"{start.date().isoformat()} and {end.date().isoformat()}[/]\n"
        )
        sys.exit(EXIT_CODE_OK)

    _display_results(results)
    sys.exit(EXIT_CODE_OK)


def _format_energy(kilowatt_hours: float) -> str:
    return f"{kilowatt_hours:,.6f}"


def _format_currency(amount: float) -> str:
    # Credits are negative and keep their sign
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _display_results(results: List[EstimationResult]):
    """Display estimates as one table row per day and service line."""
    table = Table(title="Cloud Footprint Estimates")
    table.add_column("Day")
    table.add_column("Service")
    table.add_column("Region")
    table.add_column("Account")
    table.add_column("kWh", justify="right")
    table.add_column("kgCO2e", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Avg CPU", justify="center")

    for result in results:
        for line in result.service_estimates:
            table.add_row(
                result.timestamp.isoformat(),
                line.service_name,
                line.region,
                line.account_name,
                _format_energy(line.kilowatt_hours),
                _format_energy(line.co2e),
                _format_currency(line.cost),
                "yes" if line.uses_average_cpu_constant else "",
            )

    console.print(table)
    console.print(f"\n[bold]Total energy:[/bold] {_format_energy(total_kilowatt_hours(results))} kWh")
    console.print(f"[bold]Total emissions:[/bold] {_format_energy(total_co2e(results))} kgCO2e")


if __name__ == "__main__":
    app()
