"""Command-line interface for home battery savings analysis."""

import json
import logging
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .analysis import summary
from .analysis.simulation import ChargeOrder
from .collectors import meter_csv
from .errors import BatterySimError
from .models import AggregateResults
from .scenarios import (
    CONFIG_ENV_VAR,
    BatteryScenario,
    load_scenarios,
    run_scenarios,
)

console = Console()

ORDER_CHOICES = click.Choice([o.value for o in ChargeOrder])


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.option("--config", "config_path", type=click.Path(), envvar=CONFIG_ENV_VAR,
              help="Path to scenarios.yaml")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Home battery analysis - estimate savings from adding battery storage."""
    load_dotenv()
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None


def fail(ctx, error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    ctx.exit(1)


def results_table(title: str, results: AggregateResults) -> Table:
    table = Table(title=title)
    table.add_column("Period", style="cyan")
    table.add_column("Consumed", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Generated", justify="right")
    table.add_column("Earnings", justify="right")
    table.add_column("Net", justify="right")
    table.add_column("Battery In", justify="right")
    table.add_column("Full Days", justify="right")

    for buckets in (results.per_month, results.per_year):
        for key, bucket in sorted(buckets.items()):
            row = summary.bucket_to_dict(bucket)
            table.add_row(
                key,
                f"{row['consumed_kwh']:.2f} kWh",
                f"${row['consumption_cost_dollars']:.2f}",
                f"{row['generated_kwh']:.2f} kWh",
                f"${row['generation_earnings_dollars']:.2f}",
                f"${row['net_cost_dollars']:.2f}",
                f"{row['battery_output_kwh']:.2f} kWh",
                str(row["days_reached_full_charge"]),
            )
        table.add_section()

    return table


@cli.command()
@click.pass_context
def plans(ctx):
    """List configured tariff plans."""
    try:
        config = load_scenarios(ctx.obj["config_path"])
    except (BatterySimError, FileNotFoundError) as e:
        fail(ctx, e)

    table = Table(title="Tariff Plans")
    table.add_column("Plan", style="cyan")
    table.add_column("Feed-in", justify="right")
    table.add_column("Min Price", justify="right")
    table.add_column("Max Price", justify="right")

    for plan in config.plans:
        prices = plan.price_per_slot.values()
        table.add_row(
            plan.name,
            f"{plan.feed_in_tariff}c",
            f"{min(prices)}c",
            f"{max(prices)}c",
        )

    console.print(table)


@cli.command()
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True,
              help="Path to meter CSV export")
@click.pass_context
def days(ctx, csv_path):
    """Show daily consumption and generation totals from a meter export."""
    try:
        records = meter_csv.load_days(Path(csv_path))
    except BatterySimError as e:
        fail(ctx, e)

    table = Table(title=f"Meter Days ({len(records)})")
    table.add_column("Date", style="cyan")
    table.add_column("Consumption", justify="right")
    table.add_column("Generation", justify="right")

    for record in records:
        table.add_row(
            record.date.isoformat(),
            f"{record.total_consumption:.2f} kWh",
            f"{record.total_generation:.2f} kWh",
        )

    console.print(table)


@cli.command()
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True,
              help="Path to meter CSV export")
@click.option("--plan", "plan_names", multiple=True, help="Plan to evaluate (default: all)")
@click.option("--capacity", "capacities", type=float, multiple=True,
              help="Battery size in kWh (default: sizes from config)")
@click.option("--order", type=ORDER_CHOICES, help="Charge/discharge order per slot")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--text", "as_text", is_flag=True, help="Output as plain text")
@click.pass_context
def simulate(ctx, csv_path, plan_names, capacities, order, as_json, as_text):
    """Simulate battery sizes under each tariff plan."""
    try:
        config = load_scenarios(ctx.obj["config_path"])
        # Repeated --plan or --capacity values would share a result key
        selected_plans = [
            config.plan(name) for name in dict.fromkeys(plan_names)
        ] or config.plans
        batteries = [
            BatteryScenario(f"{capacity:g} kWh", capacity)
            for capacity in dict.fromkeys(capacities)
        ] or config.batteries
        charge_order = ChargeOrder(order) if order else config.charge_order

        records = meter_csv.load_days(Path(csv_path))
        results = run_scenarios(records, selected_plans, batteries, charge_order)
    except (BatterySimError, FileNotFoundError) as e:
        fail(ctx, e)

    if as_json:
        click.echo(json.dumps(
            {name: summary.results_to_dict(r) for name, r in results.items()}, indent=2
        ))
        return

    for name, result in results.items():
        if as_text:
            console.print(summary.format_results_text(name, result), markup=False, soft_wrap=True)
            console.print()
        else:
            console.print(results_table(name, result))


@cli.command()
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True,
              help="Path to meter CSV export")
@click.option("--order", type=ORDER_CHOICES, help="Charge/discharge order per slot")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def compare(ctx, csv_path, order, as_json):
    """Show savings for the comparisons listed in the config."""
    try:
        config = load_scenarios(ctx.obj["config_path"])
        if not config.comparisons:
            console.print("[yellow]No comparisons configured[/yellow]")
            return
        charge_order = ChargeOrder(order) if order else config.charge_order

        records = meter_csv.load_days(Path(csv_path))
        results = run_scenarios(records, config.plans, config.batteries, charge_order)
    except (BatterySimError, FileNotFoundError) as e:
        fail(ctx, e)

    if as_json:
        click.echo(json.dumps(
            {
                c.title: summary.compare_results(results[c.baseline], results[c.candidate])
                for c in config.comparisons
            },
            indent=2,
        ))
        return

    for comparison in config.comparisons:
        console.print(
            summary.format_comparison_text(
                comparison.title, results[comparison.baseline], results[comparison.candidate]
            ),
            markup=False,
            soft_wrap=True,
        )
        console.print()


if __name__ == "__main__":
    cli()
