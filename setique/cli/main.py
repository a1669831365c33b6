# -*- coding: utf-8 -*-
"""
SETIQUE Ingestion CLI
=====================

Run the dataset ingestion analysis on a local CSV export.
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from setique.ingestion_analyzer.config import get_config
from setique.ingestion_analyzer.exceptions import DatasetParseError
from setique.ingestion_analyzer.models import HygieneOptions, PricingDataset
from setique.ingestion_analyzer.platforms import PLATFORM_CONFIGS
from setique.ingestion_analyzer.setup import IngestionAnalyzerService

app = typer.Typer(
    name="setique-ingest",
    help="SETIQUE: analyse dataset exports before publishing",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()

_STYLES = {
    "critical": "bold red",
    "error": "red",
    "warning": "yellow",
    "success": "green",
    "info": "blue",
}


def _load(service: IngestionAnalyzerService, path: Path):
    """Parse a CSV file or exit with an error."""
    try:
        return service.csv_loader.load(path.read_bytes())
    except DatasetParseError as exc:
        console.print(f"[red]Error: {escape(exc.message)}[/red]")
        raise typer.Exit(1)


def _service() -> IngestionAnalyzerService:
    return IngestionAnalyzerService()


def _print_recommendations(recommendations) -> None:
    for rec in recommendations:
        style = _STYLES.get(rec.type.value, "white")
        label = escape(f"[{rec.type.value.upper()}]")
        console.print(f"[{style}]{label}[/{style}] {escape(rec.message)}")
        console.print(f"    {escape(rec.action)}")


@app.callback()
def cli(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log analysis steps to stderr"),
):
    """SETIQUE dataset ingestion analysis"""
    if verbose:
        logging.basicConfig(level=get_config().log_level)


@app.command()
def analyze(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV export"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw report"),
):
    """Detect the source platform and validate the schema"""
    service = _service()
    table = _load(service, file)
    result = service.analyze_schema(
        table.headers, table.rows[:service.config.max_analysis_rows],
    )

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    console.print(
        f"[bold]Platform:[/bold] {result.platform} "
        f"(confidence {result.platform_confidence:.2f}, {result.data_type.value})"
    )
    for reason in result.platform_reasoning:
        console.print(f"  - {escape(reason)}")

    mapping = Table(title="Field Mapping")
    mapping.add_column("Header")
    mapping.add_column("Canonical")
    mapping.add_column("Kind")
    for header, canonical in result.canonical_fields.items():
        kind = "extended" if canonical in result.extended_fields else "core"
        mapping.add_row(escape(header), escape(canonical), kind)
    console.print(mapping)

    status = "[green]PASSED[/green]" if result.validation.passed else "[red]FAILED[/red]"
    console.print(f"[bold]Validation:[/bold] {status}")
    for error in result.validation.errors:
        console.print(f"  [red]error[/red] {escape(error)}")
    for warning in result.validation.warnings:
        console.print(f"  [yellow]warning[/yellow] {escape(warning)}")
    _print_recommendations(result.recommendations)


@app.command()
def hygiene(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV export"),
    keep_usernames: bool = typer.Option(False, "--keep-usernames", help="Do not redact @handles"),
    keep_urls: bool = typer.Option(False, "--keep-urls", help="Do not redact URLs"),
    strict: bool = typer.Option(False, "--strict", help="Redact medium severity items too"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw report"),
):
    """Scan a CSV export for personal data"""
    service = _service()
    table = _load(service, file)
    report = service.scan_hygiene(
        table.rows,
        HygieneOptions(
            remove_usernames=not keep_usernames,
            remove_urls=not keep_urls,
            strict_mode=strict,
        ),
    )

    if as_json:
        typer.echo(service.hygiene_scanner.export_report(report))
        return
    console.print(service.hygiene_scanner.generate_summary(report), markup=False)
    if not report.passed:
        raise typer.Exit(2)


@app.command()
def price(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV export"),
    curated: bool = typer.Option(False, "--curated", help="Dataset is Pro Curator verified"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw suggestion"),
):
    """Suggest a marketplace price"""
    service = _service()
    table = _load(service, file)
    schema = service.analyze_schema(
        table.headers, table.rows[:service.config.max_analysis_rows],
    )
    dataset = PricingDataset(rows=table.rows, date_field="date", is_curated=curated)
    comparison = service.compare_versions(dataset, schema)
    suggestion = comparison.extended if schema.has_extended_fields else comparison.standard

    if as_json:
        typer.echo(json.dumps(comparison.model_dump(mode="json"), indent=2))
        return

    level = service.pricing_engine.confidence_level(suggestion.confidence)
    console.print(
        f"[bold green]Suggested price: ${suggestion.suggested_price}[/bold green] "
        f"(range ${suggestion.price_range.min}-${suggestion.price_range.max}, "
        f"{level} confidence)"
    )
    for line in suggestion.reasoning:
        console.print(f"  - {line}")

    versions = Table(title="Versions")
    versions.add_column("Version")
    versions.add_column("Price", justify="right")
    versions.add_column("Description")
    for option in (comparison.standard, comparison.extended):
        versions.add_row(option.version, f"${option.suggested_price}", option.description)
    console.print(versions)
    console.print(comparison.recommendation)


@app.command()
def platforms():
    """List recognised platforms"""
    table = Table(title=f"Platforms ({len(PLATFORM_CONFIGS)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Required headers")
    for config in PLATFORM_CONFIGS.values():
        table.add_row(
            config.platform,
            config.display_name,
            config.data_type.value,
            ", ".join(config.required_headers) or "-",
        )
    console.print(table)


def main():
    """Main entry point for the setique-ingest command"""
    app()


if __name__ == "__main__":
    main()
