"""WBSCalc CLI.

Commands:
- build: Generate a fresh P6 WBS from an equipment list (CSV/XLSX)
- reconcile: Add new equipment to an existing P6 export (XER/CSV/paste)
- inspect: Summarize an existing P6 export
- classify: Show the category of one or more equipment numbers
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from wbscalc.classification import ConfigurationError, get_classifier, split_base_and_sub_device
from wbscalc.core.logging import configure_logging
from wbscalc.ingestion import ImportFormatError, load_existing_project, read_equipment_file
from wbscalc.models import CATEGORIES
from wbscalc.reconciliation import (
    AssignmentTier,
    ReconciliationEngine,
    ReconciliationError,
    find_missing_equipment,
)
from wbscalc.reporting import (
    ExportMode,
    assemble_export,
    export_filename,
    write_csv,
    write_xlsx,
)
from wbscalc.wbs import WBSBuilder

app = typer.Typer(
    name="wbscalc",
    help="WBSCalc - Equipment lists to Primavera P6 work breakdown structures",
    no_args_is_help=True,
)

console = Console()

FATAL_ERRORS = (
    ImportFormatError,
    ConfigurationError,
    ReconciliationError,
    FileNotFoundError,
    ValidationError,
)

MAX_WARNINGS_SHOWN = 5


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    configure_logging(log_level)


def _show_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    console.print(f"[yellow]⚠[/yellow] {len(warnings)} warnings")
    for warning in warnings[:MAX_WARNINGS_SHOWN]:
        console.print(f"  {warning}", style="dim")
    if len(warnings) > MAX_WARNINGS_SHOWN:
        console.print(f"  ... and {len(warnings) - MAX_WARNINGS_SHOWN} more", style="dim")


def _fail(error: Exception) -> None:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(1)


def _resolve_output(output: Path | None, new_only: bool, xlsx: bool) -> Path:
    suffix = ".xlsx" if xlsx else ".csv"
    if output is None:
        return Path(export_filename(new_only=new_only, today=date.today(), suffix=suffix))
    if output.is_dir():
        return output / export_filename(new_only=new_only, today=date.today(), suffix=suffix)
    return output


@app.command()
def build(
    equipment_file: Path = typer.Argument(..., help="Equipment list (CSV/XLSX)"),
    project_name: str | None = typer.Option(None, "--project-name", "-p", help="Root node name"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file or directory"),
    split_subsystems: bool = typer.Option(
        False, "--split-subsystems", help="One subsystem per subsystem code"
    ),
    xlsx: bool = typer.Option(False, "--xlsx", help="Write Excel instead of CSV"),
):
    """Generate a fresh WBS from an equipment list."""
    console.print(f"[bold]Building WBS from:[/bold] {equipment_file}")

    try:
        table = read_equipment_file(equipment_file)
        result = WBSBuilder().build(
            table.items, project_name=project_name, split_subsystems=split_subsystems
        )
    except FATAL_ERRORS as e:
        _fail(e)

    rows = assemble_export(result.hierarchy, ExportMode.FULL)
    target = _resolve_output(output, new_only=False, xlsx=xlsx)
    if xlsx:
        write_xlsx(rows, target)
    else:
        write_csv(rows, target)

    summary = Table(title=f"WBS: {result.project_name}")
    summary.add_column("Category", style="cyan")
    summary.add_column("Equipment", justify="right")
    for category_id, count in result.category_counts.items():
        summary.add_row(f"{category_id} | {CATEGORIES[category_id]}", str(count))
    console.print(summary)

    console.print(f"  Subsystems: {len(result.subsystems)}")
    console.print(f"  TBC items: {result.tbc_count}")
    console.print(f"  Excluded (N): {result.excluded_count}")
    _show_warnings(table.warnings + result.warnings)
    console.print(f"[bold green]✓[/bold green] {len(rows)} WBS rows written to {target}")


@app.command()
def reconcile(
    existing_file: Path = typer.Argument(..., help="Existing P6 export (XER, WBS CSV or paste)"),
    equipment_file: Path = typer.Argument(..., help="Updated equipment list (CSV/XLSX)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file or directory"),
    full: bool = typer.Option(False, "--full", help="Export the merged hierarchy"),
    xlsx: bool = typer.Option(False, "--xlsx", help="Write Excel instead of CSV"),
):
    """Place new equipment into an existing P6 hierarchy."""
    console.print(f"[bold]Reconciling:[/bold] {equipment_file} -> {existing_file}")

    try:
        existing = load_existing_project(existing_file)
        table = read_equipment_file(equipment_file)
        comparison, result = find_missing_equipment(existing, table.items, ReconciliationEngine())
    except FATAL_ERRORS as e:
        _fail(e)

    console.print(
        f"  Equipment: {len(comparison.new)} new, {len(comparison.existing)} existing, "
        f"{len(comparison.removed)} removed, {len(comparison.excluded)} excluded (N)"
    )
    _show_warnings(existing.warnings + table.warnings + result.warnings)

    if not result.has_changes:
        console.print("[yellow]No new equipment found - nothing to export[/yellow]")
        return

    counts = result.tier_counts()
    tiers = Table(title="Placement")
    tiers.add_column("Tier", style="cyan")
    tiers.add_column("Items", justify="right")
    tiers.add_row("Explicit parent", str(counts[AssignmentTier.EXPLICIT_PARENT]))
    tiers.add_row("Existing subsystem", str(counts[AssignmentTier.EXISTING_SUBSYSTEM]))
    tiers.add_row("New subsystem", str(counts[AssignmentTier.NEW_SUBSYSTEM]))
    console.print(tiers)

    mode = ExportMode.FULL if full else ExportMode.NEW_ONLY
    rows = assemble_export(result.hierarchy, mode)
    target = _resolve_output(output, new_only=not full, xlsx=xlsx)
    if xlsx:
        write_xlsx(rows, target)
    else:
        write_csv(rows, target)

    console.print(f"[bold green]✓[/bold green] {len(rows)} WBS rows written to {target}")


@app.command()
def inspect(
    existing_file: Path = typer.Argument(..., help="Existing P6 export (XER, WBS CSV or paste)"),
):
    """Show what an existing P6 export contains."""
    try:
        existing = load_existing_project(existing_file)
    except FATAL_ERRORS as e:
        _fail(e)

    console.print(f"[bold]Project:[/bold] {existing.project_name}")
    console.print(f"  Source: {existing.source}")
    console.print(f"  WBS records: {len(existing.records)}")
    console.print(f"  Equipment: {len(existing.equipment_index)}")

    if existing.subsystems:
        table = Table(title="Subsystems")
        table.add_column("Number", style="cyan")
        table.add_column("Code")
        table.add_column("Name")
        table.add_column("WBS Code", justify="right")
        for subsystem in existing.subsystems:
            table.add_row(subsystem.label, subsystem.code, subsystem.name, subsystem.wbs_code or "")
        console.print(table)
    else:
        console.print("[yellow]No subsystems found[/yellow]")

    _show_warnings(existing.warnings)


@app.command()
def classify(
    codes: list[str] = typer.Argument(..., help="Equipment numbers"),
):
    """Classify equipment numbers into categories."""
    try:
        classifier = get_classifier()
    except ConfigurationError as e:
        _fail(e)

    table = Table(title="Classification")
    table.add_column("Equipment", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Rule")
    table.add_column("Type")
    table.add_column("Sub-device", style="yellow")

    for code in codes:
        result = classifier.classify_detailed(code)
        _, suffix = split_base_and_sub_device(code)
        table.add_row(
            code,
            f"{result.category_id} | {result.category_name}",
            result.rule_label or "-",
            classifier.describe_equipment_type(code),
            classifier.describe_sub_device(suffix) or "-",
        )

    console.print(table)


if __name__ == "__main__":
    app()
