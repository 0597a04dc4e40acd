"""
Catalog CLI commands: import runs and checkpoint management.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ...adapters.catalog import JikanClient
from ...infra.exceptions import ValidationError
from ...infra.settings import settings
from ...usecases import catalog_import as _uc_import
from ...usecases import import_checkpoint as _uc_checkpoint

app = typer.Typer(name="catalog", help="Catalog import runs and checkpoint management")


def _checkpoint_option():
    return typer.Option(
        settings.import_checkpoint_path, "--checkpoint", help="Path to the import checkpoint file"
    )


def _echo_summary(summary: _uc_import.ImportSummary, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps({"status": "ok", "summary": summary.as_dict()}, indent=2))
        return
    typer.echo(f"Import {summary.stopped_reason or 'stopped'}")
    for line in _uc_import.format_failure_summary(summary):
        typer.echo(f"  {line}")


@app.command("import")
def import_catalog(
    limit: int = typer.Option(None, "--limit", help="Max identifiers to attempt in this run"),
    checkpoint: str = _checkpoint_option(),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """
    Import the top listing, resuming from the checkpoint.

    Safe to interrupt: rerunning resumes after the last committed record.
    """
    try:
        summary = _uc_import.run_import(
            JikanClient(), checkpoint_path=Path(checkpoint), limit=limit
        )
    except ValidationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    _echo_summary(summary, json_output)


@app.command("retry-failed")
def retry_failed(
    checkpoint: str = _checkpoint_option(),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Re-attempt every identifier recorded as failed in the checkpoint."""
    try:
        summary = _uc_import.retry_failed(JikanClient(), checkpoint_path=Path(checkpoint))
    except ValidationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    _echo_summary(summary, json_output)


@app.command("status")
def status(
    checkpoint: str = _checkpoint_option(),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show import progress from the checkpoint."""
    path = Path(checkpoint)
    if not path.exists():
        typer.echo("No import checkpoint found")
        raise typer.Exit(0)
    try:
        report = _uc_checkpoint.checkpoint_status(_uc_checkpoint.ImportCheckpoint.load(path))
    except ValidationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "progress": report}, indent=2))
        return
    total = report["total_pages"] if report["total_pages"] is not None else "?"
    typer.echo(f"Page: {report['current_page']}/{total}")
    if report["percent_complete"] is not None:
        typer.echo(f"Progress: {report['percent_complete']}%")
    typer.echo(f"Processed: {report['processed']}")
    typer.echo(f"Failed: {report['failed']}")
    typer.echo(f"Started: {report['started_at']}")
    typer.echo(f"Elapsed: {report['elapsed_seconds']}s")
    if report["failed_ids"]:
        typer.echo(f"Failed ids: {', '.join(str(i) for i in report['failed_ids'])}")


@app.command("reset")
def reset(
    checkpoint: str = _checkpoint_option(),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
):
    """Delete the checkpoint so the next import starts from page 1."""
    path = Path(checkpoint)
    if not path.exists():
        typer.echo("No import checkpoint found")
        raise typer.Exit(0)
    if not yes and not typer.confirm(f"Delete import checkpoint {path}?"):
        typer.echo("Reset cancelled")
        raise typer.Exit(0)
    _uc_checkpoint.reset_checkpoint(path)
    typer.echo(f"Deleted {path}")
