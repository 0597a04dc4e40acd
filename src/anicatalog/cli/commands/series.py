"""
Series CLI commands: inspection and the interactive merge pass.
"""

from __future__ import annotations

import itertools
import json

import typer

from ...infra.uow import session
from ...usecases import series_catalog as _uc_catalog
from ...usecases import series_merge as _uc_merge
from ._ops.merge_prompt import build_group_prompt, choice_prompt, parse_survivor_choice

app = typer.Typer(name="series", help="Series inspection and merge adjudication")


@app.command("list")
def list_series(
    search: str | None = typer.Option(None, "--search", help="Case-insensitive title filter"),
    limit: int = typer.Option(100, "--limit", help="Max rows to return"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List series with their aggregate statistics."""
    with session() as db:
        rows = _uc_catalog.list_series(db, search=search, limit=limit)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "total": len(rows), "series": rows}, indent=2))
        raise typer.Exit(0)
    if not rows:
        typer.echo("No series found")
        raise typer.Exit(0)
    for r in rows:
        years = f"{r['start_year'] or '?'}-{r['end_year'] or '?'}"
        typer.echo(f"{r['id']:>6}  {r['title']}  [{years}]  {r['total_episodes']} eps  {r['status']}")


@app.command("show")
def show_series(
    series_id: int = typer.Argument(..., help="Series id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show one series and its members in series order."""
    try:
        with session() as db:
            detail = _uc_catalog.get_series_detail(db, series_id=series_id)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "series": detail}, indent=2))
        return
    typer.echo(f"{detail['title']} (series {detail['id']})")
    if detail["title_english"]:
        typer.echo(f"  English: {detail['title_english']}")
    typer.echo(
        f"  {detail['total_episodes']} episodes, {detail['start_year'] or '?'}-"
        f"{detail['end_year'] or '?'}, {detail['status']}"
    )
    for m in detail["members"]:
        typer.echo(
            f"  #{m['series_order'] or '?'}  {m['title']} ({m['release_year'] or 'Unknown'}) "
            f"{m['kind']} {m['series_type'] or ''}"
        )


@app.command("merge")
def merge_series(
    dry_run: bool = typer.Option(False, "--dry-run", help="List candidate groups without merging"),
    json_output: bool = typer.Option(False, "--json", help="Output the final report in JSON format"),
):
    """
    Interactive merge pass over all series.

    Each group of similar series is shown; choose the surviving series or skip.
    Run with the importer paused.
    """
    if dry_run:
        with session() as db:
            groups = _uc_merge.find_merge_candidate_groups(_uc_merge.load_series_snapshot(db))
        if json_output:
            typer.echo(json.dumps({"status": "ok", "groups": [g.series_ids for g in groups]}, indent=2))
            raise typer.Exit(0)
        if not groups:
            typer.echo("No candidate groups found")
            raise typer.Exit(0)
        for number, group in enumerate(groups, start=1):
            typer.echo(build_group_prompt(group, number))
            typer.echo("")
        raise typer.Exit(0)

    counter = itertools.count(1)

    def _adjudicate(group: _uc_merge.MergeCandidateGroup) -> int | None:
        typer.echo("")
        typer.echo(build_group_prompt(group, next(counter)))
        while True:
            response = typer.prompt(choice_prompt(group), default="s")
            try:
                choice = parse_survivor_choice(response, len(group.members))
            except ValueError as exc:
                typer.echo(str(exc))
                continue
            if choice is None:
                typer.echo("Skipped group")
            return choice

    report = _uc_merge.run_merge_pass(_adjudicate)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "report": report.as_dict()}, indent=2))
    else:
        typer.echo("")
        typer.echo(
            f"Groups: {report.groups_found}  merged: {len(report.merged)}  "
            f"skipped: {len(report.skipped)}  failed: {len(report.failed)}"
        )
        for result in report.merged:
            typer.echo(
                f"  merged {list(result.absorbed_ids)} into {result.survivor_id} "
                f"({result.aggregates.total_episodes} episodes)"
            )
        for failure in report.failed:
            typer.echo(f"  failed {list(failure.series_ids)}: {failure.error}")
    if report.failed:
        raise typer.Exit(1)
