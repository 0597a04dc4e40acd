"""
Review CLI commands for records placed on a medium-confidence title match.
"""

from __future__ import annotations

import json

import typer
from sqlalchemy.exc import SQLAlchemyError

from ...infra.exceptions import BusinessRuleError
from ...infra.locking import catalog_write_lock
from ...infra.retry import with_db_retry
from ...infra.uow import session
from ...usecases import series_review as _uc_review

app = typer.Typer(name="review", help="Series placement review queue")


@app.command("list")
def list_reviews(
    limit: int = typer.Option(100, "--limit", help="Max rows to return"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List pending placement reviews."""
    with session() as db:
        rows = _uc_review.list_pending_reviews(db, limit=limit)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "total": len(rows), "reviews": rows}, indent=2))
        raise typer.Exit(0)
    if not rows:
        typer.echo("No pending reviews")
        raise typer.Exit(0)
    for r in rows:
        typer.echo(
            f"{r['id']:>5}  {r['similarity']:.2f}  {r['record']['title']}  ->  "
            f"{r['candidate_series']['title']} (series {r['candidate_series']['id']})"
        )


def _resolve_in_unit_of_work(review_id: int, accept: bool) -> dict:
    with catalog_write_lock, session() as db:
        if accept:
            return _uc_review.accept_review(db, review_id=review_id)
        return _uc_review.dismiss_review(db, review_id=review_id)


def _resolve(review_id: int, accept: bool, json_output: bool) -> None:
    try:
        result = with_db_retry(lambda: _resolve_in_unit_of_work(review_id, accept))
    except (ValueError, BusinessRuleError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    except SQLAlchemyError as exc:
        typer.echo(f"Error: review {review_id} was not resolved: {exc}", err=True)
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps({"status": "ok", "review": result}, indent=2))
    else:
        typer.echo(f"Review {result['id']} {result['status']}")


@app.command("accept")
def accept(
    review_id: int = typer.Argument(..., help="Review id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Move the record into the candidate series."""
    _resolve(review_id, True, json_output)


@app.command("dismiss")
def dismiss(
    review_id: int = typer.Argument(..., help="Review id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Keep the record in its own series and close the review."""
    _resolve(review_id, False, json_output)
