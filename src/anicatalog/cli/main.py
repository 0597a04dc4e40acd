"""
Main CLI application using Typer with router-based command dispatch.

All command groups are registered through the centralized CliRouter.
"""

from __future__ import annotations

import typer

from ..infra.logging import configure_logging
from .commands import catalog, review, series
from .router import get_router

app = typer.Typer(help="AniCatalog operator CLI")

router = get_router(app)

router.register(
    "catalog",
    catalog.app,
    help_text="Catalog import runs and checkpoint management",
)

router.register(
    "series",
    series.app,
    help_text="Series inspection and merge adjudication",
)

router.register(
    "review",
    review.app,
    help_text="Series placement review queue",
)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """AniCatalog - anime catalog import and series consolidation."""
    configure_logging(log_level)
    ctx.ensure_object(dict)


def cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
