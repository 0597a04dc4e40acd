"""
Series aggregate maintenance.

Aggregates are always rebuilt from the complete current member set, never
adjusted incrementally, so a membership change can't leave a stale rollup.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.entities import Record, Series
from ..domain.naming import CanonicalName, select_canonical_name
from ..shared.types import AIRING_STATUS, FINISHED_STATUS, SeriesStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SeriesAggregates:
    total_episodes: int
    start_year: int | None
    end_year: int | None
    status: SeriesStatus
    average_score: float | None


def compute_aggregates(members: Sequence[Record]) -> SeriesAggregates:
    """Rollup of a member set. Null episode counts count as 0; null years and scores are skipped."""
    years = [m.release_year for m in members if m.release_year is not None]
    scores = [m.score for m in members if m.score is not None]
    statuses = {m.status for m in members}

    if AIRING_STATUS in statuses:
        status = SeriesStatus.ONGOING
    elif FINISHED_STATUS in statuses:
        status = SeriesStatus.COMPLETED
    else:
        status = SeriesStatus.UPCOMING

    return SeriesAggregates(
        total_episodes=sum(m.episodes or 0 for m in members),
        start_year=min(years) if years else None,
        end_year=max(years) if years else None,
        status=status,
        average_score=round(sum(scores) / len(scores), 2) if scores else None,
    )


def load_members(db: Session, series_id: int) -> list[Record]:
    """Current members of a series, read from the database after flushing pending changes."""
    db.flush()
    stmt = select(Record).where(Record.series_id == series_id).order_by(Record.external_id)
    return list(db.scalars(stmt))


def recompute_series_aggregates(
    db: Session, series: Series, members: Sequence[Record] | None = None
) -> SeriesAggregates:
    """Rebuild ``series`` statistics from scratch. Does not commit."""
    if members is None:
        members = load_members(db, series.id)
    aggregates = compute_aggregates(members)

    series.total_episodes = aggregates.total_episodes
    series.start_year = aggregates.start_year
    series.end_year = aggregates.end_year
    series.status = aggregates.status
    series.average_score = aggregates.average_score
    db.add(series)
    return aggregates


def refresh_series_identity(
    db: Session, series: Series, members: Sequence[Record] | None = None
) -> CanonicalName | None:
    """Re-run canonical name selection over the full member set and apply it.

    Returns None (leaving the series untouched) when the series has no members.
    """
    if members is None:
        members = load_members(db, series.id)
    if not members:
        return None

    name = select_canonical_name(members)
    if name.title != series.title:
        logger.info(
            "series.renamed",
            series_id=series.id,
            old_title=series.title,
            new_title=name.title,
            rule=name.rule.value,
        )
    series.title = name.title
    series.title_english = name.title_english
    series.title_japanese = name.title_japanese
    series.is_main_entry = name.is_main_entry
    db.add(series)
    return name


def refresh_series(db: Session, series: Series) -> list[Record]:
    """Recompute aggregates and canonical name after a membership change."""
    members = load_members(db, series.id)
    recompute_series_aggregates(db, series, members)
    refresh_series_identity(db, series, members)
    return members
