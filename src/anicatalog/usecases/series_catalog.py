from __future__ import annotations

from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from ..domain.entities import Record, Series


def _serialize_series(series: Series) -> dict[str, Any]:
    return {
        "id": series.id,
        "title": series.title,
        "title_english": series.title_english,
        "title_japanese": series.title_japanese,
        "is_main_entry": bool(series.is_main_entry),
        "status": series.status.value,
        "total_episodes": series.total_episodes,
        "start_year": series.start_year,
        "end_year": series.end_year,
        "average_score": series.average_score,
    }


def _serialize_member(record: Record) -> dict[str, Any]:
    return {
        "external_id": record.external_id,
        "title": record.title,
        "kind": record.kind.value,
        "release_year": record.release_year,
        "episodes": record.episodes,
        "series_type": record.series_type.value if record.series_type else None,
        "series_order": record.series_order,
    }


def list_series(db: Session, *, search: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
    """Series ordered by title, optionally filtered by a case-insensitive title substring."""
    stmt = select(Series).order_by(Series.title, Series.id).limit(limit)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Series.title.ilike(pattern), Series.title_english.ilike(pattern)))
    return [_serialize_series(s) for s in db.scalars(stmt)]


def get_series_detail(db: Session, *, series_id: int) -> dict[str, Any]:
    """Series summary plus members in series order, or raise ValueError if missing."""
    stmt = select(Series).options(selectinload(Series.records)).where(Series.id == series_id)
    series = db.scalar(stmt)
    if series is None:
        raise ValueError("Series not found")

    members = sorted(
        series.records,
        key=lambda r: (r.series_order is None, r.series_order or 0, r.external_id),
    )
    detail = _serialize_series(series)
    detail["members"] = [_serialize_member(r) for r in members]
    return detail
