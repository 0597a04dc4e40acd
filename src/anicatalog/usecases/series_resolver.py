"""
Series resolution for incoming catalog records.

For each new record the resolver walks a fixed cascade and stops at the first
step that yields an answer:

1. a related record (Sequel, Prequel, Side story, ...) that already belongs to
   a series: attach to that series
2. related records that exist but have no series yet: create a new series and
   backfill them into it
3. an existing series whose base title equals the record's base title: attach
4. title similarity against existing series titles: attach on an AUTO match,
   flag for review on a REVIEW match
5. otherwise create a new standalone series

``decide_series`` only reads. ``place_record`` applies a decision inside the
caller's unit of work, so a record is never counted in a series without its
back-reference being set, and vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.entities import Record, Series, SeriesReview
from ..domain.relations import extract_edges, infer_series_order, infer_series_type
from ..domain.similarity import classify_title_match
from ..domain.titles import base_title
from ..infra.exceptions import ResolutionError
from ..shared.schemas import RelationGroup
from ..shared.types import MatchVerdict, ResolutionKind, ReviewStatus
from .series_aggregates import load_members, refresh_series

logger = structlog.get_logger(__name__)

MATCH_RELATION = "relation"
MATCH_BASE_TITLE = "base_title"
MATCH_SIMILARITY = "similarity"
MATCH_NONE = "none"


@dataclass(frozen=True)
class Resolution:
    """Placement decision for one record.

    ``series_id`` is the attach target for ATTACH and the review candidate for
    FLAG. ``backfill_record_ids`` lists related records (by primary key) that a
    CREATE decision pulls into the new series.
    """

    kind: ResolutionKind
    series_id: int | None = None
    matched_by: str = MATCH_NONE
    similarity: float | None = None
    backfill_record_ids: tuple[int, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, object]:
        return {
            "decision": self.kind.value,
            "series_id": self.series_id,
            "matched_by": self.matched_by,
            "similarity": self.similarity,
            "backfill_record_ids": list(self.backfill_record_ids),
        }


def _match_by_relations(
    db: Session, external_id: int, groups: list[RelationGroup]
) -> Resolution | None:
    target_ids = [edge.target_external_id for edge in extract_edges(groups)]
    if not target_ids:
        return None

    stmt = (
        select(Record)
        .where(Record.external_id.in_(target_ids), Record.external_id != external_id)
        .order_by(Record.id)
    )
    related = list(db.scalars(stmt))
    if not related:
        return None

    series_ids: list[int] = []
    for other in related:
        if other.series_id is not None and other.series_id not in series_ids:
            series_ids.append(other.series_id)

    if series_ids:
        if len(series_ids) > 1:
            # Known limitation: first match in id order wins
            logger.warning(
                "resolver.multiple_series_targets",
                external_id=external_id,
                series_ids=series_ids,
                chosen_series_id=series_ids[0],
            )
        return Resolution(ResolutionKind.ATTACH, series_id=series_ids[0], matched_by=MATCH_RELATION)

    return Resolution(
        ResolutionKind.CREATE,
        matched_by=MATCH_RELATION,
        backfill_record_ids=tuple(other.id for other in related),
    )


def _match_by_base_title(title: str, all_series: list[Series]) -> Resolution | None:
    key = base_title(title)
    if not key:
        return None
    for series in all_series:
        if base_title(series.title) == key or (
            series.title_english and base_title(series.title_english) == key
        ):
            return Resolution(ResolutionKind.ATTACH, series_id=series.id, matched_by=MATCH_BASE_TITLE)
    return None


def _match_by_similarity(title: str, all_series: list[Series]) -> Resolution | None:
    review_candidate: tuple[int, float] | None = None
    for series in all_series:
        match = classify_title_match(title, series.title)
        if match.verdict == MatchVerdict.AUTO:
            return Resolution(
                ResolutionKind.ATTACH,
                series_id=series.id,
                matched_by=MATCH_SIMILARITY,
                similarity=match.similarity,
            )
        if match.verdict == MatchVerdict.REVIEW and (
            review_candidate is None or match.similarity > review_candidate[1]
        ):
            review_candidate = (series.id, match.similarity)

    if review_candidate is None:
        return None
    return Resolution(
        ResolutionKind.FLAG,
        series_id=review_candidate[0],
        matched_by=MATCH_SIMILARITY,
        similarity=review_candidate[1],
    )


def decide_series(
    db: Session,
    *,
    external_id: int,
    title: str,
    relation_groups: list[RelationGroup],
) -> Resolution:
    """Decide where a record belongs. Read-only and deterministic for a given corpus."""
    decision = _match_by_relations(db, external_id, relation_groups)
    if decision is not None:
        return decision

    all_series = list(db.scalars(select(Series).order_by(Series.id)))
    decision = _match_by_base_title(title, all_series) or _match_by_similarity(title, all_series)
    if decision is not None:
        return decision
    return Resolution(ResolutionKind.CREATE)


def _new_series_for(record: Record) -> Series:
    # Provisional name; refresh_series applies the canonical one
    return Series(
        title=record.title,
        title_english=record.title_english,
        title_japanese=record.title_japanese,
    )


def _assign(record: Record, series: Series, member_orders: dict[int, int | None]) -> None:
    groups = record.relation_groups
    record.series = series
    record.series_type = infer_series_type(record.kind, groups)
    record.series_order = infer_series_order(groups, member_orders, record.release_year)


def place_record(db: Session, record: Record, resolution: Resolution) -> Series:
    """Apply ``resolution`` to ``record`` and refresh the affected series.

    The record must already be added to ``db``. Does not commit.

    Raises:
        ResolutionError: if the decision references a series or record that no longer exists
    """
    if resolution.kind == ResolutionKind.ATTACH:
        series = db.get(Series, resolution.series_id)
        if series is None:
            raise ResolutionError(f"Series {resolution.series_id} not found")
        member_orders = {m.external_id: m.series_order for m in load_members(db, series.id)}
        _assign(record, series, member_orders)
    else:
        series = _new_series_for(record)
        db.add(series)
        db.flush()

        backfilled: dict[int, int | None] = {}
        for record_id in resolution.backfill_record_ids:
            other = db.get(Record, record_id)
            if other is None:
                raise ResolutionError(f"Related record {record_id} not found")
            if other.series_id is not None:
                continue
            other.series = series
            if other.series_type is None:
                other.series_type = infer_series_type(other.kind, other.relation_groups)
            if other.series_order is None:
                other.series_order = infer_series_order(
                    other.relation_groups, {}, other.release_year
                )
            backfilled[other.external_id] = other.series_order
        _assign(record, series, backfilled)

    db.flush()

    if resolution.kind == ResolutionKind.FLAG:
        db.add(
            SeriesReview(
                record_id=record.id,
                candidate_series_id=resolution.series_id,
                similarity=resolution.similarity or 0.0,
                reason=f"Title similarity {resolution.similarity or 0.0:.2f} with series {resolution.series_id}",
                status=ReviewStatus.PENDING,
            )
        )

    refresh_series(db, series)

    logger.info(
        "resolver.placed",
        external_id=record.external_id,
        placed_series_id=series.id,
        **resolution.as_dict(),
    )
    return series
