"""
Operator-driven series merge pass.

A pass takes one snapshot of every series, partitions it greedily into
candidate groups of similar titles, and asks an adjudicator what to do with
each group. Every merged group is its own unit of work: members of absorbed
series are reassigned first, absorbed rows are deleted only once nothing
references them, and the survivor's aggregates are rebuilt from its full
post-merge member set. A failing group is rolled back and reported; groups
already merged stay merged.

Grouping is greedy and depends on series creation order. A series that
would fit a later group better can be taken by an earlier, weaker match.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..domain.entities import Record, Series, SeriesReview
from ..domain.similarity import MERGE_GROUP_THRESHOLD, title_similarity
from ..infra import uow
from ..infra.exceptions import AniCatalogError, MergeError
from ..infra.locking import catalog_write_lock
from ..infra.retry import with_db_retry
from ..shared.types import RecordKind, ReviewStatus
from .series_aggregates import SeriesAggregates, load_members, recompute_series_aggregates

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MemberSnapshot:
    external_id: int
    title: str
    release_year: int | None
    episodes: int | None
    kind: RecordKind


@dataclass(frozen=True)
class SeriesSnapshot:
    series_id: int
    title: str
    created_at: datetime | None
    members: tuple[MemberSnapshot, ...]


@dataclass
class MergeCandidateGroup:
    """Two or more series that probably denote the same franchise."""

    members: list[SeriesSnapshot]

    @property
    def series_ids(self) -> list[int]:
        return [m.series_id for m in self.members]


@dataclass(frozen=True)
class MergeResult:
    survivor_id: int
    absorbed_ids: tuple[int, ...]
    reassigned_records: int
    aggregates: SeriesAggregates


@dataclass(frozen=True)
class MergeFailure:
    series_ids: tuple[int, ...]
    error: str


@dataclass
class MergePassReport:
    groups_found: int = 0
    merged: list[MergeResult] = field(default_factory=list)
    skipped: list[tuple[int, ...]] = field(default_factory=list)
    failed: list[MergeFailure] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "groups_found": self.groups_found,
            "merged": [
                {
                    "survivor_id": r.survivor_id,
                    "absorbed_ids": list(r.absorbed_ids),
                    "reassigned_records": r.reassigned_records,
                    "total_episodes": r.aggregates.total_episodes,
                }
                for r in self.merged
            ],
            "skipped": [list(ids) for ids in self.skipped],
            "failed": [{"series_ids": list(f.series_ids), "error": f.error} for f in self.failed],
        }


# Returns the index of the surviving series within the group, or None to skip
Adjudicator = Callable[[MergeCandidateGroup], int | None]


def load_series_snapshot(db: Session) -> list[SeriesSnapshot]:
    """All series in creation order, each with members ordered by release year."""
    stmt = (
        select(Series)
        .options(selectinload(Series.records))
        .order_by(Series.created_at, Series.id)
    )
    snapshot: list[SeriesSnapshot] = []
    for series in db.scalars(stmt):
        members = sorted(
            series.records,
            key=lambda r: (r.release_year is None, r.release_year or 0, r.external_id),
        )
        snapshot.append(
            SeriesSnapshot(
                series_id=series.id,
                title=series.title,
                created_at=series.created_at,
                members=tuple(
                    MemberSnapshot(r.external_id, r.title, r.release_year, r.episodes, r.kind)
                    for r in members
                ),
            )
        )
    return snapshot


def find_merge_candidate_groups(
    snapshot: Sequence[SeriesSnapshot],
    threshold: float = MERGE_GROUP_THRESHOLD,
) -> list[MergeCandidateGroup]:
    """Greedy single-pass partition of ``snapshot`` into groups of similar titles.

    Each unprocessed series anchors a group and collects every later
    unprocessed series whose title similarity to the anchor exceeds
    ``threshold``. A series lands in at most one group per pass.
    """
    processed: set[int] = set()
    groups: list[MergeCandidateGroup] = []

    for index, anchor in enumerate(snapshot):
        if anchor.series_id in processed:
            continue
        processed.add(anchor.series_id)

        members = [anchor]
        for other in snapshot[index + 1 :]:
            if other.series_id in processed:
                continue
            if title_similarity(anchor.title, other.title) > threshold:
                members.append(other)
                processed.add(other.series_id)

        if len(members) > 1:
            groups.append(MergeCandidateGroup(members=members))
    return groups


def _reassign_record(record: Record, survivor: Series) -> None:
    record.series = survivor


def merge_series_group(
    db: Session, *, survivor_id: int, absorbed_ids: Sequence[int]
) -> MergeResult:
    """Fold ``absorbed_ids`` into ``survivor_id`` inside the caller's unit of work.

    The survivor keeps its name. Does not commit; any exception leaves the
    caller's transaction to roll back, so a failed merge changes nothing.

    Raises:
        MergeError: on invalid input, a missing series, or any datastore failure
    """
    group_ids = [survivor_id, *absorbed_ids]
    if not absorbed_ids:
        raise MergeError(group_ids, "nothing to absorb")
    if survivor_id in absorbed_ids or len(set(absorbed_ids)) != len(absorbed_ids):
        raise MergeError(group_ids, "survivor and absorbed series must be distinct")

    try:
        survivor = db.get(Series, survivor_id)
        if survivor is None:
            raise MergeError(group_ids, f"series {survivor_id} not found")
        absorbed: list[Series] = []
        for series_id in absorbed_ids:
            series = db.get(Series, series_id)
            if series is None:
                raise MergeError(group_ids, f"series {series_id} not found")
            absorbed.append(series)

        # Reassign every member before any row is deleted
        reassigned = 0
        for series in absorbed:
            for record in load_members(db, series.id):
                _reassign_record(record, survivor)
                reassigned += 1
        db.flush()

        db.execute(
            update(SeriesReview)
            .where(
                SeriesReview.candidate_series_id.in_(list(absorbed_ids)),
                SeriesReview.status == ReviewStatus.PENDING,
            )
            .values(candidate_series_id=survivor_id)
        )

        for series in absorbed:
            remaining = db.scalar(
                select(func.count()).select_from(Record).where(Record.series_id == series.id)
            )
            if remaining:
                raise MergeError(
                    group_ids, f"series {series.id} still has {remaining} member(s)"
                )
            db.delete(series)
        db.flush()

        aggregates = recompute_series_aggregates(db, survivor)
        db.flush()
    except SQLAlchemyError as exc:
        raise MergeError(group_ids, str(exc)) from exc

    logger.info(
        "merge.group_merged",
        survivor_id=survivor_id,
        absorbed_ids=list(absorbed_ids),
        reassigned_records=reassigned,
        total_episodes=aggregates.total_episodes,
    )
    return MergeResult(
        survivor_id=survivor_id,
        absorbed_ids=tuple(absorbed_ids),
        reassigned_records=reassigned,
        aggregates=aggregates,
    )


def _merge_in_unit_of_work(survivor_id: int, absorbed_ids: list[int]) -> MergeResult:
    with uow.session() as db:
        return merge_series_group(db, survivor_id=survivor_id, absorbed_ids=absorbed_ids)


def run_merge_pass(adjudicate: Adjudicator) -> MergePassReport:
    """Run one full adjudication pass over a snapshot of all series.

    Holds the catalog write lock for the whole pass. Each chosen merge is
    committed on its own; a failing group is rolled back, logged and reported
    without affecting other groups.
    """
    report = MergePassReport()
    with catalog_write_lock:
        with uow.session() as db:
            snapshot = load_series_snapshot(db)
        groups = find_merge_candidate_groups(snapshot)
        report.groups_found = len(groups)
        logger.info("merge.pass_started", series=len(snapshot), groups=len(groups))

        for group in groups:
            choice = adjudicate(group)
            if choice is None:
                report.skipped.append(tuple(group.series_ids))
                logger.info("merge.group_skipped", series_ids=group.series_ids)
                continue
            if not 0 <= choice < len(group.members):
                raise ValueError(f"Survivor index {choice} out of range for group {group.series_ids}")

            survivor_id = group.members[choice].series_id
            absorbed_ids = [sid for sid in group.series_ids if sid != survivor_id]
            try:
                result = with_db_retry(
                    lambda: _merge_in_unit_of_work(survivor_id, absorbed_ids)
                )
            except (SQLAlchemyError, AniCatalogError) as exc:
                logger.error("merge.group_failed", series_ids=group.series_ids, error=str(exc))
                report.failed.append(MergeFailure(tuple(group.series_ids), str(exc)))
                continue
            report.merged.append(result)

    logger.info(
        "merge.pass_finished",
        merged=len(report.merged),
        skipped=len(report.skipped),
        failed=len(report.failed),
    )
    return report
