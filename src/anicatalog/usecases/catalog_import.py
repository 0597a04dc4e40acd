"""
Resumable catalog import.

The import is one sequential loop: listing pages in page order, records
within a page in listing order. Each record is persisted and placed into a
series in a single unit of work; only after that commits is the record
marked processed in the checkpoint. Per-record failures are collected and
never abort the run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..adapters.catalog.base import CatalogError, CatalogNotFoundError, CatalogSource
from ..domain.entities import Genre, Record, Studio
from ..infra import uow
from ..infra.exceptions import AniCatalogError, CatalogImportError
from ..infra.locking import catalog_write_lock
from ..infra.retry import with_db_retry
from ..shared.schemas import CatalogRecord, NamedRef
from .import_checkpoint import ImportCheckpoint
from .series_resolver import decide_series, place_record

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ImportFailure:
    external_id: int
    error: str


@dataclass(frozen=True)
class ImportedRecord:
    external_id: int
    series_id: int
    decision: str


@dataclass
class ImportSummary:
    """Counters for one import run."""

    attempted: int = 0
    imported: int = 0
    already_imported: int = 0
    already_processed: int = 0
    not_found: int = 0
    pages_completed: int = 0
    decisions: Counter = field(default_factory=Counter)
    failures: list[ImportFailure] = field(default_factory=list)
    stopped_reason: str | None = None

    @property
    def failed(self) -> int:
        return len(self.failures)

    def as_dict(self) -> dict[str, object]:
        return {
            "attempted": self.attempted,
            "imported": self.imported,
            "already_imported": self.already_imported,
            "already_processed": self.already_processed,
            "not_found": self.not_found,
            "failed": self.failed,
            "pages_completed": self.pages_completed,
            "decisions": dict(self.decisions),
            "failures": [{"external_id": f.external_id, "error": f.error} for f in self.failures],
            "stopped_reason": self.stopped_reason,
        }


def record_exists(db: Session, external_id: int) -> bool:
    return db.scalar(select(Record.id).where(Record.external_id == external_id)) is not None


def _already_imported(external_id: int) -> bool:
    with uow.session() as db:
        return record_exists(db, external_id)


def _upsert_refs(db: Session, model: type[Genre] | type[Studio], refs: list[NamedRef]) -> list:
    rows = []
    seen: set[int] = set()
    for ref in refs:
        if ref.external_id in seen:
            continue
        seen.add(ref.external_id)
        row = db.scalar(select(model).where(model.external_id == ref.external_id))
        if row is None:
            row = model(external_id=ref.external_id, name=ref.name)
            db.add(row)
        else:
            row.name = ref.name
        rows.append(row)
    return rows


def _build_record(data: CatalogRecord) -> Record:
    return Record(
        external_id=data.external_id,
        title=data.title,
        title_english=data.title_english,
        title_japanese=data.title_japanese,
        kind=data.kind,
        release_year=data.release_year,
        episodes=data.episodes,
        status=data.status,
        score=data.score,
        synopsis=data.synopsis,
        image_url=data.image_url,
        relations=[group.model_dump(by_alias=True) for group in data.relations],
    )


def import_record(data: CatalogRecord) -> ImportedRecord | None:
    """Persist one record and place it into a series as a single unit of work.

    Returns None when the record already exists.

    Raises:
        OperationalError: on connection-level failures, so the caller can retry the unit
        CatalogImportError: on any other persistence or placement failure
    """
    with catalog_write_lock:
        try:
            with uow.session() as db:
                if record_exists(db, data.external_id):
                    return None

                resolution = decide_series(
                    db,
                    external_id=data.external_id,
                    title=data.title,
                    relation_groups=data.relations,
                )
                record = _build_record(data)
                record.genres = _upsert_refs(db, Genre, data.genres)
                record.studios = _upsert_refs(db, Studio, data.studios)
                db.add(record)
                db.flush()

                series = place_record(db, record, resolution)
                return ImportedRecord(data.external_id, series.id, resolution.kind.value)
        except OperationalError:
            raise
        except (SQLAlchemyError, AniCatalogError) as exc:
            raise CatalogImportError(data.external_id, str(exc)) from exc


def _process_record(
    source: CatalogSource,
    external_id: int,
    checkpoint: ImportCheckpoint,
    summary: ImportSummary,
    checkpoint_path: Path,
) -> None:
    summary.attempted += 1

    try:
        exists = with_db_retry(lambda: _already_imported(external_id))
    except SQLAlchemyError as exc:
        _record_failure(external_id, exc, checkpoint, summary, checkpoint_path)
        return
    if exists:
        summary.already_imported += 1
        checkpoint.mark_processed(external_id)
        checkpoint.save(checkpoint_path)
        return

    try:
        data = source.get_full_record(external_id)
    except CatalogNotFoundError:
        logger.info("import.not_found", external_id=external_id)
        summary.not_found += 1
        checkpoint.mark_processed(external_id)
        checkpoint.save(checkpoint_path)
        return
    except CatalogError as exc:
        _record_failure(external_id, exc, checkpoint, summary, checkpoint_path)
        return

    try:
        imported = with_db_retry(lambda: import_record(data))
    except (SQLAlchemyError, AniCatalogError) as exc:
        _record_failure(external_id, exc, checkpoint, summary, checkpoint_path)
        return

    if imported is None:
        summary.already_imported += 1
    else:
        summary.imported += 1
        summary.decisions[imported.decision] += 1
    # The unit of work has committed; only now may the record count as processed
    checkpoint.mark_processed(external_id)
    checkpoint.save(checkpoint_path)


def _record_failure(
    external_id: int,
    exc: Exception,
    checkpoint: ImportCheckpoint,
    summary: ImportSummary,
    checkpoint_path: Path,
) -> None:
    logger.error("import.record_failed", external_id=external_id, error=str(exc))
    summary.failures.append(ImportFailure(external_id, str(exc)))
    checkpoint.mark_failed(external_id)
    checkpoint.save(checkpoint_path)


def run_import(
    source: CatalogSource,
    *,
    checkpoint_path: str | Path,
    limit: int | None = None,
) -> ImportSummary:
    """Import the top listing, resuming from the checkpoint at ``checkpoint_path``.

    ``limit`` caps how many identifiers this run attempts. Identifiers already
    in the checkpoint's processed set are never fetched again.
    """
    checkpoint_path = Path(checkpoint_path)
    checkpoint = ImportCheckpoint.load(checkpoint_path)
    summary = ImportSummary()
    logger.info(
        "import.started",
        page=checkpoint.current_page,
        processed=len(checkpoint.processed_ids),
        failed=len(checkpoint.failed_ids),
        limit=limit,
    )

    while True:
        page = checkpoint.current_page
        try:
            listing = source.get_top_page(page)
        except CatalogNotFoundError:
            summary.stopped_reason = "completed"
            break
        except CatalogError as exc:
            logger.error("import.page_failed", page=page, error=str(exc))
            summary.stopped_reason = f"page {page} failed: {exc}"
            break

        checkpoint.total_pages = listing.last_page
        for item in listing.items:
            if limit is not None and summary.attempted >= limit:
                break
            if item.external_id in checkpoint.processed_ids:
                summary.already_processed += 1
                continue
            _process_record(source, item.external_id, checkpoint, summary, checkpoint_path)

        if limit is not None and summary.attempted >= limit:
            summary.stopped_reason = "limit reached"
            break

        summary.pages_completed += 1
        if not listing.has_next_page or page >= listing.last_page:
            summary.stopped_reason = "completed"
            break
        checkpoint.current_page = page + 1
        checkpoint.save(checkpoint_path)

    checkpoint.save(checkpoint_path)
    logger.info("import.finished", **summary.as_dict())
    return summary


def retry_failed(source: CatalogSource, *, checkpoint_path: str | Path) -> ImportSummary:
    """Re-attempt every identifier in the checkpoint's failed set."""
    checkpoint_path = Path(checkpoint_path)
    checkpoint = ImportCheckpoint.load(checkpoint_path)
    summary = ImportSummary()

    for external_id in sorted(checkpoint.failed_ids):
        _process_record(source, external_id, checkpoint, summary, checkpoint_path)

    summary.stopped_reason = "completed"
    checkpoint.save(checkpoint_path)
    logger.info("import.retry_finished", **summary.as_dict())
    return summary


def format_failure_summary(summary: ImportSummary) -> list[str]:
    """Operator-facing lines describing the run, failures last."""
    lines = [
        f"Attempted: {summary.attempted}",
        f"Imported: {summary.imported}",
        f"Already imported: {summary.already_imported}",
        f"Skipped (checkpoint): {summary.already_processed}",
        f"Not found: {summary.not_found}",
        f"Failed: {summary.failed}",
    ]
    for decision, count in sorted(summary.decisions.items()):
        lines.append(f"  {decision}: {count}")
    if summary.failures:
        lines.append("Failed identifiers:")
        lines.extend(f"  {f.external_id}: {f.error}" for f in summary.failures)
    return lines
