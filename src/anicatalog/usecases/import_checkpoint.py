"""
Durable import progress.

The checkpoint is a plain value: the importer loads it once, threads it
through its loop and saves it after every record, strictly after that
record's unit of work has committed.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..infra.exceptions import ValidationError


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ImportCheckpoint:
    current_page: int = 1
    processed_ids: set[int] = field(default_factory=set)
    failed_ids: set[int] = field(default_factory=set)
    total_pages: int | None = None
    started_at: datetime = field(default_factory=_now)
    last_updated_at: datetime = field(default_factory=_now)

    def mark_processed(self, external_id: int) -> None:
        self.processed_ids.add(external_id)
        self.failed_ids.discard(external_id)

    def mark_failed(self, external_id: int) -> None:
        self.failed_ids.add(external_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "processedIds": sorted(self.processed_ids),
            "failedIds": sorted(self.failed_ids),
            "totalPages": self.total_pages,
            "startedAt": self.started_at.isoformat(),
            "lastUpdatedAt": self.last_updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImportCheckpoint:
        try:
            checkpoint = cls(
                current_page=int(data.get("currentPage", 1)),
                processed_ids={int(i) for i in data.get("processedIds", [])},
                failed_ids={int(i) for i in data.get("failedIds", [])},
                total_pages=data.get("totalPages"),
            )
            if data.get("startedAt"):
                checkpoint.started_at = datetime.fromisoformat(data["startedAt"])
            if data.get("lastUpdatedAt"):
                checkpoint.last_updated_at = datetime.fromisoformat(data["lastUpdatedAt"])
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid checkpoint data: {exc}") from exc
        return checkpoint

    @classmethod
    def load(cls, path: str | Path) -> ImportCheckpoint:
        """Read a checkpoint, or start a fresh one when the file does not exist.

        Raises:
            ValidationError: if the file exists but cannot be parsed
        """
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Checkpoint {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValidationError(f"Checkpoint {path} must contain a JSON object")
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        """Atomically overwrite the checkpoint file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.last_updated_at = _now()
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self.to_dict(), fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def reset_checkpoint(path: str | Path) -> bool:
    """Delete the checkpoint file. Returns False when there was nothing to delete."""
    path = Path(path)
    if not path.exists():
        return False
    path.unlink()
    return True


def checkpoint_status(checkpoint: ImportCheckpoint) -> dict[str, Any]:
    elapsed = (checkpoint.last_updated_at - checkpoint.started_at).total_seconds()
    percent = None
    if checkpoint.total_pages:
        percent = round(min(checkpoint.current_page / checkpoint.total_pages, 1.0) * 100, 1)
    return {
        "current_page": checkpoint.current_page,
        "total_pages": checkpoint.total_pages,
        "processed": len(checkpoint.processed_ids),
        "failed": len(checkpoint.failed_ids),
        "failed_ids": sorted(checkpoint.failed_ids),
        "percent_complete": percent,
        "started_at": checkpoint.started_at.isoformat(),
        "last_updated_at": checkpoint.last_updated_at.isoformat(),
        "elapsed_seconds": round(max(elapsed, 0.0), 1),
    }
