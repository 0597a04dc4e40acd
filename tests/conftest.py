"""
Global test configuration for AniCatalog.

Every test runs against a fresh in-memory SQLite database. The module-level
``SessionLocal`` is swapped for one bound to it, so use cases and CLI
commands that open ``uow.session()`` see the same data as the test.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from anicatalog.adapters.catalog.base import CatalogNotFoundError
from anicatalog.domain.entities import Record, Series
from anicatalog.infra import db as db_module
from anicatalog.shared.schemas import CatalogPage, CatalogRecord, CatalogSummary
from anicatalog.shared.types import RecordKind


@pytest.fixture(autouse=True)
def _force_test_db(monkeypatch):
    """Point the unit of work at a private in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    db_module._enable_sqlite_foreign_keys(engine)
    db_module.Base.metadata.create_all(engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    monkeypatch.setattr(db_module, "SessionLocal", TestSessionLocal)

    yield engine
    engine.dispose()


@pytest.fixture
def db_session(_force_test_db) -> Session:
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _relations(relations: dict[str, list[int]] | None, media_type: str = "anime") -> list[dict]:
    return [
        {"relation": kind, "entry": [{"type": media_type, "mal_id": i} for i in ids]}
        for kind, ids in (relations or {}).items()
    ]


@pytest.fixture
def make_catalog_record() -> Callable[..., CatalogRecord]:
    """Factory for validated catalog records in the source's JSON shape."""

    def _make(
        external_id: int,
        title: str,
        *,
        kind: str = "TV",
        year: int | None = None,
        episodes: int | None = 12,
        relations: dict[str, list[int]] | None = None,
        status: str | None = "Finished Airing",
        score: float | None = None,
        title_english: str | None = None,
        genres: list[tuple[int, str]] | None = None,
        studios: list[tuple[int, str]] | None = None,
    ) -> CatalogRecord:
        return CatalogRecord.model_validate(
            {
                "mal_id": external_id,
                "title": title,
                "title_english": title_english,
                "type": kind,
                "year": year,
                "episodes": episodes,
                "status": status,
                "score": score,
                "relations": _relations(relations),
                "genres": [{"mal_id": i, "name": n} for i, n in genres or []],
                "studios": [{"mal_id": i, "name": n} for i, n in studios or []],
            }
        )

    return _make


@pytest.fixture
def seed_series(db_session) -> Callable[..., int]:
    """Insert a series with member records and commit; returns the series id.

    Each member is ``(external_id, title, episodes, year)`` or a dict of
    Record column values.
    """

    def _seed(title: str, members: list[tuple | dict] = (), **series_fields) -> int:
        series = Series(title=title, **series_fields)
        db_session.add(series)
        db_session.flush()
        for member in members:
            if isinstance(member, dict):
                values = {"kind": RecordKind.TV, "relations": [], **member}
            else:
                external_id, record_title, episodes, year = member
                values = {
                    "external_id": external_id,
                    "title": record_title,
                    "episodes": episodes,
                    "release_year": year,
                    "kind": RecordKind.TV,
                    "relations": [],
                }
            db_session.add(Record(series_id=series.id, **values))
        db_session.commit()
        return series.id

    return _seed


class FakeCatalogSource:
    """In-memory catalog source.

    ``pages`` lists the identifiers on each listing page; ``records`` maps an
    identifier to a catalog record, or to an exception to raise when fetched.
    """

    def __init__(self, pages: list[list[int]], records: dict[int, CatalogRecord | Exception]):
        self.pages = pages
        self.records = records
        self.page_errors: dict[int, Exception] = {}
        self.fetched: list[int] = []
        self.pages_fetched: list[int] = []

    def get_top_page(self, page: int) -> CatalogPage:
        self.pages_fetched.append(page)
        if page in self.page_errors:
            raise self.page_errors[page]
        if page > len(self.pages):
            raise CatalogNotFoundError(f"page {page} not found")
        return CatalogPage(
            page=page,
            last_page=len(self.pages),
            has_next_page=page < len(self.pages),
            items=[CatalogSummary(external_id=i) for i in self.pages[page - 1]],
        )

    def get_full_record(self, external_id: int) -> CatalogRecord:
        self.fetched.append(external_id)
        value = self.records.get(external_id)
        if value is None:
            raise CatalogNotFoundError(f"record {external_id} not found")
        if isinstance(value, BaseException):
            raise value
        return value


@pytest.fixture
def fake_catalog_source() -> type[FakeCatalogSource]:
    return FakeCatalogSource
