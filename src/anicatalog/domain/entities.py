"""
Domain entities for AniCatalog.

A ``Record`` is one imported catalog entry (a TV season, a movie, an OVA...).
A ``Series`` is the franchise aggregate that groups records; its statistics
are derived from its members and recomputed whenever membership changes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from ..infra.db import Base
from ..shared.schemas import RelationGroup
from ..shared.types import (
    RecordKind,
    ReviewStatus,
    SeriesStatus,
    SeriesType,
)

JSONType = sa.JSON().with_variant(PG_JSONB(), "postgresql")


def _enum_column(enum_cls: type[Enum]) -> SQLEnum:
    # Store enum values ("tv"), not member names ("TV")
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


record_genres = Table(
    "record_genres",
    Base.metadata,
    Column(
        "record_id",
        Integer,
        ForeignKey("catalog_records.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("genre_id", Integer, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)

record_studios = Table(
    "record_studios",
    Base.metadata,
    Column(
        "record_id",
        Integer,
        ForeignKey("catalog_records.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("studio_id", Integer, ForeignKey("studios.id", ondelete="CASCADE"), primary_key=True),
)


class Series(Base):
    """A franchise aggregate grouping related catalog records."""

    __tablename__ = "anime_series"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    title_english: Mapped[str | None] = mapped_column(String(512), nullable=True)
    title_japanese: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_main_entry: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[SeriesStatus] = mapped_column(
        _enum_column(SeriesStatus), default=SeriesStatus.UPCOMING, nullable=False
    )

    # Derived from the member set; see usecases.series_aggregates
    total_episodes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    average_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # passive_deletes="all": never null out members when a series row is deleted;
    # the RESTRICT foreign key rejects deleting a series that still has members.
    records: Mapped[list[Record]] = relationship(
        "Record",
        back_populates="series",
        passive_deletes="all",
        order_by="Record.external_id",
    )

    __table_args__ = (
        Index("ix_anime_series_title", "title"),
        Index("ix_anime_series_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Series(id={self.id}, title={self.title!r}, episodes={self.total_episodes})>"


class Record(Base):
    """One imported catalog entry."""

    __tablename__ = "catalog_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    title_english: Mapped[str | None] = mapped_column(String(512), nullable=True)
    title_japanese: Mapped[str | None] = mapped_column(String(512), nullable=True)
    kind: Mapped[RecordKind] = mapped_column(
        _enum_column(RecordKind), default=RecordKind.OTHER, nullable=False
    )
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episodes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    synopsis: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    relations: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)

    series_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("anime_series.id", ondelete="RESTRICT"), nullable=True
    )
    series_type: Mapped[SeriesType | None] = mapped_column(_enum_column(SeriesType), nullable=True)
    series_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    series: Mapped[Series | None] = relationship("Series", back_populates="records")
    genres: Mapped[list[Genre]] = relationship("Genre", secondary=record_genres)
    studios: Mapped[list[Studio]] = relationship("Studio", secondary=record_studios)

    __table_args__ = (
        Index("ix_catalog_records_series_id", "series_id"),
        Index("ix_catalog_records_title", "title"),
    )

    @property
    def relation_groups(self) -> list[RelationGroup]:
        return [RelationGroup.model_validate(group) for group in self.relations or []]

    def __repr__(self) -> str:
        return (
            f"<Record(id={self.id}, external_id={self.external_id}, "
            f"title={self.title!r}, series_id={self.series_id})>"
        )


class Genre(Base):
    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    def __repr__(self) -> str:
        return f"<Genre(external_id={self.external_id}, name={self.name!r})>"


class Studio(Base):
    __tablename__ = "studios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Studio(external_id={self.external_id}, name={self.name!r})>"


class SeriesReview(Base):
    """A record whose series placement needs an operator decision."""

    __tablename__ = "series_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("catalog_records.id", ondelete="CASCADE"), nullable=False
    )
    candidate_series_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("anime_series.id", ondelete="CASCADE"), nullable=False
    )
    similarity: Mapped[float] = mapped_column(Float, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ReviewStatus] = mapped_column(
        _enum_column(ReviewStatus), default=ReviewStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    record: Mapped[Record] = relationship("Record")
    candidate_series: Mapped[Series] = relationship("Series")

    __table_args__ = (
        Index("ix_series_reviews_status", "status"),
        Index("ix_series_reviews_record_id", "record_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SeriesReview(id={self.id}, record_id={self.record_id}, "
            f"candidate_series_id={self.candidate_series_id}, status={self.status})>"
        )
