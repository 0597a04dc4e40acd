"""
Pydantic schemas for catalog source payloads.

Catalog responses are validated here, at the ingestion boundary, so the
resolver and the importer only ever see fully-typed records with defaults
already applied.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import RecordKind


class _CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RelationEntry(_CatalogModel):
    """One target of a relation group."""

    media_type: str = Field(..., alias="type", description="anime, manga, ...")
    external_id: int = Field(..., alias="mal_id")


class RelationGroup(_CatalogModel):
    """A ``{relationKind, entries}`` tuple from the catalog."""

    relation_kind: str = Field(..., alias="relation")
    entries: list[RelationEntry] = Field(default_factory=list, alias="entry")


class NamedRef(_CatalogModel):
    """Genre or studio reference."""

    external_id: int = Field(..., alias="mal_id")
    name: str


class CatalogRecord(_CatalogModel):
    """A full catalog record, as returned by the per-identifier fetch."""

    external_id: int = Field(..., alias="mal_id")
    title: str = Field(..., min_length=1)
    title_english: str | None = None
    title_japanese: str | None = None
    kind: RecordKind = Field(RecordKind.OTHER, alias="type")
    episodes: int | None = Field(None, ge=0)
    release_year: int | None = Field(None, alias="year")
    status: str | None = None
    score: float | None = None
    synopsis: str | None = None
    image_url: str | None = None
    relations: list[RelationGroup] = Field(default_factory=list)
    genres: list[NamedRef] = Field(default_factory=list)
    studios: list[NamedRef] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_source_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Movies and specials often carry only the aired date, not a season year
        if data.get("year") is None and data.get("release_year") is None:
            aired_year = (
                ((data.get("aired") or {}).get("prop") or {}).get("from") or {}
            ).get("year")
            if aired_year is not None:
                data["year"] = aired_year
        if "image_url" not in data:
            jpg = (data.get("images") or {}).get("jpg") or {}
            data["image_url"] = jpg.get("large_image_url") or jpg.get("image_url")
        for key in ("relations", "genres", "studios"):
            if data.get(key) is None:
                data.pop(key, None)
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: Any) -> RecordKind:
        if isinstance(value, RecordKind):
            return value
        if isinstance(value, str):
            try:
                return RecordKind(value)
            except ValueError:
                return RecordKind.from_source(value)
        return RecordKind.OTHER

    @field_validator("title_english", "title_japanese", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CatalogSummary(_CatalogModel):
    """A summary entry from a paginated listing."""

    external_id: int = Field(..., alias="mal_id")
    title: str | None = None


class CatalogPage(BaseModel):
    """One page of the "top entries" listing."""

    page: int
    last_page: int
    has_next_page: bool = False
    items: list[CatalogSummary] = Field(default_factory=list)

    @classmethod
    def from_api(cls, page: int, payload: dict[str, Any]) -> CatalogPage:
        pagination = payload.get("pagination") or {}
        return cls(
            page=page,
            last_page=pagination.get("last_visible_page") or page,
            has_next_page=bool(pagination.get("has_next_page", False)),
            items=payload.get("data") or [],
        )


__all__ = [
    "RelationEntry",
    "RelationGroup",
    "NamedRef",
    "CatalogRecord",
    "CatalogSummary",
    "CatalogPage",
]
