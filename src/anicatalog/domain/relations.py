"""
Relationship extraction and placement inference.

Relation groups come from the catalog as ``{relation_kind, entries}``. Only
anime-typed entries whose kind is on the allow-list become edges; everything
else (manga adaptations, character links, unknown kinds) is ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ..shared.schemas import RelationGroup
from ..shared.types import RecordKind, RelationStrength, SeriesType

ANIME_MEDIA_TYPE = "anime"

RELATION_STRENGTHS: dict[str, RelationStrength] = {
    "Sequel": RelationStrength.DIRECT,
    "Prequel": RelationStrength.DIRECT,
    "Side story": RelationStrength.STORY,
    "Parent story": RelationStrength.STORY,
    "Full story": RelationStrength.STORY,
    "Alternative version": RelationStrength.ALTERNATIVE,
    "Summary": RelationStrength.ALTERNATIVE,
    "Alternative setting": RelationStrength.ALTERNATIVE,
}

SIDE_STORY_KINDS = frozenset({"Side story", "Spin-off"})

# Year-based fallback ordering; approximate only
ORDER_BASE_YEAR = 1960


@dataclass(frozen=True)
class RelationEdge:
    target_external_id: int
    strength: RelationStrength
    relation_kind: str


def relation_strength(relation_kind: str | None) -> RelationStrength | None:
    """Strength class of a relation kind, or None when it is not a series link."""
    if relation_kind is None:
        return None
    return RELATION_STRENGTHS.get(relation_kind)


def extract_edges(groups: Iterable[RelationGroup]) -> list[RelationEdge]:
    """Allow-listed anime edges, deduplicated by target, in source order."""
    edges: list[RelationEdge] = []
    seen: set[int] = set()
    for group in groups:
        strength = relation_strength(group.relation_kind)
        if strength is None:
            continue
        for entry in group.entries:
            if entry.media_type != ANIME_MEDIA_TYPE or entry.external_id in seen:
                continue
            seen.add(entry.external_id)
            edges.append(RelationEdge(entry.external_id, strength, group.relation_kind))
    return edges


def related_external_ids(groups: Iterable[RelationGroup]) -> list[int]:
    return [edge.target_external_id for edge in extract_edges(groups)]


def edges_by_strength(
    groups: Iterable[RelationGroup],
) -> dict[RelationStrength, frozenset[int]]:
    """Partition edge targets by strength class. Every class is present."""
    partition: dict[RelationStrength, set[int]] = {s: set() for s in RelationStrength}
    for edge in extract_edges(groups):
        partition[edge.strength].add(edge.target_external_id)
    return {strength: frozenset(ids) for strength, ids in partition.items()}


def _targets_anime(group: RelationGroup) -> bool:
    return any(entry.media_type == ANIME_MEDIA_TYPE for entry in group.entries)


def has_relation(groups: Iterable[RelationGroup], relation_kind: str) -> bool:
    """True when some ``relation_kind`` group points at at least one anime entry."""
    return any(
        group.relation_kind == relation_kind and _targets_anime(group) for group in groups
    )


def prequel_external_ids(groups: Iterable[RelationGroup]) -> list[int]:
    ids: list[int] = []
    for group in groups:
        if group.relation_kind != "Prequel":
            continue
        for entry in group.entries:
            if entry.media_type == ANIME_MEDIA_TYPE and entry.external_id not in ids:
                ids.append(entry.external_id)
    return ids


def infer_series_type(kind: RecordKind, groups: list[RelationGroup]) -> SeriesType:
    """Role of a record inside its series.

    Format decides outright for movies, OVAs and specials; otherwise a Prequel
    makes it a continuation and a Sequel alone makes it a starting point.
    """
    if kind == RecordKind.MOVIE:
        return SeriesType.MOVIE
    if kind == RecordKind.OVA:
        return SeriesType.OVA
    if kind == RecordKind.SPECIAL:
        return SeriesType.SPECIAL

    if has_relation(groups, "Prequel"):
        return SeriesType.SEQUEL
    if has_relation(groups, "Sequel"):
        return SeriesType.MAIN
    if any(group.relation_kind in SIDE_STORY_KINDS and _targets_anime(group) for group in groups):
        return SeriesType.SIDE_STORY
    return SeriesType.MAIN


def infer_series_order(
    groups: list[RelationGroup],
    member_orders: Mapping[int, int | None],
    release_year: int | None,
) -> int:
    """Position of a record within its series.

    ``member_orders`` maps the external id of every record already in the
    target series to its stored order. A record following known prequels goes
    right after the latest of them; otherwise the release year is used as a
    rough monotonic stand-in.
    """
    prequel_orders = [
        member_orders[external_id] or 1
        for external_id in prequel_external_ids(groups)
        if external_id in member_orders
    ]
    if prequel_orders:
        return max(prequel_orders) + 1
    if not release_year:
        return 1
    return release_year - ORDER_BASE_YEAR
