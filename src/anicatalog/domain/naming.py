"""
Canonical series name selection.

The series display name is always a real record title taken verbatim. The
cascade only decides which record supplies it:

1. structural main entry: a TV record with a Sequel and no Prequel, else any
   TV record with no Prequel
2. earliest TV record by release year
3. with no TV records at all, the record whose title looks least like an
   installment (cleanliness heuristic)

Every rule breaks ties on the lowest external id.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..shared.schemas import RelationGroup
from ..shared.types import RecordKind
from .relations import has_relation

UNKNOWN_YEAR = 9999
CLEANLINESS_BASE = 100

_ORDINAL_SEASON = re.compile(r"\b\d+(?:st|nd|rd|th)?\s*season")
_TRAILING_NUMERAL = re.compile(r"\s+\d+$")
_TRAILING_ROMAN = re.compile(r"\s+(?:ii|iii|iv|v|vi|vii|viii|ix|x)$")

# (substring, penalty) checks applied to the lower-cased title
_SUBSTRING_PENALTIES = (
    ("season", 30),
    ("part", 25),
    ("final", 15),
    ("movie", 40),
    ("ova", 50),
    ("special", 45),
)
_PATTERN_PENALTIES = (
    (_ORDINAL_SEASON, 35),
    (_TRAILING_NUMERAL, 20),
    (_TRAILING_ROMAN, 20),
)


class NamingRule(str, Enum):
    MAIN_ENTRY = "main_entry"
    EARLIEST_RELEASE = "earliest_release"
    CLEANEST_TITLE = "cleanest_title"


class NamedRecord(Protocol):
    external_id: int
    title: str
    title_english: str | None
    title_japanese: str | None
    kind: RecordKind
    release_year: int | None

    @property
    def relation_groups(self) -> list[RelationGroup]: ...


@dataclass(frozen=True)
class CanonicalName:
    title: str
    title_english: str | None
    title_japanese: str | None
    external_id: int
    rule: NamingRule

    @property
    def is_main_entry(self) -> bool:
        return self.rule == NamingRule.MAIN_ENTRY


def title_cleanliness_score(title: str) -> int:
    """100 minus penalties for installment markers; higher is cleaner."""
    lowered = title.lower()
    score = CLEANLINESS_BASE
    for needle, penalty in _SUBSTRING_PENALTIES:
        if needle in lowered:
            score -= penalty
    for pattern, penalty in _PATTERN_PENALTIES:
        if pattern.search(lowered):
            score -= penalty
    return score


def _find_main_entry(tv_records: Sequence[NamedRecord]) -> NamedRecord | None:
    for record in tv_records:
        groups = record.relation_groups
        if has_relation(groups, "Sequel") and not has_relation(groups, "Prequel"):
            return record
    for record in tv_records:
        if not has_relation(record.relation_groups, "Prequel"):
            return record
    return None


def select_canonical_name(members: Sequence[NamedRecord]) -> CanonicalName:
    """Pick the record whose title names the series.

    Raises:
        ValueError: if ``members`` is empty
    """
    if not members:
        raise ValueError("Cannot name a series without members")

    ordered = sorted(members, key=lambda r: r.external_id)
    tv_records = [r for r in ordered if r.kind == RecordKind.TV]

    chosen = _find_main_entry(tv_records)
    rule = NamingRule.MAIN_ENTRY
    if chosen is None and tv_records:
        chosen = min(
            tv_records,
            key=lambda r: (r.release_year or UNKNOWN_YEAR, r.external_id),
        )
        rule = NamingRule.EARLIEST_RELEASE
    if chosen is None:
        chosen = min(
            ordered,
            key=lambda r: (-title_cleanliness_score(r.title), r.external_id),
        )
        rule = NamingRule.CLEANEST_TITLE

    return CanonicalName(
        title=chosen.title,
        title_english=chosen.title_english,
        title_japanese=chosen.title_japanese,
        external_id=chosen.external_id,
        rule=rule,
    )
