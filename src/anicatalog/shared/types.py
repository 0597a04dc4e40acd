"""
Shared types and enums for AniCatalog.

This module contains common types and enums that are used across
the domain, use case, adapter and CLI layers.
"""

from __future__ import annotations

from enum import Enum


class RecordKind(str, Enum):
    """Media format of a single catalog record."""

    TV = "tv"
    MOVIE = "movie"
    OVA = "ova"
    SPECIAL = "special"
    OTHER = "other"

    @classmethod
    def from_source(cls, value: str | None) -> RecordKind:
        """Map a catalog ``type`` string ("TV", "Movie", "TV Special", ...) onto a kind."""
        if not value:
            return cls.OTHER
        lowered = value.strip().lower()
        if lowered == "tv":
            return cls.TV
        if lowered == "movie":
            return cls.MOVIE
        if lowered == "ova":
            return cls.OVA
        if lowered in ("special", "tv special"):
            return cls.SPECIAL
        return cls.OTHER


class RelationStrength(str, Enum):
    """Strength class of a relationship edge."""

    DIRECT = "direct"
    STORY = "story"
    ALTERNATIVE = "alternative"


class SeriesType(str, Enum):
    """Role a record plays inside its series."""

    MAIN = "main"
    SEQUEL = "sequel"
    SIDE_STORY = "side_story"
    MOVIE = "movie"
    OVA = "ova"
    SPECIAL = "special"


class SeriesStatus(str, Enum):
    """Airing status rolled up from member records."""

    ONGOING = "ongoing"
    COMPLETED = "completed"
    UPCOMING = "upcoming"


class ReviewStatus(str, Enum):
    """Status of items in the series review queue."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"


class MatchVerdict(str, Enum):
    """Outcome of comparing two titles."""

    AUTO = "auto"
    REVIEW = "review"
    UNRELATED = "unrelated"


class ResolutionKind(str, Enum):
    """Terminal states of series resolution for one incoming record."""

    ATTACH = "attach"
    CREATE = "create"
    FLAG = "flag"


# Catalog status strings that drive the series status rollup
AIRING_STATUS = "Currently Airing"
FINISHED_STATUS = "Finished Airing"
