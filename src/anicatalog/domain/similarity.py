"""
Title similarity scoring.

``title_similarity`` is a Jaccard-like score normalized by the larger token
set rather than the union. ``word_containment`` measures how much of the
shorter title is subsumed by the longer one and gates automatic placement.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..shared.types import MatchVerdict
from .titles import core_tokens, title_words

AUTO_MERGE_THRESHOLD = 0.8
REVIEW_THRESHOLD = 0.4
MERGE_GROUP_THRESHOLD = 0.5
SIMPLE_TITLE_MAX_WORDS = 2


@dataclass(frozen=True)
class TitleMatch:
    """Classification of one title pair."""

    verdict: MatchVerdict
    similarity: float
    containment: float
    shorter_word_count: int


def title_similarity(a: str | None, b: str | None) -> float:
    """Shared core tokens over the size of the larger token set, in [0, 1]."""
    tokens_a = core_tokens(a)
    tokens_b = core_tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / max(len(tokens_a), len(tokens_b))


def word_containment(a: str | None, b: str | None) -> float:
    """Fraction of the shorter title's words found inside (or around) a word of the longer one."""
    words_a = title_words(a)
    words_b = title_words(b)
    if len(words_a) <= len(words_b):
        shorter, longer = words_a, words_b
    else:
        shorter, longer = words_b, words_a
    if not shorter:
        return 0.0

    matched = sum(
        1 for word in shorter if any(word in other or other in word for other in longer)
    )
    return matched / len(shorter)


def classify_title_match(a: str | None, b: str | None) -> TitleMatch:
    """Route a title pair to automatic placement, human review, or neither.

    AUTO requires similarity above 0.8 plus the simple-case gate: the shorter
    title has at most two whitespace-separated words and is fully contained.
    """
    similarity = title_similarity(a, b)
    containment = word_containment(a, b)
    shorter_word_count = min(len((a or "").split()), len((b or "").split()))

    simple_case = containment >= 1.0 and shorter_word_count <= SIMPLE_TITLE_MAX_WORDS
    if similarity > AUTO_MERGE_THRESHOLD and simple_case:
        verdict = MatchVerdict.AUTO
    elif similarity > REVIEW_THRESHOLD:
        verdict = MatchVerdict.REVIEW
    else:
        verdict = MatchVerdict.UNRELATED

    return TitleMatch(
        verdict=verdict,
        similarity=similarity,
        containment=containment,
        shorter_word_count=shorter_word_count,
    )
