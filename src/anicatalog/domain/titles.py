"""
Title normalization.

Two transforms live here and they are deliberately different:

- ``core_tokens`` reduces a title to an unordered set of meaningful words. It
  feeds the similarity scorer and is lossy on purpose.
- ``base_title`` strips season, part, ordinal and format markers but keeps
  word order, so that "Title Season 2" and "Title" compare equal as strings.
  It is only ever used for comparison, never to produce a display name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Characters replaced by whitespace before tokenizing
_TOKEN_PUNCTUATION = re.compile(r"[°':!?.,()\-]")

STOP_WORDS = frozenset(
    {
        "the", "and", "or", "of", "in", "on", "at", "to", "for", "with", "by",
        "a", "an", "no", "wa", "hen",
    }
)

DOMAIN_STOP_WORDS = frozenset(
    {"season", "part", "final", "new", "movie", "ova", "special", "episode"}
)

MIN_TOKEN_LENGTH = 3

# Base-title extraction
_BASE_PUNCTUATION = re.compile(r"[:\-\[\]()]")
_WHITESPACE = re.compile(r"\s+")
_SEASON_MARKER = re.compile(
    r"(?:season|series|cour)\s*\d+|\d+(?:st|nd|rd|th)\s*(?:season|series)",
    re.IGNORECASE,
)
_PART_MARKER = re.compile(r"(?:part|chapter|arc)\s*\d+", re.IGNORECASE)
_TRAILING_NUMERAL = re.compile(r"\s+\d+$")
_TRAILING_ROMAN = re.compile(r"\s+(?:II|III|IV|V|VI|VII|VIII|IX|X)$", re.IGNORECASE)
_FORMAT_WORD = re.compile(r"\b(?:ova|movie|film|special)\b", re.IGNORECASE)


def normalize_tokens(tokens: Iterable[str]) -> frozenset[str]:
    """Normalize raw words into the comparable token set.

    Applying this to its own output returns the same set.
    """
    result: set[str] = set()
    for token in tokens:
        for word in _TOKEN_PUNCTUATION.sub(" ", token.lower()).split():
            if len(word) < MIN_TOKEN_LENGTH:
                continue
            if word in STOP_WORDS or word in DOMAIN_STOP_WORDS:
                continue
            result.add(word)
    return frozenset(result)


def core_tokens(title: str | None) -> frozenset[str]:
    """Token set of a raw title. Empty for blank or fully stop-worded titles."""
    if not title:
        return frozenset()
    return normalize_tokens([title])


def title_words(title: str | None) -> list[str]:
    """Lower-cased, punctuation-free words of a title, in order, stop words kept."""
    if not title:
        return []
    return [w for w in _TOKEN_PUNCTUATION.sub(" ", title.lower()).split() if w]


def base_title(title: str | None) -> str:
    """Strict series-identity key of a title."""
    if not title:
        return ""
    base = _BASE_PUNCTUATION.sub(" ", title.lower())
    base = _WHITESPACE.sub(" ", base).strip()

    base = _SEASON_MARKER.sub("", base, count=1)
    base = _PART_MARKER.sub("", base, count=1)
    base = _TRAILING_NUMERAL.sub("", base.rstrip())
    base = _TRAILING_ROMAN.sub("", base.rstrip())
    base = _FORMAT_WORD.sub("", base, count=1)

    return _WHITESPACE.sub(" ", base).strip()
