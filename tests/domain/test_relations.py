"""Tests for relationship extraction and placement inference."""

import pytest

from anicatalog.domain.relations import (
    edges_by_strength,
    extract_edges,
    infer_series_order,
    infer_series_type,
    related_external_ids,
    relation_strength,
)
from anicatalog.shared.schemas import RelationGroup
from anicatalog.shared.types import RecordKind, RelationStrength, SeriesType


def groups(*specs):
    """Build relation groups from (kind, [ids], media_type) tuples."""
    result = []
    for spec in specs:
        kind, ids = spec[0], spec[1]
        media_type = spec[2] if len(spec) > 2 else "anime"
        result.append(
            RelationGroup.model_validate(
                {"relation": kind, "entry": [{"type": media_type, "mal_id": i} for i in ids]}
            )
        )
    return result


class TestRelationStrength:
    @pytest.mark.parametrize("kind", ["Sequel", "Prequel"])
    def test_direct(self, kind):
        assert relation_strength(kind) == RelationStrength.DIRECT

    @pytest.mark.parametrize("kind", ["Side story", "Parent story", "Full story"])
    def test_story(self, kind):
        assert relation_strength(kind) == RelationStrength.STORY

    @pytest.mark.parametrize("kind", ["Alternative version", "Summary", "Alternative setting"])
    def test_alternative(self, kind):
        assert relation_strength(kind) == RelationStrength.ALTERNATIVE

    @pytest.mark.parametrize("kind", ["Character", "Adaptation", "Spin-off", "Other", "", None])
    def test_unknown_kinds_are_excluded(self, kind):
        assert relation_strength(kind) is None


class TestExtractEdges:
    def test_sequel_lands_in_direct_and_summary_in_alternative(self):
        partition = edges_by_strength(groups(("Sequel", [2]), ("Summary", [3])))
        assert partition[RelationStrength.DIRECT] == frozenset({2})
        assert partition[RelationStrength.ALTERNATIVE] == frozenset({3})
        assert partition[RelationStrength.STORY] == frozenset()

    def test_unknown_kind_never_crashes_and_is_dropped(self):
        edges = extract_edges(groups(("Character", [9]), ("Sequel", [2])))
        assert [e.target_external_id for e in edges] == [2]

    def test_only_anime_targets_count(self):
        edges = extract_edges(groups(("Sequel", [2]), ("Side story", [5], "manga")))
        assert [e.target_external_id for e in edges] == [2]

    def test_targets_deduplicated_across_groups(self):
        ids = related_external_ids(
            groups(("Sequel", [2, 3]), ("Side story", [3, 4]), ("Summary", [2]))
        )
        assert ids == [2, 3, 4]

    def test_empty(self):
        assert extract_edges([]) == []


class TestInferSeriesType:
    @pytest.mark.parametrize(
        "kind, expected",
        [
            (RecordKind.MOVIE, SeriesType.MOVIE),
            (RecordKind.OVA, SeriesType.OVA),
            (RecordKind.SPECIAL, SeriesType.SPECIAL),
        ],
    )
    def test_format_decides_outright(self, kind, expected):
        assert infer_series_type(kind, groups(("Prequel", [1]))) == expected

    def test_prequel_means_continuation(self):
        assert infer_series_type(RecordKind.TV, groups(("Prequel", [1]), ("Sequel", [3]))) == SeriesType.SEQUEL

    def test_sequel_only_means_starting_point(self):
        assert infer_series_type(RecordKind.TV, groups(("Sequel", [3]))) == SeriesType.MAIN

    @pytest.mark.parametrize("kind", ["Side story", "Spin-off"])
    def test_side_story(self, kind):
        assert infer_series_type(RecordKind.TV, groups((kind, [7]))) == SeriesType.SIDE_STORY

    @pytest.mark.parametrize("kind", ["Prequel", "Side story"])
    def test_relations_to_other_media_are_ignored(self, kind):
        assert infer_series_type(RecordKind.TV, groups((kind, [5], "manga"))) == SeriesType.MAIN

    def test_default_main(self):
        assert infer_series_type(RecordKind.OTHER, []) == SeriesType.MAIN


class TestInferSeriesOrder:
    def test_follows_latest_prequel_in_series(self):
        order = infer_series_order(groups(("Prequel", [1, 2])), {1: 1, 2: 3, 8: 9}, 2020)
        assert order == 4

    def test_prequel_without_stored_order_counts_as_one(self):
        assert infer_series_order(groups(("Prequel", [1])), {1: None}, 2020) == 2

    def test_prequel_outside_series_falls_back_to_year(self):
        assert infer_series_order(groups(("Prequel", [1])), {5: 2}, 2013) == 53

    def test_unknown_year(self):
        assert infer_series_order([], {}, None) == 1
