"""Tests for canonical series name selection."""

from dataclasses import dataclass, field

import pytest

from anicatalog.domain.naming import NamingRule, select_canonical_name, title_cleanliness_score
from anicatalog.shared.schemas import RelationGroup
from anicatalog.shared.types import RecordKind


@dataclass
class FakeRecord:
    external_id: int
    title: str
    kind: RecordKind = RecordKind.TV
    release_year: int | None = None
    relations: dict[str, list[int]] = field(default_factory=dict)
    title_english: str | None = None
    title_japanese: str | None = None
    relation_media: str = "anime"

    @property
    def relation_groups(self):
        return [
            RelationGroup.model_validate(
                {"relation": kind, "entry": [{"type": self.relation_media, "mal_id": i} for i in ids]}
            )
            for kind, ids in self.relations.items()
        ]


class TestCleanlinessScore:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Naruto", 100),
            ("Attack on Titan Season 2", 50),  # season, trailing numeral
            ("Kaguya-sama 2nd Season", 35),  # season, ordinal season
            ("Overlord II", 80),
            ("Haikyuu!! Final", 85),
            ("Naruto Movie", 60),
            ("Hellsing OVA", 50),
            ("Bleach Special", 55),
            ("Bungou Stray Dogs Part 2", 55),
        ],
    )
    def test_penalties(self, title, expected):
        assert title_cleanliness_score(title) == expected


class TestSelectCanonicalName:
    def test_main_entry_with_sequel_and_no_prequel(self):
        members = [
            FakeRecord(3, "Shingeki no Kyojin Season 2", release_year=2017, relations={"Prequel": [1]}),
            FakeRecord(1, "Shingeki no Kyojin", release_year=2013, relations={"Sequel": [3]},
                       title_english="Attack on Titan", title_japanese="進撃の巨人"),
            FakeRecord(9, "Shingeki no Kyojin Movie", kind=RecordKind.MOVIE, release_year=2015),
        ]
        name = select_canonical_name(members)
        assert name.title == "Shingeki no Kyojin"
        assert name.title_english == "Attack on Titan"
        assert name.title_japanese == "進撃の巨人"
        assert name.rule == NamingRule.MAIN_ENTRY
        assert name.is_main_entry

    def test_falls_back_to_tv_without_prequel(self):
        members = [
            FakeRecord(20, "Mushishi Zoku Shou", relations={"Prequel": [10]}),
            FakeRecord(10, "Mushishi"),
        ]
        name = select_canonical_name(members)
        assert name.title == "Mushishi"
        assert name.rule == NamingRule.MAIN_ENTRY

    def test_prequel_in_another_medium_does_not_disqualify_main_entry(self):
        members = [
            FakeRecord(40, "Vinland Saga Season 2", release_year=2023, relations={"Prequel": [10]}),
            FakeRecord(10, "Vinland Saga", relations={"Prequel": [900]}, relation_media="manga"),
        ]
        name = select_canonical_name(members)
        assert name.title == "Vinland Saga"
        assert name.rule == NamingRule.MAIN_ENTRY

    def test_earliest_release_when_every_tv_entry_has_a_prequel(self):
        members = [
            FakeRecord(30, "Gintama'", release_year=2011, relations={"Prequel": [1]}),
            FakeRecord(20, "Gintama.", release_year=2017, relations={"Prequel": [30]}),
            FakeRecord(40, "Gintama°", release_year=2015, relations={"Prequel": [30]}),
        ]
        name = select_canonical_name(members)
        assert name.title == "Gintama'"
        assert name.rule == NamingRule.EARLIEST_RELEASE
        assert not name.is_main_entry

    def test_earliest_release_ties_break_on_lowest_external_id(self):
        members = [
            FakeRecord(50, "B Side", release_year=2010, relations={"Prequel": [1]}),
            FakeRecord(45, "A Side", release_year=2010, relations={"Prequel": [1]}),
            FakeRecord(44, "Unknown Year", release_year=None, relations={"Prequel": [1]}),
        ]
        assert select_canonical_name(members).external_id == 45

    def test_cleanest_title_when_no_tv_entries(self):
        members = [
            FakeRecord(7, "Hellsing Ultimate OVA", kind=RecordKind.OVA),
            FakeRecord(8, "Hellsing The Movie", kind=RecordKind.MOVIE),
            FakeRecord(9, "Hellsing Ultimate", kind=RecordKind.OVA),
        ]
        name = select_canonical_name(members)
        assert name.title == "Hellsing Ultimate"
        assert name.rule == NamingRule.CLEANEST_TITLE

    def test_cleanest_title_ties_break_on_lowest_external_id(self):
        members = [
            FakeRecord(12, "Kara no Kyoukai", kind=RecordKind.MOVIE),
            FakeRecord(11, "Fate Zero Remix", kind=RecordKind.OTHER),
        ]
        assert select_canonical_name(members).external_id == 11

    def test_title_used_verbatim(self):
        name = select_canonical_name([FakeRecord(1, "  Gintama°: Season 2!  ")])
        assert name.title == "  Gintama°: Season 2!  "

    def test_empty_cluster_is_rejected(self):
        with pytest.raises(ValueError):
            select_canonical_name([])
