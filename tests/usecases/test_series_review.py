"""Tests for the series review queue."""

import pytest
from sqlalchemy import select

from anicatalog.domain.entities import Record, Series, SeriesReview
from anicatalog.infra.exceptions import BusinessRuleError
from anicatalog.shared.types import ReviewStatus
from anicatalog.usecases.catalog_import import import_record
from anicatalog.usecases.series_review import accept_review, dismiss_review, list_pending_reviews


@pytest.fixture
def flagged(db_session, make_catalog_record):
    """One Piece plus a flagged special; returns (candidate_series_id, flagged_series_id)."""
    one_piece = import_record(make_catalog_record(21, "One Piece", episodes=1000, year=1999))
    special = import_record(
        make_catalog_record(44000, "One Piece Fan Letter", kind="TV Special", episodes=1, year=2024)
    )
    assert special.decision == "flag"
    return one_piece.series_id, special.series_id


def _review_id(db_session) -> int:
    return db_session.scalar(select(SeriesReview.id))


def test_pending_reviews_are_listed(db_session, flagged):
    candidate_id, _ = flagged

    reviews = list_pending_reviews(db_session)

    assert len(reviews) == 1
    assert reviews[0]["record"]["external_id"] == 44000
    assert reviews[0]["candidate_series"]["id"] == candidate_id
    assert reviews[0]["status"] == "pending"


def test_accept_moves_record_and_drops_empty_series(db_session, flagged):
    candidate_id, flagged_id = flagged

    result = accept_review(db_session, review_id=_review_id(db_session))
    db_session.commit()

    assert result["status"] == "accepted"
    record = db_session.scalar(select(Record).where(Record.external_id == 44000))
    assert record.series_id == candidate_id
    assert db_session.get(Series, flagged_id) is None
    assert db_session.get(Series, candidate_id).total_episodes == 1001
    assert db_session.get(Series, candidate_id).end_year == 2024
    assert list_pending_reviews(db_session) == []


def test_dismiss_keeps_record_in_place(db_session, flagged):
    candidate_id, flagged_id = flagged

    dismiss_review(db_session, review_id=_review_id(db_session))
    db_session.commit()

    record = db_session.scalar(select(Record).where(Record.external_id == 44000))
    assert record.series_id == flagged_id
    assert db_session.get(Series, candidate_id).total_episodes == 1000
    review = db_session.scalars(select(SeriesReview)).one()
    assert review.status == ReviewStatus.DISMISSED
    assert review.resolved_at is not None


def test_resolved_review_cannot_be_resolved_again(db_session, flagged):
    review_id = _review_id(db_session)
    dismiss_review(db_session, review_id=review_id)
    db_session.commit()

    with pytest.raises(BusinessRuleError):
        accept_review(db_session, review_id=review_id)


def test_unknown_review(db_session):
    with pytest.raises(ValueError):
        dismiss_review(db_session, review_id=404)


def test_accept_keeps_reviews_that_pointed_at_the_emptied_series(db_session, flagged, seed_series):
    candidate_id, flagged_id = flagged
    first_review = _review_id(db_session)
    seed_series("Fan Letter Gold", [(50000, "Fan Letter Gold", 1, 2025)])
    gold = db_session.scalar(select(Record).where(Record.external_id == 50000))
    db_session.add(
        SeriesReview(
            record_id=gold.id,
            candidate_series_id=flagged_id,
            similarity=0.5,
            reason="title similarity 0.50",
        )
    )
    db_session.commit()

    accept_review(db_session, review_id=first_review)
    db_session.commit()

    assert db_session.get(Series, flagged_id) is None
    pending = db_session.scalars(
        select(SeriesReview).where(SeriesReview.status == ReviewStatus.PENDING)
    ).all()
    assert [(r.record_id, r.candidate_series_id) for r in pending] == [(gold.id, candidate_id)]
    assert list_pending_reviews(db_session)[0]["candidate_series"]["id"] == candidate_id
