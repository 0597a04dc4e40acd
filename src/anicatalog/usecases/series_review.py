"""Review queue for records placed on a medium-confidence title match."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..domain.entities import Series, SeriesReview
from ..domain.relations import infer_series_order
from ..infra.exceptions import BusinessRuleError
from ..shared.types import ReviewStatus
from .series_aggregates import load_members, refresh_series

logger = structlog.get_logger(__name__)


def _serialize_review(review: SeriesReview) -> dict[str, Any]:
    record = review.record
    candidate = review.candidate_series
    return {
        "id": review.id,
        "status": review.status.value,
        "similarity": round(review.similarity, 3),
        "reason": review.reason,
        "record": {
            "external_id": record.external_id,
            "title": record.title,
            "series_id": record.series_id,
        },
        "candidate_series": {"id": candidate.id, "title": candidate.title},
    }


def _get_pending(db: Session, review_id: int) -> SeriesReview:
    review = db.get(SeriesReview, review_id)
    if review is None:
        raise ValueError("Review not found")
    if review.status != ReviewStatus.PENDING:
        raise BusinessRuleError(f"Review {review_id} is already {review.status.value}")
    return review


def list_pending_reviews(db: Session, *, limit: int = 100) -> list[dict[str, Any]]:
    stmt = (
        select(SeriesReview)
        .where(SeriesReview.status == ReviewStatus.PENDING)
        .order_by(SeriesReview.id)
        .limit(limit)
    )
    return [_serialize_review(r) for r in db.scalars(stmt)]


def accept_review(db: Session, *, review_id: int) -> dict[str, Any]:
    """Move the reviewed record into the candidate series.

    Both series are refreshed; the record's previous series is deleted when
    the move leaves it empty. Does not commit.
    """
    review = _get_pending(db, review_id)
    record = review.record
    candidate = review.candidate_series
    previous_id = record.series_id

    if previous_id != candidate.id:
        member_orders = {m.external_id: m.series_order for m in load_members(db, candidate.id)}
        record.series = candidate
        record.series_order = infer_series_order(
            record.relation_groups, member_orders, record.release_year
        )
        refresh_series(db, candidate)

        if previous_id is not None:
            previous = db.get(Series, previous_id)
            if previous is not None:
                if load_members(db, previous_id):
                    refresh_series(db, previous)
                else:
                    # Pending reviews would cascade away with the empty series
                    db.execute(
                        update(SeriesReview)
                        .where(
                            SeriesReview.candidate_series_id == previous_id,
                            SeriesReview.status == ReviewStatus.PENDING,
                        )
                        .values(candidate_series_id=candidate.id)
                    )
                    db.delete(previous)
                    db.flush()

    review.status = ReviewStatus.ACCEPTED
    review.resolved_at = datetime.now(UTC)
    db.add(review)

    logger.info(
        "review.accepted",
        review_id=review_id,
        external_id=record.external_id,
        from_series_id=previous_id,
        to_series_id=candidate.id,
    )
    return _serialize_review(review)


def dismiss_review(db: Session, *, review_id: int) -> dict[str, Any]:
    """Keep the record where it is and close the review. Does not commit."""
    review = _get_pending(db, review_id)
    review.status = ReviewStatus.DISMISSED
    review.resolved_at = datetime.now(UTC)
    db.add(review)
    logger.info("review.dismissed", review_id=review_id)
    return _serialize_review(review)
