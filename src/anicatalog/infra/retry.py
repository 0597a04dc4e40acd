"""
Whole-unit retry for database connection failures.

A unit of work that hits a connection-level error is re-run from the start;
it is never resumed from the middle.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import OperationalError

from .settings import settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def with_db_retry(
    unit: Callable[[], T],
    *,
    attempts: int | None = None,
    base_delay_ms: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``unit`` and re-run it on ``OperationalError`` with exponential backoff.

    ``unit`` must open its own unit of work so that every attempt starts from a
    clean transaction. Any other exception propagates immediately.
    """
    max_attempts = attempts if attempts is not None else settings.db_retry_attempts
    delay_ms = base_delay_ms if base_delay_ms is not None else settings.db_retry_delay_ms

    attempt = 1
    while True:
        try:
            return unit()
        except OperationalError as exc:
            if attempt >= max_attempts:
                raise
            wait = delay_ms * (2 ** (attempt - 1)) / 1000.0
            logger.warning(
                "db.retry",
                attempt=attempt,
                max_attempts=max_attempts,
                wait_seconds=wait,
                error=str(exc.orig) if exc.orig is not None else str(exc),
            )
            sleep(wait)
            attempt += 1
