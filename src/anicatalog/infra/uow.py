"""
This is the canonical Unit of Work boundary for AniCatalog. All transactional changes must go through this.

Do not open ad hoc sessions elsewhere.

Record imports, review adjudication and series merges each run inside exactly one
``session()`` block, so a failure anywhere in the block leaves no partial writes.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator

from sqlalchemy.orm import Session

from . import db as _db


@contextlib.contextmanager
def session() -> Generator[Session, None, None]:
    """
    Database session context manager for CLI operations and batch jobs.

    Provides Unit of Work semantics:
    - Opens a DB session
    - Yields it for use
    - On success: commits the transaction
    - On exception: rolls back and re-raises the exception
    - Always closes the session

    Usage:
        with session() as db:
            db.add(some_object)
            # transaction will be committed automatically on success
    """
    db = _db.SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
