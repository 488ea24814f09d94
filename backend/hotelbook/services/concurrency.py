# Overview: Transaction boundary and row-locking helpers shared by the services.

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Callers that must be exclusive on SQLite as well pair this with a
    status-guarded UPDATE and check its rowcount.
    """
    return query.with_for_update()


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Run a unit of work as one transaction.

    Commits when the block exits normally. On any exception the session is
    rolled back and the exception re-raised unchanged, so callers never
    observe a partial write. There is no retry: failures surface immediately.
    """
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
