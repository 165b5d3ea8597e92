# Overview: Transaction scope and row locking for ledger-mutating operations.

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, TypeVar

from ..extensions import db

T = TypeVar("T")


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def transaction():
    """
    Scoped unit of work: commit on normal exit, roll back on any exception.

    Every read-validate-write sequence (ledger rows, status changes and the
    audit row) runs inside one of these so nothing partial is ever visible.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise


def run_in_transaction(func: Callable[[], T]) -> T:
    """Execute ``func`` inside ``transaction()`` and return its result."""
    with transaction():
        return func()
