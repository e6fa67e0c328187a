# Overview: Transaction helpers shared by the shift, ledger and config services.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError, StoreError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Only for idempotent upserts.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise StoreError(str(exc)) from exc
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise StoreError(str(last_exc)) from last_exc


def commit_or_raise(*, conflict_message: str | None = None) -> None:
    """
    Commit the current unit of work; nothing is left half-written on failure.

    IntegrityError maps to ConflictError when the caller expects a uniqueness
    race (conflict_message given). StaleDataError means another writer
    changed the row first. Everything else is a StoreError.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if conflict_message:
            raise ConflictError(conflict_message) from exc
        raise StoreError(str(exc.orig)) from exc
    except StaleDataError as exc:
        db.session.rollback()
        raise ConflictError("Record was modified concurrently; reload and retry") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError(str(exc)) from exc
