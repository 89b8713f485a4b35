"""
Atomic read-modify-write with automatic retry on write conflicts.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two users submit for the last seats of an event at the same time.
  Both read total_reserved=9, both add their headcount, both commit.
  Result: Overbooking.

Solution:
  Every row the engine mutates (events, reservations) carries a `version`
  column. Writes go through `versioned_update` / `versioned_delete`:

    UPDATE events SET ..., version = version + 1
    WHERE id = :id AND version = :version_we_read

  If no row matched, someone else committed in between. The transaction is
  rolled back and the whole body re-runs against fresh reads. A concurrent
  first-time INSERT of the same reservation key surfaces as an IntegrityError
  on the primary key and is handled the same way.

  Transaction bodies must therefore be safe to re-execute: they only touch
  the session. Audit entries, cache invalidation and metrics happen after
  `run_transaction` returns or raises.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.config import get_settings
from ticket_reserve.core.exceptions import TransactionConflictError
from ticket_reserve.core.logging import get_logger
from ticket_reserve.core.metrics import record_transaction_retry

logger = get_logger(__name__)

T = TypeVar("T")

TransactionBody = Callable[[AsyncSession], Awaitable[T]]

# Transient driver errors worth another attempt (SQLite writer lock, Postgres
# serialization failures and deadlocks).
_TRANSIENT_MARKERS = (
    "database is locked",
    "could not serialize",
    "deadlock detected",
)

# A concurrent first insert of the same key. CHECK, NOT NULL and foreign key
# violations are deterministic and must not be retried.
_DUPLICATE_KEY_MARKERS = (
    "unique constraint",
    "duplicate key",
)
_UNIQUE_VIOLATION_SQLSTATE = "23505"


class ConflictDetected(Exception):
    """A version-checked write matched no row."""

    def __init__(self, table: str, key: str) -> None:
        super().__init__(f"write conflict on {table}:{key}")
        self.table = table
        self.key = key


def _driver_message(exc: DBAPIError) -> str:
    return str(exc.orig if exc.orig is not None else exc).lower()


def is_duplicate_key(exc: IntegrityError) -> bool:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = _driver_message(exc)
    return any(marker in message for marker in _DUPLICATE_KEY_MARKERS)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ConflictDetected):
        return True
    if isinstance(exc, IntegrityError):
        return is_duplicate_key(exc)
    if isinstance(exc, DBAPIError):
        message = _driver_message(exc)
        return any(marker in message for marker in _TRANSIENT_MARKERS)
    return False


async def versioned_update(db: AsyncSession, model, key: str, version: int, **values) -> None:
    """Apply `values` to one row only if it still carries `version`."""
    result = await db.execute(
        update(model)
        .where(model.id == key, model.version == version)
        .values(version=model.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictDetected(model.__tablename__, key)


async def versioned_delete(db: AsyncSession, model, key: str, version: int) -> None:
    result = await db.execute(
        delete(model)
        .where(model.id == key, model.version == version)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictDetected(model.__tablename__, key)


async def run_transaction(
    db: AsyncSession,
    body: TransactionBody,
    *,
    operation: str,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run `body(db)` and commit, re-running it on conflict.

    Non-retryable errors (including the domain errors the body raises) roll
    back and propagate unchanged. Raises TransactionConflictError once
    `max_attempts` conflicting attempts have been made.
    """
    settings = get_settings()
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            result = await body(db)
            await db.commit()
            return result
        except Exception as e:
            await db.rollback()
            if not is_retryable(e):
                raise
            logger.info(
                "transaction_retry",
                operation=operation,
                attempt=attempt,
                reason=type(e).__name__,
            )
            record_transaction_retry(operation)

        if attempt < attempts:
            backoff_ms = settings.TRANSACTION_RETRY_BACKOFF_MS * attempt
            await asyncio.sleep(random.uniform(0, backoff_ms) / 1000)

    logger.warning("transaction_conflict_exhausted", operation=operation, attempts=attempts)
    raise TransactionConflictError(operation, attempts)
