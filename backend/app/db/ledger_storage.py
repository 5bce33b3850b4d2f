"""
Ledger Storage.

Runs ledger work inside a single database transaction with optimistic
concurrency. Wallet, usage and picker rows carry a version counter
(mapper ``version_id_col``); a writer that loses a race sees a
StaleDataError or a duplicate-key IntegrityError, and the whole unit of
work is re-executed on a fresh session. Callers only observe a fully
applied or fully absent result.
"""

import logging
from typing import Awaitable, Callable, Type, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from backend.app.core.exceptions import LedgerBusyError
from backend.app.domain.wallet.ledger_result import LedgerResult

logger = logging.getLogger("harvest_wallet.ledger")

T = TypeVar("T")

LedgerWork = Callable[[AsyncSession], Awaitable[LedgerResult]]

# PostgreSQL: unique_violation, serialization_failure, deadlock_detected
CONFLICT_SQLSTATES = {"23505", "40001", "40P01"}


class TransactionConflictError(Exception):
    """A concurrent writer touched the same rows first; the attempt was rolled back."""
    pass


def is_transaction_conflict(exc: BaseException) -> bool:
    """
    Classify a database error raised during a ledger attempt.

    True for write-write races that a fresh attempt can resolve.
    """
    if isinstance(exc, StaleDataError):
        return True

    if isinstance(exc, DBAPIError):
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if sqlstate in CONFLICT_SQLSTATES:
            return True

        message = str(orig).lower()
        if isinstance(exc, IntegrityError):
            # SQLite reports a lost first-insert race this way
            return "unique constraint failed" in message
        if isinstance(exc, OperationalError):
            return "database is locked" in message

    return False


async def upsert_record(
    session: AsyncSession,
    model: Type[T],
    key: str,
    default_factory: Callable[[], T],
    merge: Callable[[T], None],
) -> T:
    """
    Get-or-default-then-merge inside the current transaction.

    Reads the row for ``key``; when absent, a record built by
    ``default_factory`` is added instead. ``merge`` is then applied to
    whichever record was found, so creation and update share one code path.
    """
    record = await session.get(model, key)
    if record is None:
        record = default_factory()
        session.add(record)
    merge(record)
    return record


class LedgerStorage:
    """Transaction runner for ledger operations."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        max_attempts: int = 5,
        wait_min: float = 0.01,
        wait_max: float = 0.5,
    ):
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._wait_min = wait_min
        self._wait_max = wait_max

    async def run_transaction(self, work: LedgerWork) -> LedgerResult:
        """
        Execute ``work`` atomically.

        The work function receives a fresh session, reads and writes through
        it, and returns a LedgerResult. An ok result is committed; a failed
        result is rolled back in full. Conflicting concurrent writes trigger
        a transparent re-execution of ``work``.

        Raises:
            LedgerBusyError: If every attempt lost a conflict
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransactionConflictError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._wait_min, min=self._wait_min, max=self._wait_max),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(work)
        except TransactionConflictError as exc:
            logger.error(
                "Ledger transaction abandoned after conflicts",
                extra={"attempts": self._max_attempts},
            )
            raise LedgerBusyError() from exc

    async def _attempt(self, work: LedgerWork) -> LedgerResult:
        async with self._session_factory() as session:
            try:
                result = await work(session)
                if result.ok:
                    await session.commit()
                else:
                    await session.rollback()
                return result
            except SQLAlchemyError as exc:
                await session.rollback()
                if is_transaction_conflict(exc):
                    raise TransactionConflictError(str(exc)) from exc
                raise