"""
Transactional unit of work over a request-scoped session.

One unit of work wraps one session and holds at most one live transaction:
  - begin_transaction() is idempotent and hands back the transaction already in progress;
  - commit_transaction(handle) only accepts the handle returned by begin_transaction();
  - the transaction slot is cleared on every commit or rollback, successful or not.

UnitOfWork drives an AsyncSession; SyncUnitOfWork is its twin over a plain
Session for scripts and sync callers. Both share the slot, handle checks,
affected-row counting and isolation-level handling of _TransactionScope.
create_unit_of_work() picks the variant from the session it is given.

The slot is plain instance state without locking, so an instance must never be
shared between concurrent requests. crudcore.core.deps.get_unit_of_work builds
one per request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Dict, FrozenSet, Iterator, Optional, Union

from sqlalchemy import event
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction
from sqlalchemy.orm import Session, SessionTransaction

from crudcore.core.errors import DataAccessError, InvalidOperationError

logger = logging.getLogger(__name__)

DEFAULT_ISOLATION_LEVEL = "READ COMMITTED"

# Dialects that reject some standard levels; anything else is passed through.
_SUPPORTED_LEVELS: Dict[str, FrozenSet[str]] = {
    "sqlite": frozenset({"READ UNCOMMITTED", "SERIALIZABLE", "AUTOCOMMIT"}),
}
_FALLBACK_LEVEL = "SERIALIZABLE"


class _TransactionScope:
    """Transaction slot and bookkeeping shared by the sync and async units of work."""

    def __init__(self, sync_session: Session, isolation_level: Optional[str]) -> None:
        self.isolation_level = isolation_level
        self._current: Any = None
        self._affected_rows = 0
        event.listen(sync_session, "after_flush", self._count_flushed_rows)

    @property
    def current_transaction(self) -> Any:
        """Transaction currently held by this unit of work, if any."""
        return self._current

    @property
    def has_active_transaction(self) -> bool:
        return self._current is not None

    def resolve_isolation_level(self, dialect: Dialect) -> Optional[str]:
        """
        Isolation level to request from the given dialect.

        SQLite has no READ COMMITTED; levels it rejects become SERIALIZABLE,
        which is how SQLite runs transactions anyway.
        """
        if not self.isolation_level:
            return None
        level = self.isolation_level.upper()
        supported = _SUPPORTED_LEVELS.get(dialect.name)
        if supported is not None and level not in supported:
            logger.debug(
                "%s does not support isolation level %s; using %s",
                dialect.name,
                self.isolation_level,
                _FALLBACK_LEVEL,
            )
            return _FALLBACK_LEVEL
        return level

    def _execution_options(self, dialect: Dialect) -> Optional[Dict[str, Any]]:
        level = self.resolve_isolation_level(dialect)
        return {"isolation_level": level} if level else None

    def _adopt(self, transaction: Any) -> Any:
        if transaction is None:
            raise InvalidOperationError("The session did not begin a transaction.")
        self._current = transaction
        self._affected_rows = 0
        logger.debug("Transaction begun (isolation=%s)", self.isolation_level or "default")
        return transaction

    def _check_handle(self, transaction: Any) -> None:
        if transaction is None:
            raise InvalidOperationError("Cannot commit: no transaction was given.")
        if transaction is not self._current:
            raise InvalidOperationError(
                f"Transaction {id(transaction):#x} is not the current transaction."
            )

    def _dispose(self) -> None:
        self._current = None
        self._affected_rows = 0

    def _count_flushed_rows(self, session: Session, flush_context: Any) -> None:
        # new/dirty/deleted still reflect the pre-flush state inside after_flush.
        dirty = sum(1 for obj in session.dirty if session.is_modified(obj))
        self._affected_rows += len(session.new) + len(session.deleted) + dirty


class UnitOfWork(_TransactionScope):
    """Begin/commit/rollback boundary for a single AsyncSession."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        isolation_level: Optional[str] = DEFAULT_ISOLATION_LEVEL,
    ) -> None:
        self.session = session
        super().__init__(session.sync_session, isolation_level)

    # PUBLIC_INTERFACE
    async def begin_transaction(self) -> AsyncSessionTransaction:
        """
        Open a transaction, or return the one already in progress.

        A transaction the session auto-began (e.g. after a read) is adopted as
        current; its isolation level can no longer be changed in that case.
        """
        if self._current is not None:
            return self._current

        if self.session.in_transaction():
            logger.debug("Adopting transaction already begun on the session")
        else:
            # Checking out the connection autobegins the session transaction.
            dialect = self.session.get_bind().dialect
            await self.session.connection(execution_options=self._execution_options(dialect))

        return self._adopt(self.session.get_transaction())

    # PUBLIC_INTERFACE
    async def commit_transaction(self, transaction: Optional[AsyncSessionTransaction]) -> None:
        """
        Save pending changes and commit the given transaction.

        The transaction is only committed when the flushes made inside it
        touched at least one row; otherwise it is rolled back.

        Raises:
            InvalidOperationError: transaction is None or not the current one.
            DataAccessError: saving failed; the transaction was rolled back.
        """
        self._check_handle(transaction)
        try:
            await self.session.flush()
            if self._affected_rows > 0:
                await transaction.commit()
                logger.debug("Transaction committed (%d rows)", self._affected_rows)
            else:
                logger.debug("Nothing was saved; discarding transaction")
                await transaction.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Saving changes failed, rolling back: %s", exc)
            await self.rollback_transaction()
            raise DataAccessError(str(exc)) from exc
        finally:
            self._dispose()

    # PUBLIC_INTERFACE
    async def rollback_transaction(self) -> None:
        """Revert the current transaction, if any, and clear it."""
        try:
            if self._current is not None:
                # Session-level rollback also handles a transaction deactivated by a failed flush.
                await self.session.rollback()
                logger.debug("Transaction rolled back")
        finally:
            self._dispose()

    # PUBLIC_INTERFACE
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSessionTransaction]:
        """
        Run a block inside a transaction.

        Commits on success and rolls back on error. When a transaction is
        already in progress the block joins it and leaves commit/rollback to
        whoever began it.
        """
        owner = not self.has_active_transaction
        handle = await self.begin_transaction()
        if not owner:
            yield handle
            return
        try:
            yield handle
        except BaseException:
            await self.rollback_transaction()
            raise
        await self.commit_transaction(handle)


class SyncUnitOfWork(_TransactionScope):
    """Begin/commit/rollback boundary for a single synchronous Session."""

    def __init__(
        self,
        session: Session,
        *,
        isolation_level: Optional[str] = DEFAULT_ISOLATION_LEVEL,
    ) -> None:
        self.session = session
        super().__init__(session, isolation_level)

    # PUBLIC_INTERFACE
    def begin_transaction(self) -> SessionTransaction:
        """Open a transaction, or return the one already in progress."""
        if self._current is not None:
            return self._current

        if self.session.in_transaction():
            logger.debug("Adopting transaction already begun on the session")
        else:
            dialect = self.session.get_bind().dialect
            self.session.connection(execution_options=self._execution_options(dialect))

        return self._adopt(self.session.get_transaction())

    # PUBLIC_INTERFACE
    def commit_transaction(self, transaction: Optional[SessionTransaction]) -> None:
        """
        Save pending changes and commit the given transaction.

        Same contract as UnitOfWork.commit_transaction.
        """
        self._check_handle(transaction)
        try:
            self.session.flush()
            if self._affected_rows > 0:
                transaction.commit()
                logger.debug("Transaction committed (%d rows)", self._affected_rows)
            else:
                logger.debug("Nothing was saved; discarding transaction")
                transaction.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Saving changes failed, rolling back: %s", exc)
            self.rollback_transaction()
            raise DataAccessError(str(exc)) from exc
        finally:
            self._dispose()

    # PUBLIC_INTERFACE
    def rollback_transaction(self) -> None:
        """Revert the current transaction, if any, and clear it."""
        try:
            if self._current is not None:
                self.session.rollback()
                logger.debug("Transaction rolled back")
        finally:
            self._dispose()

    # PUBLIC_INTERFACE
    @contextmanager
    def transaction(self) -> Iterator[SessionTransaction]:
        """Run a block inside a transaction; joins one already in progress."""
        owner = not self.has_active_transaction
        handle = self.begin_transaction()
        if not owner:
            yield handle
            return
        try:
            yield handle
        except BaseException:
            self.rollback_transaction()
            raise
        self.commit_transaction(handle)


# PUBLIC_INTERFACE
def create_unit_of_work(
    session: Union[Session, AsyncSession],
    *,
    isolation_level: Optional[str] = DEFAULT_ISOLATION_LEVEL,
) -> Union[SyncUnitOfWork, UnitOfWork]:
    """Build the async unit of work for an AsyncSession, the sync one for a Session."""
    if isinstance(session, AsyncSession):
        return UnitOfWork(session, isolation_level=isolation_level)
    if isinstance(session, Session):
        return SyncUnitOfWork(session, isolation_level=isolation_level)
    raise TypeError(f"Unsupported session type: {type(session).__name__}")
