from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, SessionTransaction
from sqlalchemy.pool import StaticPool

from crudcore.core.enums import RoleKind
from crudcore.core.errors import DataAccessError, InvalidOperationError
from crudcore.db import models  # noqa: F401
from crudcore.db.base import Base
from crudcore.db.models.security import Role
from crudcore.db.unit_of_work import SyncUnitOfWork, create_unit_of_work


@pytest.fixture
def sync_engine():
    engine = create_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sync_session(sync_engine):
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


def _count_roles(engine) -> int:
    with Session(engine) as other:
        return other.scalar(select(func.count()).select_from(Role))


def test_create_unit_of_work_picks_sync_variant(sync_session):
    assert isinstance(create_unit_of_work(sync_session), SyncUnitOfWork)


def test_begin_transaction_twice_returns_same_handle(sync_session):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)

    first = uow.begin_transaction()
    second = uow.begin_transaction()

    assert first is second
    assert uow.current_transaction is first
    assert sync_session.in_transaction()
    uow.rollback_transaction()


def test_default_isolation_level_works_on_sqlite(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session)

    handle = uow.begin_transaction()

    assert sync_session.connection().get_isolation_level() == "SERIALIZABLE"
    sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))
    uow.commit_transaction(handle)
    assert _count_roles(sync_engine) == 1


def test_commit_without_handle_raises(sync_session):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    uow.begin_transaction()

    with pytest.raises(InvalidOperationError):
        uow.commit_transaction(None)

    uow.rollback_transaction()


def test_commit_with_foreign_handle_raises_and_keeps_current(sync_session):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    handle = uow.begin_transaction()
    foreign = MagicMock(spec=SessionTransaction)

    with pytest.raises(InvalidOperationError):
        uow.commit_transaction(foreign)

    assert uow.current_transaction is handle
    foreign.commit.assert_not_called()
    uow.rollback_transaction()


def test_commit_persists_changes_and_clears_current(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    handle = uow.begin_transaction()
    sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))

    uow.commit_transaction(handle)

    assert uow.current_transaction is None
    assert _count_roles(sync_engine) == 1


def test_commit_with_nothing_to_save_ends_transaction(sync_session):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    handle = uow.begin_transaction()

    uow.commit_transaction(handle)

    assert not uow.has_active_transaction
    assert not sync_session.in_transaction()


def test_commit_failure_rolls_back_and_raises_data_access_error(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    with uow.transaction():
        sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))

    handle = uow.begin_transaction()
    sync_session.add(Role(name="admin", kind=RoleKind.DEVELOPER))

    with pytest.raises(DataAccessError):
        uow.commit_transaction(handle)

    assert uow.current_transaction is None
    assert not sync_session.in_transaction()
    assert _count_roles(sync_engine) == 1


def test_rollback_without_transaction_is_noop(sync_session):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)

    uow.rollback_transaction()

    assert uow.current_transaction is None


def test_rollback_discards_flushed_changes(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)
    uow.begin_transaction()
    sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))
    sync_session.flush()

    uow.rollback_transaction()

    assert uow.current_transaction is None
    assert _count_roles(sync_engine) == 0


def test_transaction_block_rolls_back_on_error(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)

    with pytest.raises(RuntimeError):
        with uow.transaction():
            sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))
            sync_session.flush()
            raise RuntimeError("boom")

    assert not uow.has_active_transaction
    assert _count_roles(sync_engine) == 0


def test_nested_transaction_block_joins_outer(sync_session, sync_engine):
    uow = SyncUnitOfWork(sync_session, isolation_level=None)

    with uow.transaction() as outer:
        with uow.transaction() as inner:
            assert inner is outer
            sync_session.add(Role(name="admin", kind=RoleKind.ADMIN))
        assert uow.current_transaction is outer

    assert not uow.has_active_transaction
    assert _count_roles(sync_engine) == 1
