from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from crudcore.core.enums import RoleKind
from crudcore.core.errors import DataAccessError, InvalidOperationError
from crudcore.db.models.security import Role
from crudcore.db.unit_of_work import UnitOfWork, create_unit_of_work


async def _count_roles(session_maker) -> int:
    async with session_maker() as other:
        return await other.scalar(select(func.count()).select_from(Role))


@pytest.mark.asyncio
async def test_begin_transaction_twice_returns_same_handle(session):
    uow = UnitOfWork(session, isolation_level=None)

    first = await uow.begin_transaction()
    second = await uow.begin_transaction()

    assert first is second
    assert uow.current_transaction is first
    assert session.in_transaction()
    await uow.rollback_transaction()


@pytest.mark.asyncio
async def test_begin_adopts_transaction_started_by_a_read(session):
    uow = UnitOfWork(session, isolation_level=None)
    await session.execute(select(1))
    assert session.in_transaction()

    handle = await uow.begin_transaction()

    assert handle is not None
    assert uow.has_active_transaction
    await uow.rollback_transaction()
    assert not session.in_transaction()


@pytest.mark.asyncio
async def test_commit_without_handle_raises(session):
    uow = UnitOfWork(session, isolation_level=None)
    await uow.begin_transaction()

    with pytest.raises(InvalidOperationError):
        await uow.commit_transaction(None)

    await uow.rollback_transaction()


@pytest.mark.asyncio
async def test_commit_with_foreign_handle_raises_and_keeps_current(session):
    uow = UnitOfWork(session, isolation_level=None)
    handle = await uow.begin_transaction()
    foreign = MagicMock(spec=AsyncSessionTransaction)

    with pytest.raises(InvalidOperationError):
        await uow.commit_transaction(foreign)

    assert uow.current_transaction is handle
    foreign.commit.assert_not_called()
    await uow.rollback_transaction()


@pytest.mark.asyncio
async def test_commit_without_begin_raises(session):
    uow = UnitOfWork(session, isolation_level=None)
    stray = MagicMock(spec=AsyncSessionTransaction)

    with pytest.raises(InvalidOperationError):
        await uow.commit_transaction(stray)


@pytest.mark.asyncio
async def test_commit_persists_changes_and_clears_current(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)
    handle = await uow.begin_transaction()
    session.add(Role(name="admin", kind=RoleKind.ADMIN))

    await uow.commit_transaction(handle)

    assert uow.current_transaction is None
    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_commit_of_changes_flushed_earlier_is_kept(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)
    handle = await uow.begin_transaction()
    session.add(Role(name="admin", kind=RoleKind.ADMIN))
    await session.flush()

    await uow.commit_transaction(handle)

    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_commit_of_attribute_change_is_persisted(session, session_maker):
    role = Role(name="dev", kind=RoleKind.DEVELOPER)
    uow = UnitOfWork(session, isolation_level=None)
    async with uow.transaction():
        session.add(role)

    handle = await uow.begin_transaction()
    role.description = "Desenvolvedor"
    await uow.commit_transaction(handle)

    async with session_maker() as other:
        stored = await other.scalar(select(Role.description).where(Role.name == "dev"))
    assert stored == "Desenvolvedor"


@pytest.mark.asyncio
async def test_commit_with_nothing_to_save_ends_transaction(session):
    uow = UnitOfWork(session, isolation_level=None)
    handle = await uow.begin_transaction()

    await uow.commit_transaction(handle)

    assert not uow.has_active_transaction
    assert not session.in_transaction()


@pytest.mark.asyncio
async def test_commit_failure_rolls_back_and_raises_data_access_error(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)
    async with uow.transaction():
        session.add(Role(name="admin", kind=RoleKind.ADMIN))

    handle = await uow.begin_transaction()
    session.add(Role(name="admin", kind=RoleKind.DEVELOPER))

    with pytest.raises(DataAccessError):
        await uow.commit_transaction(handle)

    assert uow.current_transaction is None
    assert not session.in_transaction()
    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_rollback_without_transaction_is_noop(session):
    uow = UnitOfWork(session, isolation_level=None)

    await uow.rollback_transaction()

    assert uow.current_transaction is None


@pytest.mark.asyncio
async def test_rollback_discards_flushed_changes(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)
    await uow.begin_transaction()
    session.add(Role(name="admin", kind=RoleKind.ADMIN))
    await session.flush()

    await uow.rollback_transaction()

    assert uow.current_transaction is None
    assert await _count_roles(session_maker) == 0


@pytest.mark.asyncio
async def test_new_transaction_after_commit_gets_new_handle(session):
    uow = UnitOfWork(session, isolation_level=None)
    first = await uow.begin_transaction()
    await uow.commit_transaction(first)

    second = await uow.begin_transaction()

    assert second is not None
    assert uow.current_transaction is second
    await uow.rollback_transaction()


@pytest.mark.asyncio
async def test_transaction_block_commits_on_success(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)

    async with uow.transaction():
        session.add(Role(name="admin", kind=RoleKind.ADMIN))

    assert not uow.has_active_transaction
    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_transaction_block_rolls_back_on_error(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)

    with pytest.raises(RuntimeError):
        async with uow.transaction():
            session.add(Role(name="admin", kind=RoleKind.ADMIN))
            await session.flush()
            raise RuntimeError("boom")

    assert not uow.has_active_transaction
    assert await _count_roles(session_maker) == 0


@pytest.mark.asyncio
async def test_nested_transaction_block_joins_outer(session, session_maker):
    uow = UnitOfWork(session, isolation_level=None)

    async with uow.transaction() as outer:
        async with uow.transaction() as inner:
            assert inner is outer
            session.add(Role(name="admin", kind=RoleKind.ADMIN))
        # inner block leaves the outer transaction open
        assert uow.current_transaction is outer

    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_default_isolation_level_falls_back_to_serializable_on_sqlite(session, session_maker):
    uow = UnitOfWork(session)

    handle = await uow.begin_transaction()
    connection = await session.connection()

    assert uow.isolation_level == "READ COMMITTED"
    assert await connection.get_isolation_level() == "SERIALIZABLE"
    session.add(Role(name="admin", kind=RoleKind.ADMIN))
    await uow.commit_transaction(handle)
    assert await _count_roles(session_maker) == 1


@pytest.mark.asyncio
async def test_configured_isolation_level_is_applied(session):
    uow = UnitOfWork(session, isolation_level="read uncommitted")

    await uow.begin_transaction()
    connection = await session.connection()

    assert await connection.get_isolation_level() == "READ UNCOMMITTED"
    await uow.rollback_transaction()


@pytest.mark.parametrize(
    "configured, dialect, expected",
    [
        ("READ COMMITTED", postgresql.dialect(), "READ COMMITTED"),
        ("repeatable read", postgresql.dialect(), "REPEATABLE READ"),
        ("READ COMMITTED", sqlite.dialect(), "SERIALIZABLE"),
        ("READ UNCOMMITTED", sqlite.dialect(), "READ UNCOMMITTED"),
        (None, postgresql.dialect(), None),
    ],
)
def test_resolve_isolation_level(configured, dialect, expected):
    uow = UnitOfWork(AsyncSession(), isolation_level=configured)

    assert uow.resolve_isolation_level(dialect) == expected


@pytest.mark.asyncio
async def test_create_unit_of_work_picks_async_variant(session):
    assert isinstance(create_unit_of_work(session), UnitOfWork)


def test_create_unit_of_work_rejects_other_objects():
    with pytest.raises(TypeError):
        create_unit_of_work(object())


@pytest.mark.asyncio
async def test_begin_raises_when_session_has_no_transaction(session):
    uow = UnitOfWork(session, isolation_level=None)

    with patch.object(session, "get_transaction", return_value=None):
        with pytest.raises(InvalidOperationError):
            await uow.begin_transaction()

    assert uow.current_transaction is None
    await session.rollback()
