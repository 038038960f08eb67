from __future__ import annotations

from typing import Any, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Executable, select
from sqlalchemy.ext.asyncio import AsyncSession

TEntity = TypeVar("TEntity")


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      Helpers only add and flush. Committing is left to the unit of work that
      owns the session transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def flush(self) -> None:
        """Flush pending changes inside the current transaction."""
        await self.session.flush()

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)


class EntityRepository(BaseRepository, Generic[TEntity]):
    """Generic repository for a model keyed by a UUID ``id`` column."""

    def __init__(self, session: AsyncSession, model: Type[TEntity]) -> None:
        super().__init__(session)
        self.model = model

    async def list_all(self) -> List[TEntity]:
        stmt = select(self.model).order_by(self.model.id)  # type: ignore[attr-defined]
        res = await self.scalars(stmt)
        return list(res)

    async def get(self, entity_id: UUID) -> Optional[TEntity]:
        return await self.session.get(self.model, entity_id)

    async def merge(self, entity: TEntity) -> TEntity:
        """Copy the state of a detached/transient entity onto its persistent row."""
        return await self.session.merge(entity)

    async def delete(self, entity: TEntity) -> None:
        await self.session.delete(entity)
