from __future__ import annotations

import logging
from typing import Awaitable, Generic, List, Optional, Protocol, Type, TypeVar, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from crudcore.core.errors import ConcurrencyConflictError
from crudcore.repositories.base import EntityRepository

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")


class CrudService(Protocol[TEntity]):
    """Entity operations required by crudcore.api.crud.CrudController."""

    async def get_all_items(self) -> List[TEntity]:
        ...

    async def get_item(self, entity_id: UUID) -> Optional[TEntity]:
        ...

    async def update_item(self, entity_id: UUID, entity: TEntity) -> TEntity:
        ...

    async def add_item(self, entity: TEntity) -> TEntity:
        ...

    def delete_item(self, entity: TEntity) -> Union[None, Awaitable[None]]:
        ...


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories.

    Services should keep business logic and orchestration, delegating data access
    to repositories.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session


class EntityService(BaseService, Generic[TEntity]):
    """
    SQLAlchemy implementation of CrudService for one model.

    update_item raises ConcurrencyConflictError when the row disappeared or was
    changed by someone else since it was read (optimistic version check).
    """

    def __init__(
        self,
        session: AsyncSession,
        model: Type[TEntity],
        repository: Optional[EntityRepository[TEntity]] = None,
    ) -> None:
        super().__init__(session)
        self.model = model
        self.repository = repository or EntityRepository(session, model)

    async def get_all_items(self) -> List[TEntity]:
        return await self.repository.list_all()

    async def get_item(self, entity_id: UUID) -> Optional[TEntity]:
        return await self.repository.get(entity_id)

    async def update_item(self, entity_id: UUID, entity: TEntity) -> TEntity:
        existing = await self.repository.get(entity_id)
        if existing is None:
            raise ConcurrencyConflictError(
                f"{self.model.__name__} '{entity_id}' was removed by another operation"
            )
        try:
            merged = await self.repository.merge(entity)
            await self.repository.flush()
        except StaleDataError as exc:
            raise ConcurrencyConflictError(str(exc)) from exc
        logger.debug("Updated %s %s", self.model.__name__, entity_id)
        return merged

    async def add_item(self, entity: TEntity) -> TEntity:
        await self.repository.add(entity)
        await self.repository.flush()
        logger.debug("Added %s %s", self.model.__name__, getattr(entity, "id", None))
        return entity

    async def delete_item(self, entity: TEntity) -> None:
        await self.repository.delete(entity)
        logger.debug("Deleted %s %s", self.model.__name__, getattr(entity, "id", None))
