"""
Generic CRUD controller.

CrudController binds one entity type and one view type to a service, a mapper
and the request's unit of work. Each operation returns a CrudResult (status
code plus optional content or message) instead of raising for expected
outcomes; crudcore.api.routes.crud turns results into HTTP responses.

Mutations run inside a unit-of-work transaction. Unexpected errors roll the
transaction back and surface as CrudOperationError carrying the original
message. The one recovered error is a concurrency conflict during update,
answered with 404 when the entity is gone.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Generic, Mapping, Optional, TypeVar
from uuid import UUID

from crudcore.core.errors import ConcurrencyConflictError, CrudOperationError
from crudcore.core.mapping import ModelMapper
from crudcore.core.messages import ITEMS_NOT_FOUND, MAPPING_FAILED, get_messages
from crudcore.db.unit_of_work import UnitOfWork
from crudcore.schemas.common import BaseViewModel
from crudcore.services.base import CrudService

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")
TView = TypeVar("TView", bound=BaseViewModel)

NIL_UUID = UUID(int=0)


@dataclass
class CrudResult:
    """Outcome of a controller operation."""

    status_code: int
    content: Any = None
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status_code < 400


def _is_empty(entity_id: Optional[UUID]) -> bool:
    return entity_id is None or entity_id == NIL_UUID


class CrudController(Generic[TEntity, TView]):
    """Transactional CRUD orchestration for one resource."""

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        service: CrudService[TEntity],
        mapper: ModelMapper[TEntity, TView],
        messages: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.unit_of_work = unit_of_work
        self.service = service
        self.mapper = mapper
        self.messages = messages or get_messages()

    # PUBLIC_INTERFACE
    async def search_all(self) -> CrudResult:
        """List every entity as views; 404 when there is none."""
        entities = list(await self.service.get_all_items())
        if not entities:
            return CrudResult(HTTPStatus.NOT_FOUND, message=self.messages[ITEMS_NOT_FOUND])

        views = self.mapper.to_views(entities)
        if views is None:
            return CrudResult(HTTPStatus.NOT_FOUND, message=self.messages[MAPPING_FAILED])
        return CrudResult(HTTPStatus.OK, views)

    # PUBLIC_INTERFACE
    async def search(self, entity_id: UUID) -> CrudResult:
        """Fetch one entity by id."""
        if _is_empty(entity_id):
            return CrudResult(HTTPStatus.BAD_REQUEST)

        entity = await self.service.get_item(entity_id)
        if entity is None:
            return CrudResult(HTTPStatus.NOT_FOUND)

        view = self.mapper.to_view(entity)
        if view is None:
            return CrudResult(HTTPStatus.NOT_FOUND)
        return CrudResult(HTTPStatus.OK, view)

    # PUBLIC_INTERFACE
    async def update(self, entity_id: UUID, view: TView) -> CrudResult:
        """Replace an entity with the state carried by the view."""
        if _is_empty(entity_id) or entity_id != view.id:
            return CrudResult(HTTPStatus.BAD_REQUEST)

        transaction = await self.unit_of_work.begin_transaction()
        try:
            entity = self.mapper.to_entity(view)
            if entity is None:
                await self.unit_of_work.rollback_transaction()
                return CrudResult(HTTPStatus.UNPROCESSABLE_ENTITY)

            await self.service.update_item(entity_id, entity)
            await self.unit_of_work.commit_transaction(transaction)
        except ConcurrencyConflictError:
            await self.unit_of_work.rollback_transaction()
            if not await self.entity_exists(entity_id):
                return CrudResult(HTTPStatus.NOT_FOUND)
            raise
        except Exception as exc:
            await self.unit_of_work.rollback_transaction()
            raise CrudOperationError(str(exc)) from exc

        logger.info("Updated %s %s", self.mapper.entity_type.__name__, entity_id)
        return CrudResult(HTTPStatus.OK)

    # PUBLIC_INTERFACE
    async def add(self, view: TView) -> CrudResult:
        """
        Create an entity from the view and echo the view back.

        An existing entity with the same id answers 401 Unauthorized.
        """
        transaction = await self.unit_of_work.begin_transaction()
        try:
            if await self.entity_exists(view.id):
                await self.unit_of_work.rollback_transaction()
                return CrudResult(HTTPStatus.UNAUTHORIZED)

            entity = self.mapper.to_entity(view)
            if entity is None:
                await self.unit_of_work.rollback_transaction()
                return CrudResult(HTTPStatus.UNPROCESSABLE_ENTITY)

            await self.service.add_item(entity)
            await self.unit_of_work.commit_transaction(transaction)
        except Exception as exc:
            await self.unit_of_work.rollback_transaction()
            raise CrudOperationError(str(exc)) from exc

        logger.info("Created %s %s", self.mapper.entity_type.__name__, view.id)
        return CrudResult(HTTPStatus.OK, view)

    # PUBLIC_INTERFACE
    async def remove(self, entity_id: UUID) -> CrudResult:
        """Delete an entity; 400 when it is still present afterwards."""
        if _is_empty(entity_id):
            return CrudResult(HTTPStatus.BAD_REQUEST)

        transaction = await self.unit_of_work.begin_transaction()
        try:
            entity = await self.service.get_item(entity_id)
            if entity is None:
                await self.unit_of_work.rollback_transaction()
                return CrudResult(HTTPStatus.NOT_FOUND)

            outcome = self.service.delete_item(entity)
            if inspect.isawaitable(outcome):
                await outcome
            await self.unit_of_work.commit_transaction(transaction)
        except Exception as exc:
            await self.unit_of_work.rollback_transaction()
            raise CrudOperationError(str(exc)) from exc

        if await self.entity_exists(entity_id):
            logger.warning(
                "%s %s still exists after delete", self.mapper.entity_type.__name__, entity_id
            )
            return CrudResult(HTTPStatus.BAD_REQUEST)

        logger.info("Deleted %s %s", self.mapper.entity_type.__name__, entity_id)
        return CrudResult(HTTPStatus.OK)

    async def entity_exists(self, entity_id: UUID) -> bool:
        """Direct lookup by id."""
        return await self.service.get_item(entity_id) is not None
