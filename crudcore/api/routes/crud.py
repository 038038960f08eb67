"""
Router factory exposing a CrudController as FastAPI routes.

build_crud_router() instantiates the generic controller for one resource:

    GET    {prefix}         list views          200 | 404
    GET    {prefix}/{id}    one view            200 | 400 | 404
    PUT    {prefix}/{id}    replace             200 | 400 | 404 | 422
    POST   {prefix}         create, echo body   200 | 401 | 422
    DELETE {prefix}/{id}    delete              200 | 400 | 404

Failure results are raised as HTTPException so the application error
envelope renders them.
"""

# No postponed annotations here: route signatures annotate the body with the
# view model class passed to the factory, which FastAPI must see as a class.

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crudcore.api.crud import CrudController, CrudResult
from crudcore.core.deps import get_locale_messages, get_unit_of_work
from crudcore.core.mapping import ModelMapper
from crudcore.db.session import get_async_session
from crudcore.db.unit_of_work import UnitOfWork
from crudcore.schemas.common import BaseViewModel, ErrorResponse
from crudcore.services.base import CrudService

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[AsyncSession], CrudService]


def _error_responses(*codes: int) -> Dict[int | str, Dict[str, Any]]:
    return {code: {"model": ErrorResponse} for code in codes}


# PUBLIC_INTERFACE
def to_response(result: CrudResult) -> Response:
    """Turn a controller result into a response, raising HTTPException on failures."""
    status_code = int(result.status_code)
    if not result.is_success:
        raise HTTPException(status_code=status_code, detail=result.message)
    if result.content is None:
        return Response(status_code=status_code)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result.content))


# PUBLIC_INTERFACE
def build_crud_router(
    *,
    prefix: str,
    view_model: Type[BaseViewModel],
    mapper: ModelMapper,
    service_factory: ServiceFactory,
    tags: Optional[Sequence[str]] = None,
) -> APIRouter:
    """
    Build the CRUD router of one resource.

    Parameters:
        prefix: path prefix, e.g. "/roles".
        view_model: Pydantic view model used for request bodies and responses.
        mapper: entity <-> view mapper for the resource.
        service_factory: builds the resource service from the request session.
        tags: OpenAPI tags.
    """
    router = APIRouter(prefix=prefix, tags=list(tags or []))
    resource = prefix.strip("/") or view_model.__name__

    async def get_controller(
        session: AsyncSession = Depends(get_async_session),
        unit_of_work: UnitOfWork = Depends(get_unit_of_work),
        messages: Mapping[str, str] = Depends(get_locale_messages),
    ) -> CrudController:
        return CrudController(unit_of_work, service_factory(session), mapper, messages)

    # PUBLIC_INTERFACE
    @router.get(
        "",
        response_model=List[view_model],
        summary=f"List {resource}",
        responses=_error_responses(404),
    )
    async def search_all(controller: CrudController = Depends(get_controller)) -> Response:
        return to_response(await controller.search_all())

    # PUBLIC_INTERFACE
    @router.get(
        "/{entity_id}",
        response_model=view_model,
        summary=f"Get one of {resource}",
        responses=_error_responses(400, 404),
    )
    async def search(
        entity_id: UUID = Path(..., description="Entity id"),
        controller: CrudController = Depends(get_controller),
    ) -> Response:
        return to_response(await controller.search(entity_id))

    # PUBLIC_INTERFACE
    @router.put(
        "/{entity_id}",
        summary=f"Update one of {resource}",
        responses=_error_responses(400, 404, 422),
    )
    async def update(
        payload: view_model,
        entity_id: UUID = Path(..., description="Entity id"),
        controller: CrudController = Depends(get_controller),
    ) -> Response:
        return to_response(await controller.update(entity_id, payload))

    # PUBLIC_INTERFACE
    @router.post(
        "",
        response_model=view_model,
        summary=f"Create one of {resource}",
        responses=_error_responses(401, 422),
    )
    async def add(
        payload: view_model,
        controller: CrudController = Depends(get_controller),
    ) -> Response:
        return to_response(await controller.add(payload))

    # PUBLIC_INTERFACE
    @router.delete(
        "/{entity_id}",
        summary=f"Delete one of {resource}",
        responses=_error_responses(400, 404),
    )
    async def remove(
        entity_id: UUID = Path(..., description="Entity id"),
        controller: CrudController = Depends(get_controller),
    ) -> Response:
        return to_response(await controller.remove(entity_id))

    logger.debug("Built CRUD router for %s", resource)
    return router
