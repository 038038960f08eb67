from __future__ import annotations

from crudcore.api.routes.crud import build_crud_router
from crudcore.core.mapping import ModelMapper
from crudcore.db.models.security import Role
from crudcore.schemas.security import RoleView
from crudcore.services.security import RoleService

role_mapper: ModelMapper[Role, RoleView] = ModelMapper(Role, RoleView)

router = build_crud_router(
    prefix="/roles",
    view_model=RoleView,
    mapper=role_mapper,
    service_factory=RoleService,
    tags=["Roles"],
)
