from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crudcore.db.models.security import Role
from crudcore.repositories.security import RoleRepository
from .base import EntityService


class RoleService(EntityService[Role]):
    """Role operations backing the /roles CRUD endpoints."""

    def __init__(self, session: AsyncSession) -> None:
        self.roles = RoleRepository(session)
        super().__init__(session, Role, self.roles)

    async def get_role_by_name(self, name: str) -> Optional[Role]:
        return await self.roles.get_role_by_name(name)
