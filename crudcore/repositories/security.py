from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crudcore.db.models.security import Role
from .base import EntityRepository


class RoleRepository(EntityRepository[Role]):
    """Repository for roles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Role)

    async def get_role_by_name(self, name: str) -> Optional[Role]:
        stmt = select(Role).where(Role.name == name)
        return await self.scalar_one_or_none(stmt)
