"""
Database seeding utilities for minimal reference data.

Seeds:
- One role per RoleKind (admin, developer)

Usage:
  python -m crudcore.db.run_migrations upgrade head
  python -m crudcore.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from crudcore.core.enums import RoleKind
from crudcore.db.config import get_settings
from crudcore.db.models.security import Role
from crudcore.db.session import get_async_session
from crudcore.db.unit_of_work import create_unit_of_work
from crudcore.services.security import RoleService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with minimal reference data.

    Runs inside a single unit-of-work transaction; rerunning it changes nothing.
    """
    # Create a standalone session via dependency to reuse engine configuration.
    async for session in get_async_session():
        uow = create_unit_of_work(session, isolation_level=get_settings().isolation_level)
        async with uow.transaction():
            created = await _seed_roles(RoleService(session))
        logger.info("Seeded %d role(s).", len(created))


async def _seed_roles(service: RoleService) -> List[Role]:
    """
    Ensure a role named after each RoleKind exists with its description.

    Returns:
      the roles that were created
    """
    created: List[Role] = []
    for kind in RoleKind:
        role = await service.get_role_by_name(kind.value)
        if role is None:
            role = Role(name=kind.value, description=kind.description, kind=kind)
            await service.add_item(role)
            created.append(role)
            continue

        # Realign rows edited by hand
        if role.description != kind.description or role.kind != kind:
            role.description = kind.description
            role.kind = kind
    return created


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
