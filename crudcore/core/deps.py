from __future__ import annotations

import logging
from typing import AsyncGenerator, Mapping

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crudcore.core.settings import get_app_settings
from crudcore.core.messages import get_messages
from crudcore.db.config import get_settings
from crudcore.db.session import get_async_session
from crudcore.db.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def get_unit_of_work(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[UnitOfWork, None]:
    """
    Yield a UnitOfWork bound to the request session.

    A fresh instance per request keeps the single transaction slot private to
    that request. Any transaction still open when the request ends is rolled back.
    """
    uow = UnitOfWork(session, isolation_level=get_settings().isolation_level)
    try:
        yield uow
    finally:
        if uow.has_active_transaction:
            logger.warning("Request ended with an open transaction; rolling back")
            await uow.rollback_transaction()


# PUBLIC_INTERFACE
def get_locale_messages() -> Mapping[str, str]:
    """Return the message catalog configured by MESSAGES_LOCALE."""
    return get_messages(get_app_settings().MESSAGES_LOCALE)
