"""
Database package initializer exposing key public interfaces for configuration,
engine/session management and the unit of work.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    dispose_engine,
    ensure_created,
    get_engine,
    get_async_session,
)
from .unit_of_work import SyncUnitOfWork, UnitOfWork, create_unit_of_work

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "SyncUnitOfWork",
    "UnitOfWork",
    "create_unit_of_work",
    "dispose_engine",
    "ensure_created",
    "get_settings",
    "get_engine",
    "get_async_session",
    "models",
]
