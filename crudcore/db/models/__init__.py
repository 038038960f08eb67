"""
ORM models for the entities exposed through the generic CRUD endpoints.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .security import Role  # noqa: F401
