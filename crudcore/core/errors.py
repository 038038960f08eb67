"""Exception taxonomy shared by the unit of work, services and controllers."""

from __future__ import annotations

__all__ = [
    "CrudCoreError",
    "InvalidOperationError",
    "DataAccessError",
    "ConcurrencyConflictError",
    "CrudOperationError",
]


class CrudCoreError(Exception):
    """Base class for crudcore errors."""


class InvalidOperationError(CrudCoreError):
    """Raised when a call is not valid for the current transaction state."""


class DataAccessError(CrudCoreError):
    """Raised when saving pending changes fails at the persistence layer."""


class ConcurrencyConflictError(CrudCoreError):
    """Raised when a record was changed or removed by another operation since it was read."""


class CrudOperationError(CrudCoreError):
    """Raised by controllers after rolling back a failed mutation; keeps the original message."""
