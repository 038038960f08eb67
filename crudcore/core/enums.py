from __future__ import annotations

from enum import Enum


class RoleKind(str, Enum):
    """Basic user role kinds."""

    ADMIN = "admin"
    DEVELOPER = "developer"

    @property
    def description(self) -> str:
        """Human readable label of the role kind."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    RoleKind.ADMIN: "Administrador",
    RoleKind.DEVELOPER: "Desenvolvedor",
}
