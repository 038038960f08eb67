from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from crudcore.core.enums import RoleKind
from .common import BaseViewModel


class RoleView(BaseViewModel):
    """Role read/write model."""
    name: str = Field(..., min_length=1, description="Role name (unique)")
    description: Optional[str] = Field(None)
    kind: RoleKind = Field(RoleKind.DEVELOPER, description="Role kind")
    created_at: Optional[datetime] = Field(None, description="Created timestamp")
    updated_at: Optional[datetime] = Field(None, description="Updated timestamp")
