from __future__ import annotations

import logging
from typing import Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import inspect

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")
TView = TypeVar("TView", bound=BaseModel)

DEFAULT_READ_ONLY_FIELDS = ("created_at", "updated_at")


class ModelMapper(Generic[TEntity, TView]):
    """
    Bidirectional mapper between an ORM entity type and a Pydantic view model.

    Entity -> view uses Pydantic attribute validation. View -> entity builds a
    transient entity from the view fields that are mapped columns, skipping
    read-only (server managed) fields.

    Every mapping method returns None instead of raising when conversion fails,
    so callers can decide which HTTP status represents the failure.
    """

    def __init__(
        self,
        entity_type: Type[TEntity],
        view_type: Type[TView],
        *,
        read_only_fields: Sequence[str] = DEFAULT_READ_ONLY_FIELDS,
    ) -> None:
        self.entity_type = entity_type
        self.view_type = view_type
        self._read_only = frozenset(read_only_fields)
        self._columns = frozenset(attr.key for attr in inspect(entity_type).column_attrs)

    def to_view(self, entity: TEntity) -> Optional[TView]:
        """Convert one entity into its view model."""
        try:
            return self.view_type.model_validate(entity, from_attributes=True)
        except ValidationError as exc:
            logger.warning(
                "Could not map %s to %s: %s",
                type(entity).__name__,
                self.view_type.__name__,
                exc.errors(),
            )
            return None

    def to_views(self, entities: Iterable[TEntity]) -> Optional[List[TView]]:
        """Convert a collection of entities; None when any of them fails."""
        views: List[TView] = []
        for entity in entities:
            view = self.to_view(entity)
            if view is None:
                return None
            views.append(view)
        return views

    def to_entity(self, view: TView) -> Optional[TEntity]:
        """Build a transient entity from a view model."""
        fields = (self._columns & set(type(view).model_fields)) - self._read_only
        data = view.model_dump(include=fields)
        try:
            return self.entity_type(**data)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Could not map %s to %s: %s",
                type(view).__name__,
                self.entity_type.__name__,
                exc,
            )
            return None
