"""Localized human readable messages returned by the CRUD endpoints."""

from __future__ import annotations

import logging
from typing import Dict, Mapping

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "pt-BR"

ITEMS_NOT_FOUND = "items_not_found"
MAPPING_FAILED = "mapping_failed"

CATALOG: Dict[str, Dict[str, str]] = {
    "pt-BR": {
        ITEMS_NOT_FOUND: "Não foram encontrados itens no banco de dados.",
        MAPPING_FAILED: "Não foi possível converter os objetos encontrados.",
    },
    "en": {
        ITEMS_NOT_FOUND: "No items were found in the database.",
        MAPPING_FAILED: "The items found could not be converted.",
    },
}


# PUBLIC_INTERFACE
def get_messages(locale: str | None = None) -> Mapping[str, str]:
    """
    Return the message catalog for a locale.

    Unknown locales fall back to the default (pt-BR) catalog.
    """
    key = locale or DEFAULT_LOCALE
    if key not in CATALOG:
        logger.warning("Unknown messages locale %r; falling back to %s", key, DEFAULT_LOCALE)
        key = DEFAULT_LOCALE
    return CATALOG[key]
