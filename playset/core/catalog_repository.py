"""Catalog repository — read-only access to published catalog parts.

Built once per session from the external catalog feed (a list of records or
a JSON file). Only ``published`` parts resolve; unpublished ids are kept so
that a miss can say why.
"""

from __future__ import annotations

import json
import logging
import pathlib
from collections.abc import Iterable, Iterator

from playset.core.exceptions import CatalogMiss
from playset.core.serializers import dict_to_catalog_part
from playset.models.catalog import CatalogPart

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Lookup service for catalog parts.

    Args:
        parts: Catalog parts. Unpublished entries are recorded but never
               returned by ``get``.
    """

    def __init__(self, parts: Iterable[CatalogPart] = ()) -> None:
        self._parts: dict[str, CatalogPart] = {}
        self._unpublished: set[str] = set()
        for part in parts:
            self._add(part)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_feed(cls, records: Iterable[dict]) -> CatalogRepository:
        """Build from raw feed records, skipping malformed ones."""
        parts: list[CatalogPart] = []
        for record in records:
            try:
                parts.append(dict_to_catalog_part(record))
            except (KeyError, ValueError, TypeError):
                logger.exception("Skipping malformed catalog record %r", record.get("id"))
        return cls(parts)

    @classmethod
    def from_json_file(cls, filepath: str | pathlib.Path) -> CatalogRepository:
        """Build from a JSON file holding a list of records or ``{"parts": [...]}``."""
        with open(filepath, encoding="utf-8") as f:
            raw = json.load(f)
        records = raw.get("parts", []) if isinstance(raw, dict) else raw
        return cls.from_feed(records)

    def _add(self, part: CatalogPart) -> None:
        if part.id in self._parts or part.id in self._unpublished:
            logger.warning("Duplicate catalog id %s; keeping the first record", part.id)
            return
        if part.published:
            self._parts[part.id] = part
        else:
            logger.debug("Catalog part %s is unpublished", part.id)
            self._unpublished.add(part.id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, catalog_id: str) -> CatalogPart:
        """Return a published part.

        Raises:
            CatalogMiss: If *catalog_id* is unknown or unpublished.
        """
        try:
            return self._parts[catalog_id]
        except KeyError:
            raise CatalogMiss(catalog_id, unpublished=catalog_id in self._unpublished) from None

    def find(self, catalog_id: str) -> CatalogPart | None:
        """Return a published part, or None."""
        return self._parts.get(catalog_id)

    def all_parts(self) -> list[CatalogPart]:
        """All published parts in feed order."""
        return list(self._parts.values())

    def by_category(self, category: str) -> list[CatalogPart]:
        return [p for p in self._parts.values() if p.category == category]

    def categories(self) -> list[str]:
        return sorted({p.category for p in self._parts.values()})

    def __contains__(self, catalog_id: object) -> bool:
        return catalog_id in self._parts

    def __iter__(self) -> Iterator[CatalogPart]:
        return iter(self._parts.values())

    def __len__(self) -> int:
        return len(self._parts)
