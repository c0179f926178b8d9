"""Resolution of an operator-supplied category selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ur_sync.domains.catalog import DomainCatalog
from ur_sync.domains.models import DomainDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainSelection:
    """A validated selection.

    ``requested`` keeps the known ids as supplied, ``effective`` holds the
    fetchable categories they expand to.
    """

    requested: tuple[str, ...]
    effective: tuple[str, ...]
    definitions: tuple[DomainDefinition, ...]
    used_defaults: bool = False

    def includes(self, category_id: str) -> bool:
        return category_id in self.effective


def known_ids(catalog: DomainCatalog, ids: Iterable[str] | None) -> list[str]:
    """Drop unknown ids and duplicates, keeping the supplied order."""
    known: list[str] = []
    for category_id in ids or ():
        if category_id not in catalog:
            logger.debug("Ignoring unknown category id %r", category_id)
        elif category_id not in known:
            known.append(category_id)
    return known


def resolve_selection(
    catalog: DomainCatalog, ids: Iterable[str] | None
) -> DomainSelection:
    """Validate ``ids``; an empty or fully unknown set means the defaults."""
    requested = known_ids(catalog, ids)
    used_defaults = not requested
    if used_defaults:
        requested = catalog.default_ids()
        logger.info("No valid categories selected; using defaults %s", ", ".join(requested))
    effective = tuple(catalog.expand_selection(requested))
    definitions = tuple(
        definition
        for definition in (catalog.definition(category_id) for category_id in effective)
        if definition is not None
    )
    return DomainSelection(
        requested=tuple(requested),
        effective=effective,
        definitions=definitions,
        used_defaults=used_defaults,
    )
