"""Domain catalog: selectable categories and their fetch definitions."""

from ur_sync.domains.catalog import DomainCatalog, default_catalog
from ur_sync.domains.models import (
    DomainDefinition,
    DomainNode,
    FieldSpec,
    RootSelection,
    StateMapping,
)
from ur_sync.domains.selection import DomainSelection, known_ids, resolve_selection

__all__ = [
    "DomainCatalog",
    "DomainDefinition",
    "DomainNode",
    "DomainSelection",
    "FieldSpec",
    "RootSelection",
    "StateMapping",
    "default_catalog",
    "resolve_selection",
    "known_ids",
]
