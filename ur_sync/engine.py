"""Sync engine: selection, query composition and payload application."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from ur_sync.domains.catalog import DomainCatalog, default_catalog
from ur_sync.domains.models import DomainDefinition
from ur_sync.domains.selection import DomainSelection, resolve_selection
from ur_sync.object_tree import ObjectTreeManager
from ur_sync.query_builder import build_query
from ur_sync.resources.families import FamilyRegistry
from ur_sync.resources.reconciler import DynamicResourceReconciler, FamilyResult
from ur_sync.state_writer import StateWriter
from ur_sync.store.base import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """What a single payload application touched."""

    static_writes: int = 0
    families: dict[str, FamilyResult] = field(default_factory=dict)

    @property
    def structural_families(self) -> list[str]:
        return [name for name, result in self.families.items() if result.structural]


class SyncEngine:
    """Owns the catalog, the object tree and both writers for one store."""

    def __init__(
        self,
        store: ObjectStore,
        *,
        catalog: DomainCatalog | None = None,
        families: FamilyRegistry | None = None,
        selection: Iterable[str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.catalog = catalog or default_catalog()
        self.families = families or FamilyRegistry()
        self.tree = ObjectTreeManager(store, self.catalog, self.families, clock)
        self.writer = StateWriter(store, self.tree, self.catalog, self.families)
        self.reconciler = DynamicResourceReconciler(self.writer, self.tree, self.families)
        self._selection = resolve_selection(self.catalog, selection)
        self._selection_lock = threading.Lock()

    @property
    def selection(self) -> DomainSelection:
        with self._selection_lock:
            return self._selection

    def definitions(self) -> tuple[DomainDefinition, ...]:
        return self.selection.definitions

    def set_selection(self, ids: Iterable[str] | None) -> DomainSelection:
        """Swap the selection and drop snapshots of deselected families."""
        selection = resolve_selection(self.catalog, ids)
        with self._selection_lock:
            self._selection = selection
        self.reconciler.reset_tracking(selection.effective)
        logger.info("Selected categories: %s", ", ".join(selection.effective) or "none")
        return selection

    def build_query(self) -> str | None:
        return build_query(self.definitions())

    def initialize(self) -> None:
        self.tree.initialize(self.catalog)

    def prune(self) -> list[str]:
        return self.tree.prune_deselected(self.selection.effective)

    def initialize_static_states(self) -> int:
        return self.writer.initialize_static_states(self.definitions())

    def apply_payload(self, payload: Mapping[str, Any]) -> CycleReport:
        """Write one response: dynamic families first, then static mappings."""
        selection = self.selection
        self.tree.begin_cycle()
        report = CycleReport()
        report.families = self.reconciler.apply(payload, selection.effective)
        report.static_writes = self.writer.apply_definitions(payload, selection.definitions)
        logger.debug(
            "Applied payload: %d static writes, families %s",
            report.static_writes,
            ", ".join(report.families) or "none",
        )
        return report

    def statistics(self) -> dict[str, Any]:
        return self.tree.statistics()
