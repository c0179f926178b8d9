"""Bookkeeping of every locally known node and removal of stale subtrees."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ur_common.errors import StoreError, describe_error
from ur_sync.domains.catalog import DomainCatalog
from ur_sync.resources.families import FamilyRegistry
from ur_sync.store.base import NodeKind, ObjectStore, StoreNode, id_prefixes, is_same_or_descendant

logger = logging.getLogger(__name__)


@dataclass
class TrackedObject:
    """Bookkeeping record for one store node."""

    id: str
    kind: NodeKind
    last_seen: float
    is_static: bool
    family: str | None = None
    resource_id: str | None = None


class ObjectTreeManager:
    """Owns the tracked-object set and keeps it aligned with the store.

    After ``initialize`` and a pruning pass every store node has exactly one
    tracked record and every record has a store node.
    """

    def __init__(
        self,
        store: ObjectStore,
        catalog: DomainCatalog,
        families: FamilyRegistry | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.families = families or FamilyRegistry()
        self._clock = clock
        self._records: dict[str, TrackedObject] = {}
        self._static_ids: set[str] = catalog.static_ids()
        self._cycle_timestamp = clock()
        self._lock = threading.RLock()

    @property
    def cycle_timestamp(self) -> float:
        return self._cycle_timestamp

    def initialize(self, catalog: DomainCatalog | None = None) -> None:
        """Import the store contents and repair dynamic channel labels."""
        if catalog is not None:
            self.catalog = catalog
        self._static_ids = self.catalog.static_ids()
        self._cycle_timestamp = self._clock()
        nodes = self.store.list_nodes()
        with self._lock:
            self._records = {
                node_id: self._new_record(node_id, node.kind)
                for node_id, node in nodes.items()
            }
        logger.debug("Synchronized %d existing nodes", len(nodes))
        self._repair_labels(nodes)

    def begin_cycle(self) -> float:
        self._cycle_timestamp = self._clock()
        return self._cycle_timestamp

    def mark_seen(
        self,
        node_id: str,
        kind: NodeKind,
        family: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        with self._lock:
            record = self._records.get(node_id)
            if record is None:
                self._records[node_id] = self._new_record(node_id, kind, family, resource_id)
                return
            record.last_seen = self._cycle_timestamp

    def get(self, node_id: str) -> TrackedObject | None:
        with self._lock:
            return self._records.get(node_id)

    def tracked_ids(self) -> set[str]:
        with self._lock:
            return set(self._records)

    def is_static(self, node_id: str) -> bool:
        return node_id in self._static_ids

    def reconcile_family(self, family: str, current_resource_ids: Iterable[str]) -> list[str]:
        """Delete the subtrees of members of ``family`` that are gone.

        A failed delete keeps the member's records, so the removal is
        attempted again on the next cycle.
        """
        resource_family = self.families.get(family)
        if resource_family is None:
            raise ValueError(f"Unknown resource family: {family}")
        current = set(current_resource_ids)
        with self._lock:
            vanished = sorted(
                {
                    record.resource_id
                    for record in self._records.values()
                    if record.family == family
                    and record.resource_id is not None
                    and record.resource_id not in current
                }
            )
            removed: list[str] = []
            for resource_id in vanished:
                root = resource_family.member_root(resource_id)
                logger.info(
                    "Resource %s/%s no longer exists, removing nodes", family, resource_id
                )
                if not self._delete(root):
                    continue
                self._drop_records(
                    lambda record: is_same_or_descendant(record.id, root)
                    or (record.family == family and record.resource_id == resource_id)
                )
                removed.append(resource_id)
        return removed

    def prune_deselected(self, selected_category_ids: Iterable[str]) -> list[str]:
        """Delete every node not reachable from a selected category.

        Returns the ids whose subtrees were removed.
        """
        allowed_roots, denied_roots = self._ownership(selected_category_ids)
        ancestors: set[str] = set()
        for root in allowed_roots:
            ancestors.update(id_prefixes(root)[:-1])

        def keep(node_id: str) -> bool:
            if any(is_same_or_descendant(node_id, root) for root in allowed_roots):
                return True
            if node_id in ancestors:
                return True
            if any(is_same_or_descendant(node_id, root) for root in denied_roots):
                return False
            return any(is_same_or_descendant(node_id, prefix) for prefix in ancestors)

        removed: list[str] = []
        with self._lock:
            for node_id in sorted(self.store.list_nodes()):
                if keep(node_id) or any(
                    is_same_or_descendant(node_id, root) for root in removed
                ):
                    continue
                if not self._delete(node_id):
                    continue
                logger.debug("Removed node of unselected category: %s", node_id)
                removed.append(node_id)
                self._drop_records(
                    lambda record, root=node_id: is_same_or_descendant(record.id, root)
                )
            removed.extend(self._remove_empty_channels(allowed_roots, ancestors))
            remaining = set(self.store.list_nodes())
            self._drop_records(
                lambda record: record.id not in remaining and not keep(record.id)
            )
        if removed:
            logger.info("Removed %d subtree(s) of unselected categories", len(removed))
        return removed

    def statistics(self) -> dict[str, Any]:
        """Count tracked objects: total, static/dynamic and per family."""
        stats: dict[str, Any] = {"total": 0, "static": 0, "dynamic": 0, "by_family": {}}
        with self._lock:
            records = list(self._records.values())
        stats["total"] = len(records)
        for record in records:
            if record.is_static:
                stats["static"] += 1
            else:
                stats["dynamic"] += 1
            if record.family:
                stats["by_family"][record.family] = stats["by_family"].get(record.family, 0) + 1
        return stats

    def _new_record(
        self,
        node_id: str,
        kind: NodeKind,
        family: str | None = None,
        resource_id: str | None = None,
    ) -> TrackedObject:
        is_static = node_id in self._static_ids
        if family is None and not is_static:
            location = self.families.locate(node_id)
            if location is not None:
                family = location.family.name
                resource_id = location.resource_id
        return TrackedObject(
            id=node_id,
            kind=kind,
            last_seen=self._cycle_timestamp,
            is_static=is_static,
            family=family,
            resource_id=resource_id,
        )

    def _ownership(self, selected_category_ids: Iterable[str]) -> tuple[set[str], set[str]]:
        selected = set(self.catalog.expand_selection(selected_category_ids))
        allowed: set[str] = set()
        denied: set[str] = set()
        for definition in self.catalog.definitions:
            roots = self.catalog.owned_roots(definition.id)
            roots.update(family.prefix for family in self.families.governed_by([definition.id]))
            if definition.id in selected:
                allowed.update(roots)
            else:
                denied.update(roots)
        return allowed, denied

    def _remove_empty_channels(self, allowed_roots: set[str], ancestors: set[str]) -> list[str]:
        """Delete channels left without children by pruning, deepest first."""
        nodes = self.store.list_nodes()
        remaining = set(nodes)
        removed: list[str] = []
        for node_id in sorted(nodes, reverse=True):
            if nodes[node_id].kind is not NodeKind.CHANNEL or node_id in ancestors:
                continue
            if any(is_same_or_descendant(node_id, root) for root in allowed_roots):
                continue
            if any(other != node_id and is_same_or_descendant(other, node_id) for other in remaining):
                continue
            if self._delete(node_id):
                remaining.discard(node_id)
                removed.append(node_id)
                self._drop_records(lambda record, root=node_id: record.id == root)
        return removed

    def _delete(self, node_id: str) -> bool:
        try:
            self.store.delete_subtree(node_id)
        except StoreError as exc:
            logger.warning("Failed to remove %s: %s", node_id, describe_error(exc))
            return False
        return True

    def _drop_records(self, predicate: Callable[[TrackedObject], bool]) -> None:
        doomed = [node_id for node_id, record in self._records.items() if predicate(record)]
        for node_id in doomed:
            del self._records[node_id]

    def _repair_labels(self, nodes: dict[str, StoreNode]) -> None:
        checked = 0
        updated = 0
        for node_id, node in nodes.items():
            if node.kind is not NodeKind.CHANNEL or node_id in self._static_ids:
                continue
            location = self.families.locate(node_id)
            if location is None or not location.is_member_root or location.is_count:
                continue
            checked += 1
            expected = location.family.member_label(location.resource_id)
            if node.metadata.name == expected:
                continue
            try:
                self.store.set_node_metadata(node_id, node.metadata.with_name(expected))
            except StoreError as exc:
                logger.warning("Failed to relabel %s: %s", node_id, describe_error(exc))
                continue
            updated += 1
            logger.debug('Updated label of %s to "%s"', node_id, expected)
        if updated:
            logger.info("Fixed %d of %d dynamic channel labels", updated, checked)
        elif checked:
            logger.debug("All %d dynamic channel labels are correct", checked)
