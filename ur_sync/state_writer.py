"""Writes leaf values into the store, keeping the channel hierarchy intact."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ur_common.errors import StoreError, describe_error
from ur_sync.domains.catalog import DomainCatalog
from ur_sync.domains.models import DomainDefinition
from ur_sync.object_tree import ObjectTreeManager
from ur_sync.resources.families import FamilyRegistry
from ur_sync.store.base import DisplayMetadata, NodeKind, ObjectStore, id_prefixes
from ur_sync.transforms import resolve_value

logger = logging.getLogger(__name__)


class StateWriter:
    """Store writes shared by static mappings and resource families.

    Every write first makes sure each dot-segment ancestor exists as a
    channel, and every touched node is marked seen in the object tree.
    Store failures are logged and reported as a False return.
    """

    def __init__(
        self,
        store: ObjectStore,
        tree: ObjectTreeManager,
        catalog: DomainCatalog,
        families: FamilyRegistry | None = None,
    ) -> None:
        self.store = store
        self.tree = tree
        self.catalog = catalog
        self.families = families or tree.families

    def label_for(self, channel_id: str) -> str:
        """Member roots are named by their family, other channels by the catalog."""
        if not self.tree.is_static(channel_id):
            location = self.families.locate(channel_id)
            if location and location.is_member_root and not location.is_count:
                return location.family.member_label(location.resource_id)
        label = self.catalog.label(channel_id)
        if label:
            return label
        return channel_id.rsplit(".", 1)[-1]

    def ensure_hierarchy(self, node_id: str) -> None:
        for channel_id in id_prefixes(node_id)[:-1]:
            self.store.create_node_if_absent(
                channel_id,
                NodeKind.CHANNEL,
                DisplayMetadata(name=self.label_for(channel_id)),
            )
            self.tree.mark_seen(channel_id, NodeKind.CHANNEL)

    def write_state(self, node_id: str, metadata: DisplayMetadata, value: Any) -> bool:
        """Create the leaf if needed and set its value."""
        try:
            self.ensure_hierarchy(node_id)
            self.store.upsert(node_id, NodeKind.STATE, metadata, value)
        except StoreError as exc:
            logger.warning("Failed to write %s: %s", node_id, describe_error(exc))
            return False
        self.tree.mark_seen(node_id, NodeKind.STATE)
        return True

    def create_state(self, node_id: str, metadata: DisplayMetadata) -> bool:
        """Create an empty leaf; an existing leaf keeps its value."""
        try:
            self.ensure_hierarchy(node_id)
            created = self.store.create_node_if_absent(node_id, NodeKind.STATE, metadata)
        except StoreError as exc:
            logger.warning("Failed to create %s: %s", node_id, describe_error(exc))
            return False
        self.tree.mark_seen(node_id, NodeKind.STATE)
        return created

    def initialize_static_states(self, definitions: Iterable[DomainDefinition]) -> int:
        created = 0
        for definition in definitions:
            for mapping in definition.states:
                if self.create_state(mapping.id, mapping.metadata):
                    created += 1
        return created

    def apply_definition(
        self, definition: DomainDefinition, payload: Mapping[str, Any]
    ) -> int:
        """Write every static mapping of ``definition`` from ``payload``.

        A definition whose root fields are missing from the payload was not
        part of the request and is skipped without writing anything.
        """
        missing = [root for root in definition.roots if root not in payload]
        if missing:
            logger.debug(
                "Skipping %s: root(s) %s absent from response",
                definition.id,
                ", ".join(missing),
            )
            return 0
        written = 0
        for mapping in definition.states:
            raw = resolve_value(payload, mapping.path)
            if self.write_state(mapping.id, mapping.metadata, mapping.transform(raw)):
                written += 1
        return written

    def apply_definitions(
        self, payload: Mapping[str, Any], definitions: Iterable[DomainDefinition]
    ) -> int:
        return sum(self.apply_definition(definition, payload) for definition in definitions)
