"""Indexed, read-only view over the category tree and its definitions."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Sequence

from ur_sync.domains.definitions import DOMAIN_DEFINITIONS, DOMAIN_TREE
from ur_sync.domains.models import DomainDefinition, DomainNode
from ur_sync.store.base import id_prefixes


class DomainCatalog:
    """Category tree plus the fetch definitions of its queryable leaves."""

    def __init__(
        self,
        tree: Sequence[DomainNode],
        definitions: Sequence[DomainDefinition],
    ) -> None:
        self.tree: tuple[DomainNode, ...] = tuple(tree)
        self._nodes: dict[str, DomainNode] = {}
        self._ancestors: dict[str, tuple[str, ...]] = {}
        self._index(self.tree, ())
        self._definitions: dict[str, DomainDefinition] = {}
        for definition in definitions:
            if definition.id not in self._nodes:
                raise ValueError(f"Definition {definition.id} has no category node")
            self._definitions[definition.id] = definition
        self._check_unique_mapping_ids()

    def _index(self, nodes: Sequence[DomainNode], ancestors: tuple[str, ...]) -> None:
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate category id: {node.id}")
            parent = ancestors[-1] if ancestors else None
            if parent is not None and node.id.rsplit(".", 1)[0] != parent:
                raise ValueError(f"Category {node.id} is not nested under {parent}")
            self._nodes[node.id] = node
            self._ancestors[node.id] = ancestors
            self._index(node.children, ancestors + (node.id,))

    def _check_unique_mapping_ids(self) -> None:
        seen: set[str] = set()
        for definition in self._definitions.values():
            for mapping in definition.states:
                if mapping.id in seen:
                    raise ValueError(f"Duplicate state mapping id: {mapping.id}")
                seen.add(mapping.id)

    def node(self, category_id: str) -> DomainNode | None:
        return self._nodes.get(category_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._nodes

    def all_ids(self) -> list[str]:
        """Every category id, depth-first in declaration order."""
        return list(self._nodes)

    def default_ids(self) -> list[str]:
        return [node_id for node_id, node in self._nodes.items() if node.default_selected]

    def ancestors(self, category_id: str) -> tuple[str, ...]:
        return self._ancestors.get(category_id, ())

    def subtree_ids(self, category_id: str) -> list[str]:
        node = self._nodes.get(category_id)
        if node is None:
            return []
        ids = [node.id]
        for child in node.children:
            ids.extend(self.subtree_ids(child.id))
        return ids

    def label(self, category_id: str) -> str | None:
        node = self._nodes.get(category_id)
        return node.label if node is not None else None

    def definition(self, category_id: str) -> DomainDefinition | None:
        return self._definitions.get(category_id)

    @property
    def definitions(self) -> list[DomainDefinition]:
        return list(self._definitions.values())

    def is_fetchable(self, category_id: str) -> bool:
        return category_id in self._definitions

    def expand_selection(self, selection: Iterable[str]) -> list[str]:
        """Return every fetchable category at or below each selected id.

        Unknown ids are ignored; the result follows catalog order.
        """
        wanted: set[str] = set()
        for category_id in selection:
            for candidate in self.subtree_ids(category_id):
                if candidate in self._definitions:
                    wanted.add(candidate)
        return [node_id for node_id in self._nodes if node_id in wanted]

    def owned_roots(self, category_id: str) -> set[str]:
        """Ids whose subtrees belong to a fetchable category.

        Static mappings may live outside the category's own id
        (``array.status`` owns ``array.capacity.*``).
        """
        roots = {category_id}
        definition = self._definitions.get(category_id)
        if definition is not None:
            roots.update(mapping.id for mapping in definition.states)
        return roots

    def static_ids(self) -> set[str]:
        """Every id implied by a category or static mapping, with all prefixes."""
        ids: set[str] = set()
        for category_id in self._nodes:
            ids.update(id_prefixes(category_id))
        for definition in self._definitions.values():
            for mapping in definition.states:
                ids.update(id_prefixes(mapping.id))
        return ids


@lru_cache(maxsize=1)
def default_catalog() -> DomainCatalog:
    """Return the shared catalog built from the bundled definitions."""
    return DomainCatalog(DOMAIN_TREE, DOMAIN_DEFINITIONS)
