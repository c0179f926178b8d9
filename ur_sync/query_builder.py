"""Merge selection fragments into one composite GraphQL query."""

from __future__ import annotations

from typing import Iterable

from ur_sync.domains.models import DomainDefinition, FieldSpec, RootSelection

QUERY_NAME = "UnraidAdapterFetch"
INDENT = "    "


class FieldTree:
    """Trie of field names; inserting the same path twice is a no-op."""

    def __init__(self) -> None:
        self.children: dict[str, FieldTree] = {}

    def child(self, name: str) -> "FieldTree":
        node = self.children.get(name)
        if node is None:
            node = FieldTree()
            self.children[name] = node
        return node

    def insert_fields(self, fields: Iterable[FieldSpec]) -> None:
        for spec in fields:
            self.child(spec.name).insert_fields(spec.selection)

    def __bool__(self) -> bool:
        return bool(self.children)

    def serialize(self, depth: int = 0) -> list[str]:
        """Render children sorted by name, one field per line."""
        pad = INDENT * depth
        lines: list[str] = []
        for name in sorted(self.children):
            node = self.children[name]
            if not node:
                lines.append(f"{pad}{name}")
                continue
            lines.append(f"{pad}{name} {{")
            lines.extend(node.serialize(depth + 1))
            lines.append(f"{pad}}}")
        return lines


class QueryComposer:
    """Accumulates fragments keyed by root field and prints one query."""

    def __init__(self) -> None:
        self._roots = FieldTree()

    def add_fragments(self, fragments: Iterable[RootSelection]) -> None:
        for fragment in fragments:
            self._roots.child(fragment.root).insert_fields(fragment.fields)

    def add_definitions(self, definitions: Iterable[DomainDefinition]) -> None:
        for definition in definitions:
            self.add_fragments(definition.selection)

    @property
    def roots(self) -> list[str]:
        return sorted(self._roots.children)

    def build(self) -> str | None:
        """Return the query text, or None when nothing was added."""
        if not self._roots:
            return None
        body = "\n".join(self._roots.serialize(depth=1))
        return f"query {QUERY_NAME} {{\n{body}\n}}"


def build_query(definitions: Iterable[DomainDefinition]) -> str | None:
    composer = QueryComposer()
    composer.add_definitions(definitions)
    return composer.build()
