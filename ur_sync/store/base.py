"""Object store collaborator contract and shared node types."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Protocol


class NodeKind(str, Enum):
    """Kind tag for a store node."""

    CHANNEL = "channel"
    STATE = "state"


@dataclass(frozen=True)
class DisplayMetadata:
    """Presentation attributes attached to a store node.

    ``value_type`` is one of number/string/boolean/object for leaf nodes and
    None for channels. ``native`` carries opaque data for whoever consumes the
    node, e.g. the remote identity behind a command button.
    """

    name: str | None = None
    value_type: str | None = None
    role: str | None = None
    unit: str | None = None
    read: bool = True
    write: bool = False
    native: Mapping[str, Any] = field(default_factory=dict)

    def with_name(self, name: str) -> "DisplayMetadata":
        return replace(self, name=name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value_type": self.value_type,
            "role": self.role,
            "unit": self.unit,
            "read": self.read,
            "write": self.write,
            "native": dict(self.native),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DisplayMetadata":
        return cls(
            name=data.get("name"),
            value_type=data.get("value_type"),
            role=data.get("role"),
            unit=data.get("unit"),
            read=bool(data.get("read", True)),
            write=bool(data.get("write", False)),
            native=dict(data.get("native") or {}),
        )


@dataclass
class StoreNode:
    """A node as held by an object store."""

    id: str
    kind: NodeKind
    metadata: DisplayMetadata
    value: Any = None


class ObjectStore(Protocol):
    """Hierarchical-id keyed node store used by the sync engine.

    ``delete_subtree`` removes the node and every node whose id continues
    it with a ``.`` segment. Failures raise ``StoreError``.
    """

    def create_node_if_absent(
        self, node_id: str, kind: NodeKind, metadata: DisplayMetadata
    ) -> bool: ...

    def set_node_metadata(self, node_id: str, metadata: DisplayMetadata) -> None: ...

    def write_value(self, node_id: str, value: Any) -> None: ...

    def upsert(
        self,
        node_id: str,
        kind: NodeKind,
        metadata: DisplayMetadata,
        value: Any,
    ) -> None: ...

    def delete_subtree(self, node_id: str) -> None: ...

    def list_nodes(self) -> dict[str, StoreNode]: ...

    def get_node(self, node_id: str) -> StoreNode | None: ...

    def get_value(self, node_id: str) -> Any: ...

    def flush(self) -> None: ...


def is_same_or_descendant(node_id: str, prefix: str) -> bool:
    """Return True when ``node_id`` equals ``prefix`` or lies beneath it."""
    return node_id == prefix or node_id.startswith(f"{prefix}.")


def id_prefixes(node_id: str) -> list[str]:
    """Return every dot-segment prefix of ``node_id``, shortest first."""
    parts = node_id.split(".")
    return [".".join(parts[:index]) for index in range(1, len(parts) + 1)]
