"""Thread-safe in-memory object store."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from ur_common.errors import StoreError
from ur_sync.store.base import DisplayMetadata, NodeKind, StoreNode, is_same_or_descendant

logger = logging.getLogger(__name__)


class MemoryObjectStore:
    """Keeps nodes in a dict guarded by a re-entrant lock.

    Writes are last-write-wins per id, so overlapping poll cycles may
    interleave safely.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, StoreNode] = {}
        self._lock = threading.RLock()

    def create_node_if_absent(
        self, node_id: str, kind: NodeKind, metadata: DisplayMetadata
    ) -> bool:
        with self._lock:
            if node_id in self._nodes:
                return False
            self._nodes[node_id] = StoreNode(id=node_id, kind=kind, metadata=metadata)
            return True

    def set_node_metadata(self, node_id: str, metadata: DisplayMetadata) -> None:
        with self._lock:
            node = self._require(node_id)
            node.metadata = metadata

    def write_value(self, node_id: str, value: Any) -> None:
        with self._lock:
            node = self._require(node_id)
            node.value = value

    def upsert(
        self,
        node_id: str,
        kind: NodeKind,
        metadata: DisplayMetadata,
        value: Any,
    ) -> None:
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                self._nodes[node_id] = StoreNode(
                    id=node_id, kind=kind, metadata=metadata, value=value
                )
                return
            node.metadata = metadata
            node.value = value

    def delete_subtree(self, node_id: str) -> None:
        with self._lock:
            doomed = [
                existing
                for existing in self._nodes
                if is_same_or_descendant(existing, node_id)
            ]
            for existing in doomed:
                del self._nodes[existing]
        if doomed:
            logger.debug("Deleted %d node(s) under %s", len(doomed), node_id)

    def list_nodes(self) -> dict[str, StoreNode]:
        with self._lock:
            return {node_id: copy.copy(node) for node_id, node in self._nodes.items()}

    def get_node(self, node_id: str) -> StoreNode | None:
        with self._lock:
            node = self._nodes.get(node_id)
            return copy.copy(node) if node is not None else None

    def get_value(self, node_id: str) -> Any:
        with self._lock:
            node = self._nodes.get(node_id)
            return node.value if node is not None else None

    def flush(self) -> None:
        """Nothing to persist for the in-memory store."""

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._nodes

    def _require(self, node_id: str) -> StoreNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise StoreError(
                f"Node {node_id} does not exist",
                context={"node_id": node_id},
            )
        return node
