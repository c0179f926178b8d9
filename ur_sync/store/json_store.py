"""Object store persisted to a JSON document."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ur_common.errors import StoreError
from ur_sync.store.base import DisplayMetadata, NodeKind, StoreNode
from ur_sync.store.memory import MemoryObjectStore

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


class JsonFileObjectStore(MemoryObjectStore):
    """In-memory store that reloads from and flushes to ``path``."""

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def flush(self) -> None:
        """Persist every node to disk, replacing the previous document."""
        nodes = self.list_nodes()
        serialized = {
            "version": _FORMAT_VERSION,
            "nodes": [
                {
                    "id": node.id,
                    "kind": node.kind.value,
                    "metadata": node.metadata.to_dict(),
                    "value": node.value,
                }
                for node in sorted(nodes.values(), key=lambda item: item.id)
            ],
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(serialized, handle, indent=2, default=str)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StoreError(
                "Failed to write object store",
                context={"path": self.path},
                cause=exc,
            ) from exc
        logger.debug("Flushed %d node(s) to %s", len(nodes), self.path)

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(
                "Failed to read object store",
                context={"path": self.path},
                cause=exc,
            ) from exc

        entries = data.get("nodes", []) if isinstance(data, dict) else []
        if not isinstance(entries, list):
            entries = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping malformed store entry: %r", entry)
                continue
            try:
                node_id = str(entry["id"])
                kind = NodeKind(entry.get("kind", NodeKind.STATE.value))
            except (KeyError, ValueError):
                logger.warning("Skipping malformed store entry: %r", entry)
                continue
            raw_metadata = entry.get("metadata")
            metadata = DisplayMetadata.from_dict(raw_metadata if isinstance(raw_metadata, dict) else {})
            self._nodes[node_id] = StoreNode(
                id=node_id, kind=kind, metadata=metadata, value=entry.get("value")
            )
        logger.debug("Loaded %d node(s) from %s", len(self._nodes), self.path)
