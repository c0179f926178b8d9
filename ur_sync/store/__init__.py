"""Object store collaborators."""

from ur_sync.store.base import (
    DisplayMetadata,
    NodeKind,
    ObjectStore,
    StoreNode,
    id_prefixes,
    is_same_or_descendant,
)
from ur_sync.store.json_store import JsonFileObjectStore
from ur_sync.store.memory import MemoryObjectStore

__all__ = [
    "DisplayMetadata",
    "JsonFileObjectStore",
    "MemoryObjectStore",
    "NodeKind",
    "ObjectStore",
    "StoreNode",
    "id_prefixes",
    "is_same_or_descendant",
]
