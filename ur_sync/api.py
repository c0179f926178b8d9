"""Public API surface for ur_sync."""

from ur_sync.domains.catalog import DomainCatalog, default_catalog
from ur_sync.domains.models import (
    DomainDefinition,
    DomainNode,
    FieldSpec,
    RootSelection,
    StateMapping,
)
from ur_sync.domains.selection import DomainSelection, resolve_selection
from ur_sync.engine import CycleReport, SyncEngine
from ur_sync.object_tree import ObjectTreeManager, TrackedObject
from ur_sync.polling import PollingDriver, QueryTransport
from ur_sync.query_builder import FieldTree, QueryComposer, build_query
from ur_sync.resources.families import (
    DEFAULT_FAMILIES,
    FamilyRegistry,
    ResourceFamily,
)
from ur_sync.resources.reconciler import DynamicResourceReconciler, FamilyResult
from ur_sync.resources.snapshots import FamilySnapshots
from ur_sync.state_writer import StateWriter
from ur_sync.store import (
    DisplayMetadata,
    JsonFileObjectStore,
    MemoryObjectStore,
    NodeKind,
    ObjectStore,
    StoreNode,
)

__all__ = [
    "CycleReport",
    "DEFAULT_FAMILIES",
    "DisplayMetadata",
    "DomainCatalog",
    "DomainDefinition",
    "DomainNode",
    "DomainSelection",
    "DynamicResourceReconciler",
    "FamilyRegistry",
    "FamilyResult",
    "FamilySnapshots",
    "FieldSpec",
    "FieldTree",
    "JsonFileObjectStore",
    "MemoryObjectStore",
    "NodeKind",
    "ObjectStore",
    "ObjectTreeManager",
    "PollingDriver",
    "QueryComposer",
    "QueryTransport",
    "ResourceFamily",
    "RootSelection",
    "StateMapping",
    "StateWriter",
    "StoreNode",
    "SyncEngine",
    "TrackedObject",
    "build_query",
    "default_catalog",
    "resolve_selection",
]
