"""Tests for the in-memory and JSON-backed object stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ur_common.errors import StoreError
from ur_sync.store import DisplayMetadata, JsonFileObjectStore, MemoryObjectStore, NodeKind
from ur_sync.store.base import id_prefixes, is_same_or_descendant


pytestmark = pytest.mark.unit_sync

META = DisplayMetadata(name="state", value_type="string", role="text")


def test_id_helpers() -> None:
    assert id_prefixes("a.b.c") == ["a", "a.b", "a.b.c"]
    assert is_same_or_descendant("a.b", "a")
    assert is_same_or_descendant("a", "a")
    assert not is_same_or_descendant("ab", "a")


def test_create_if_absent_keeps_existing_value() -> None:
    store = MemoryObjectStore()
    assert store.create_node_if_absent("x.y", NodeKind.STATE, META)
    store.write_value("x.y", "kept")
    assert not store.create_node_if_absent("x.y", NodeKind.STATE, META.with_name("other"))
    assert store.get_value("x.y") == "kept"
    assert store.get_node("x.y").metadata.name == "state"


def test_writes_to_missing_nodes_raise() -> None:
    store = MemoryObjectStore()
    with pytest.raises(StoreError):
        store.write_value("missing", 1)
    with pytest.raises(StoreError):
        store.set_node_metadata("missing", META)


def test_upsert_creates_then_updates() -> None:
    store = MemoryObjectStore()
    store.upsert("a.b", NodeKind.STATE, META, 1)
    store.upsert("a.b", NodeKind.STATE, META.with_name("renamed"), 2)
    node = store.get_node("a.b")
    assert node.value == 2
    assert node.metadata.name == "renamed"
    assert len(store) == 1


def test_delete_subtree_respects_segment_boundaries() -> None:
    store = MemoryObjectStore()
    for node_id in (
        "docker.containers.web",
        "docker.containers.web.state",
        "docker.containers.webapp.state",
    ):
        store.upsert(node_id, NodeKind.STATE, META, None)

    store.delete_subtree("docker.containers.web")

    assert set(store.list_nodes()) == {"docker.containers.webapp.state"}


def test_list_nodes_returns_copies() -> None:
    store = MemoryObjectStore()
    store.upsert("a", NodeKind.STATE, META, 1)
    store.list_nodes()["a"].value = 99
    assert store.get_value("a") == 1


def test_json_store_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "state" / "store.json"
    store = JsonFileObjectStore(path)
    store.create_node_if_absent("array", NodeKind.CHANNEL, DisplayMetadata(name="Array"))
    store.upsert(
        "docker.containers.web.commands.start",
        NodeKind.STATE,
        DisplayMetadata(
            name="start",
            value_type="boolean",
            role="button",
            write=True,
            native={"resource_type": "docker", "resource_id": "c1", "action": "start"},
        ),
        False,
    )
    store.flush()

    document = json.loads(path.read_text())
    assert document["version"] == 1
    assert [entry["id"] for entry in document["nodes"]] == [
        "array",
        "docker.containers.web.commands.start",
    ]

    reloaded = JsonFileObjectStore(path)
    button = reloaded.get_node("docker.containers.web.commands.start")
    assert button.kind is NodeKind.STATE
    assert button.value is False
    assert button.metadata.write is True
    assert button.metadata.native["resource_id"] == "c1"
    assert reloaded.get_node("array").kind is NodeKind.CHANNEL


def test_json_store_skips_malformed_entries(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text(
        json.dumps(
            {
                "version": 1,
                "nodes": [
                    {"id": "ok", "kind": "state", "metadata": {}, "value": 1},
                    {"kind": "state"},
                    {"id": "bad-kind", "kind": "folder"},
                    "junk",
                    ["id", "list"],
                    {"id": "odd-meta", "kind": "state", "metadata": "x", "value": 2},
                ],
            }
        )
    )
    store = JsonFileObjectStore(path)
    assert set(store.list_nodes()) == {"ok", "odd-meta"}
    assert store.get_node("odd-meta").metadata.name is None


def test_json_store_rejects_invalid_document(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json")
    with pytest.raises(StoreError):
        JsonFileObjectStore(path)
