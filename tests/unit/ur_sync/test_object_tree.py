"""Tests for object bookkeeping, pruning, retries and label repair."""

from __future__ import annotations

import pytest

from ur_sync.engine import SyncEngine
from ur_sync.store import DisplayMetadata, NodeKind


pytestmark = pytest.mark.unit_sync

STATE_META = DisplayMetadata(name="x", value_type="string", role="text")


def _engine(store, selection) -> SyncEngine:
    engine = SyncEngine(store, selection=selection)
    engine.initialize()
    engine.prune()
    engine.initialize_static_states()
    return engine


def test_prune_drops_docker_but_keeps_array(
    store, containers_payload, make_container
) -> None:
    first = _engine(store, ["array.status", "docker.containers"])
    payload = containers_payload(make_container("alpha", "c1"))
    payload["array"] = {
        "state": "STARTED",
        "capacity": {"kilobytes": {"total": 100, "used": 50, "free": 50}},
    }
    first.apply_payload(payload)
    store.upsert("legacy.thing", NodeKind.STATE, STATE_META, "old")

    second = SyncEngine(store, selection=["array.status"])
    second.initialize()
    removed = second.prune()

    remaining = set(store.list_nodes())
    assert "docker" in removed
    assert "legacy.thing" in removed
    assert not any(node_id.startswith("docker") for node_id in remaining)
    assert {"array", "array.state", "array.capacity", "array.capacity.percentUsed"} <= remaining
    assert store.get_value("array.capacity.percentUsed") == 50.0
    assert not any(node_id.startswith("docker") for node_id in second.tree.tracked_ids())


def test_prune_between_array_categories(store, default_payload) -> None:
    first = _engine(store, None)
    first.apply_payload(default_payload)
    assert store.get_value("array.disks.1.name") == "disk1"

    disks_only = SyncEngine(store, selection=["array.disks"])
    disks_only.initialize()
    disks_only.prune()

    remaining = set(store.list_nodes())
    assert "array.disks.1.name" in remaining
    assert "array" in remaining
    assert not any(node_id.startswith("array.capacity") for node_id in remaining)
    assert "array.state" not in remaining
    assert not any(node_id.startswith(("metrics", "server", "info")) for node_id in remaining)

    status_only = SyncEngine(store, selection=["array.status"])
    status_only.initialize()
    status_only.initialize_static_states()
    status_only.prune()

    remaining = set(store.list_nodes())
    assert not any(node_id.startswith("array.disks") for node_id in remaining)
    assert "array.capacity.totalGb" in remaining


def test_failed_delete_is_retried_next_cycle(
    store, containers_payload, make_container
) -> None:
    engine = _engine(store, ["docker.containers"])
    engine.apply_payload(
        containers_payload(make_container("alpha", "c1"), make_container("beta", "c2"))
    )

    store.failing_deletes.add("docker.containers.alpha")
    report = engine.apply_payload(containers_payload(make_container("beta", "c2")))
    assert report.families["container"].removed == []
    assert store.get_value("docker.containers.alpha.state") == "RUNNING"
    assert engine.tree.get("docker.containers.alpha.state") is not None

    store.failing_deletes.clear()
    report = engine.apply_payload(containers_payload(make_container("beta", "c2")))
    assert not report.families["container"].structural
    assert report.families["container"].removed == ["alpha"]
    assert store.get_node("docker.containers.alpha") is None
    assert engine.tree.get("docker.containers.alpha.state") is None


def test_initialize_tags_existing_nodes_and_repairs_labels(store) -> None:
    store.upsert("array", NodeKind.CHANNEL, DisplayMetadata(name="custom"), None)
    store.upsert("array.disks", NodeKind.CHANNEL, DisplayMetadata(name="Data disks"), None)
    store.upsert("array.disks.1", NodeKind.CHANNEL, DisplayMetadata(name="disk one"), None)
    store.upsert("array.disks.1.temp", NodeKind.STATE, STATE_META, 30)
    store.upsert("docker.containers.plex", NodeKind.CHANNEL, DisplayMetadata(name="Plex!"), None)
    store.upsert("metrics.cpu.cores.3", NodeKind.CHANNEL, DisplayMetadata(name="Core 3"), None)

    engine = SyncEngine(store)
    engine.initialize()

    assert store.get_node("array.disks.1").metadata.name == "Disk 1"
    assert store.get_node("docker.containers.plex").metadata.name == "plex"
    assert store.get_node("metrics.cpu.cores.3").metadata.name == "Core 3"
    # static channels keep whatever label they have
    assert store.get_node("array").metadata.name == "custom"

    record = engine.tree.get("array.disks.1.temp")
    assert record.family == "disk"
    assert record.resource_id == "1"
    assert not record.is_static
    assert engine.tree.get("array").is_static


def test_statistics_cover_every_store_node(store, default_payload) -> None:
    engine = _engine(store, None)
    engine.apply_payload(default_payload)

    stats = engine.statistics()
    assert stats["total"] == len(store)
    assert stats["static"] + stats["dynamic"] == stats["total"]
    assert stats["by_family"]["cpu"] > 0
    assert stats["by_family"]["disk"] > 0
    assert "container" not in stats["by_family"]


def test_reconcile_family_rejects_unknown_family(store) -> None:
    engine = SyncEngine(store)
    with pytest.raises(ValueError):
        engine.tree.reconcile_family("printers", [])


def test_prune_array_disks_keeps_docker(store, default_payload, containers_payload, make_container) -> None:
    engine = _engine(store, ["array.disks", "docker.containers"])
    payload = containers_payload(make_container("alpha", "c1"))
    payload["array"] = default_payload["array"]
    engine.apply_payload(payload)
    assert store.get_value("array.disks.1.name") == "disk1"

    engine.set_selection(["docker.containers"])
    engine.prune()

    remaining = set(store.list_nodes())
    assert not any(node_id.startswith("array") for node_id in remaining)
    assert "docker.containers.alpha.state" in remaining
    assert engine.tree.tracked_ids() == remaining
