from __future__ import annotations

from typing import Any

import pytest

from ur_common.errors import StoreError
from ur_sync.store import DisplayMetadata, MemoryObjectStore, NodeKind


class RecordingStore(MemoryObjectStore):
    """Memory store that logs every mutating call and can fail deletions."""

    def __init__(self) -> None:
        super().__init__()
        self.ops: list[tuple[str, str]] = []
        self.failing_deletes: set[str] = set()

    def create_node_if_absent(
        self, node_id: str, kind: NodeKind, metadata: DisplayMetadata
    ) -> bool:
        created = super().create_node_if_absent(node_id, kind, metadata)
        if created:
            self.ops.append(("create", node_id))
        return created

    def upsert(
        self, node_id: str, kind: NodeKind, metadata: DisplayMetadata, value: Any
    ) -> None:
        self.ops.append(("write", node_id))
        super().upsert(node_id, kind, metadata, value)

    def delete_subtree(self, node_id: str) -> None:
        if node_id in self.failing_deletes:
            raise StoreError(f"cannot delete {node_id}", context={"node_id": node_id})
        self.ops.append(("delete", node_id))
        super().delete_subtree(node_id)

    def index_of(self, op: str, node_id: str) -> int:
        return self.ops.index((op, node_id))


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


def container(name: str, remote_id: str | None, state: str = "RUNNING") -> dict[str, Any]:
    item: dict[str, Any] = {
        "names": [f"/{name}"],
        "image": f"{name}:latest",
        "state": state,
        "status": "Up 2 hours",
        "autoStart": True,
        "sizeRootFs": 2 * 1024**3,
    }
    if remote_id is not None:
        item["id"] = remote_id
    return item


@pytest.fixture
def containers_payload():
    def _build(*members: dict[str, Any]) -> dict[str, Any]:
        return {"docker": {"containers": list(members)}}

    return _build


@pytest.fixture
def make_container():
    return container


@pytest.fixture
def default_payload() -> dict[str, Any]:
    """A response to the default category selection."""
    return {
        "info": {"time": "2024-05-01T10:00:00Z"},
        "server": {
            "name": "Tower",
            "status": "online",
            "lanip": "192.168.1.10",
            "wanip": None,
            "localurl": "http://tower.local",
            "remoteurl": None,
        },
        "metrics": {
            "cpu": {
                "percentTotal": 12.5,
                "cpus": [
                    {"percentTotal": 10, "percentUser": 6, "percentSystem": 4},
                    {"percentTotal": 15, "percentUser": 10, "percentSystem": 5},
                ],
            },
            "memory": {
                "percentTotal": 50,
                "total": 16 * 1024**3,
                "used": 8 * 1024**3,
                "free": 8 * 1024**3,
                "available": "8589934592",
                "active": None,
                "buffcache": 0,
                "swapTotal": 0,
                "swapUsed": 0,
                "swapFree": 0,
                "percentSwapTotal": 0,
            },
        },
        "array": {
            "state": "STARTED",
            "capacity": {
                "kilobytes": {"total": "10485760", "used": "2621440", "free": "7864320"}
            },
            "disks": [
                {
                    "idx": 1,
                    "name": "disk1",
                    "device": "sdb",
                    "status": "DISK_OK",
                    "temp": 34,
                    "size": 4 * 1024**2,
                    "fsSize": 1000,
                    "fsUsed": 250,
                    "fsFree": 750,
                    "isSpinning": True,
                    "numReads": 2**60,
                    "numWrites": 10,
                    "numErrors": 0,
                }
            ],
        },
    }
