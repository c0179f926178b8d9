"""The Unraid category tree and the fetch definitions of its leaves."""

from __future__ import annotations

from typing import Any

from ur_sync.domains.models import (
    DomainDefinition,
    DomainNode,
    FieldSpec,
    RootSelection,
    select,
    state,
)
from ur_sync.transforms import (
    bytes_to_gigabytes,
    calculate_usage_percent,
    kilobytes_to_gigabytes,
    resolve_value,
    to_number_or_null,
)

DOMAIN_TREE: tuple[DomainNode, ...] = (
    DomainNode(
        id="info",
        label="System info",
        children=(
            DomainNode(id="info.time", label="Time", default_selected=True),
            DomainNode(id="info.os", label="Operating system"),
        ),
    ),
    DomainNode(
        id="server",
        label="Server",
        children=(
            DomainNode(id="server.status", label="Server status", default_selected=True),
        ),
    ),
    DomainNode(
        id="metrics",
        label="Metrics",
        children=(
            DomainNode(id="metrics.cpu", label="CPU", default_selected=True),
            DomainNode(id="metrics.memory", label="Memory", default_selected=True),
        ),
    ),
    DomainNode(
        id="array",
        label="Array",
        children=(
            DomainNode(id="array.status", label="Array status", default_selected=True),
            DomainNode(id="array.disks", label="Data disks", default_selected=True),
            DomainNode(id="array.parities", label="Parity disks"),
            DomainNode(id="array.caches", label="Cache disks"),
        ),
    ),
    DomainNode(
        id="docker",
        label="Docker",
        children=(DomainNode(id="docker.containers", label="Containers"),),
    ),
    DomainNode(
        id="shares",
        label="Shares",
        children=(DomainNode(id="shares.list", label="Share list"),),
    ),
    DomainNode(
        id="vms",
        label="Virtual machines",
        children=(DomainNode(id="vms.list", label="VM list"),),
    ),
)

_DISK_FIELDS: tuple[str, ...] = (
    "name",
    "device",
    "status",
    "temp",
    "type",
    "size",
    "fsType",
    "fsSize",
    "fsUsed",
    "fsFree",
    "isSpinning",
    "numReads",
    "numWrites",
    "numErrors",
    "warning",
    "critical",
    "idx",
    "rotational",
    "transport",
)


def _array_used_percent(capacity: Any) -> float | None:
    kilobytes = resolve_value(capacity, ("kilobytes",))
    return calculate_usage_percent(
        resolve_value(kilobytes, ("used",)),
        resolve_value(kilobytes, ("total",)),
    )


def _memory_gb(node_id: str, remote_field: str):
    return state(
        node_id,
        ("metrics", "memory", remote_field),
        "number",
        "value",
        unit="GB",
        transform=bytes_to_gigabytes,
    )


def _disk_list(list_name: str) -> tuple[RootSelection, ...]:
    return (RootSelection("array", (select(list_name, *_DISK_FIELDS),)),)


DOMAIN_DEFINITIONS: tuple[DomainDefinition, ...] = (
    DomainDefinition(
        id="info.time",
        selection=(RootSelection("info", (FieldSpec("time"),)),),
        states=(state("info.time", ("info", "time"), "string", "value.datetime"),),
    ),
    DomainDefinition(
        id="info.os",
        selection=(
            RootSelection("info", (select("os", "distro", "release", "kernel"),)),
        ),
        states=(
            state("info.os.distro", ("info", "os", "distro"), "string", "text"),
            state("info.os.release", ("info", "os", "release"), "string", "info.version"),
            state("info.os.kernel", ("info", "os", "kernel"), "string", "info.version"),
        ),
    ),
    DomainDefinition(
        id="server.status",
        selection=(
            RootSelection(
                "server",
                tuple(
                    FieldSpec(name)
                    for name in ("name", "status", "lanip", "wanip", "localurl", "remoteurl")
                ),
            ),
        ),
        states=(
            state("server.name", ("server", "name"), "string", "text"),
            state("server.status", ("server", "status"), "string", "indicator.status"),
            state("server.lanip", ("server", "lanip"), "string", "info.ip"),
            state("server.wanip", ("server", "wanip"), "string", "info.ip"),
            state("server.localurl", ("server", "localurl"), "string", "url"),
            state("server.remoteurl", ("server", "remoteurl"), "string", "url"),
        ),
    ),
    DomainDefinition(
        id="metrics.cpu",
        selection=(
            RootSelection(
                "metrics",
                (
                    select(
                        "cpu",
                        "percentTotal",
                        select(
                            "cpus",
                            "percentTotal",
                            "percentUser",
                            "percentSystem",
                            "percentNice",
                            "percentIdle",
                            "percentIrq",
                        ),
                    ),
                ),
            ),
        ),
        # per-core nodes come from the cpu resource family
        states=(
            state(
                "metrics.cpu.percentTotal",
                ("metrics", "cpu", "percentTotal"),
                "number",
                "value.percent",
                unit="%",
                transform=to_number_or_null,
            ),
        ),
    ),
    DomainDefinition(
        id="metrics.memory",
        selection=(
            RootSelection(
                "metrics",
                (
                    select(
                        "memory",
                        "percentTotal",
                        "total",
                        "used",
                        "free",
                        "available",
                        "active",
                        "buffcache",
                        "swapTotal",
                        "swapUsed",
                        "swapFree",
                        "percentSwapTotal",
                    ),
                ),
            ),
        ),
        states=(
            state(
                "metrics.memory.percentTotal",
                ("metrics", "memory", "percentTotal"),
                "number",
                "value.percent",
                unit="%",
                transform=to_number_or_null,
            ),
            _memory_gb("metrics.memory.totalGb", "total"),
            _memory_gb("metrics.memory.usedGb", "used"),
            _memory_gb("metrics.memory.freeGb", "free"),
            _memory_gb("metrics.memory.availableGb", "available"),
            _memory_gb("metrics.memory.activeGb", "active"),
            _memory_gb("metrics.memory.buffcacheGb", "buffcache"),
            _memory_gb("metrics.memory.swap.totalGb", "swapTotal"),
            _memory_gb("metrics.memory.swap.usedGb", "swapUsed"),
            _memory_gb("metrics.memory.swap.freeGb", "swapFree"),
            state(
                "metrics.memory.swap.percentTotal",
                ("metrics", "memory", "percentSwapTotal"),
                "number",
                "value.percent",
                unit="%",
                transform=to_number_or_null,
            ),
        ),
    ),
    DomainDefinition(
        id="array.status",
        selection=(
            RootSelection(
                "array",
                (
                    FieldSpec("state"),
                    select("capacity", select("kilobytes", "total", "used", "free")),
                ),
            ),
        ),
        states=(
            state("array.state", ("array", "state"), "string", "indicator.status"),
            state(
                "array.capacity.totalGb",
                ("array", "capacity", "kilobytes", "total"),
                "number",
                "value",
                unit="GB",
                transform=kilobytes_to_gigabytes,
            ),
            state(
                "array.capacity.usedGb",
                ("array", "capacity", "kilobytes", "used"),
                "number",
                "value",
                unit="GB",
                transform=kilobytes_to_gigabytes,
            ),
            state(
                "array.capacity.freeGb",
                ("array", "capacity", "kilobytes", "free"),
                "number",
                "value",
                unit="GB",
                transform=kilobytes_to_gigabytes,
            ),
            state(
                "array.capacity.percentUsed",
                ("array", "capacity"),
                "number",
                "value.percent",
                unit="%",
                transform=_array_used_percent,
            ),
        ),
    ),
    DomainDefinition(id="array.disks", selection=_disk_list("disks")),
    DomainDefinition(id="array.parities", selection=_disk_list("parities")),
    DomainDefinition(id="array.caches", selection=_disk_list("caches")),
    DomainDefinition(
        id="docker.containers",
        selection=(
            RootSelection(
                "docker",
                (
                    select(
                        "containers",
                        "id",
                        "names",
                        "image",
                        "state",
                        "status",
                        "autoStart",
                        "sizeRootFs",
                    ),
                ),
            ),
        ),
    ),
    DomainDefinition(
        id="shares.list",
        selection=(
            RootSelection(
                "shares",
                tuple(
                    FieldSpec(name)
                    for name in (
                        "name",
                        "free",
                        "used",
                        "size",
                        "comment",
                        "allocator",
                        "cow",
                        "color",
                    )
                ),
            ),
        ),
    ),
    DomainDefinition(
        id="vms.list",
        selection=(
            RootSelection("vms", (select("domains", "id", "name", "state", "uuid"),)),
        ),
    ),
)
