"""Runtime-discovered resource families and their per-member schemas.

A family describes where its member list lives in the response, how a
member is identified, which leaf nodes each member gets and how those
leaves are filled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from ur_sync.store.base import DisplayMetadata, is_same_or_descendant
from ur_sync.transforms import (
    big_int_to_number,
    bytes_to_gigabytes,
    calculate_usage_percent,
    kilobytes_to_gigabytes,
    sanitize_resource_name,
    share_usage_percent,
    to_boolean_or_null,
    to_number_or_null,
    to_string_or_null,
)

COUNT_SEGMENT = "count"
COMMANDS_SEGMENT = "commands"

COUNT_METADATA = DisplayMetadata(name="count", value_type="number", role="value")

Extractor = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class MemberField:
    """One leaf node created for every member of a family."""

    key: str
    metadata: DisplayMetadata
    extract: Extractor


@dataclass(frozen=True)
class MemberIdentity:
    """How a member is compared across polls and where it lives locally.

    ``identity`` feeds the membership snapshot, ``segment`` is the sanitized
    id segment of the member's node.
    """

    identity: str
    segment: str


@dataclass(frozen=True)
class ControlSpec:
    """Command buttons offered for each member of a family."""

    resource_type: str
    actions: tuple[str, ...]
    id_field: str = "id"


@dataclass(frozen=True)
class ResourceFamily:
    name: str
    category: str
    list_path: tuple[str, ...]
    prefix: str
    identify: Callable[[Mapping[str, Any], int], MemberIdentity | None]
    fields: tuple[MemberField, ...]
    label_format: str | None = None
    noun: str = "members"
    controls: ControlSpec | None = None

    @property
    def count_id(self) -> str:
        return f"{self.prefix}.{COUNT_SEGMENT}"

    def member_root(self, segment: str) -> str:
        return f"{self.prefix}.{segment}"

    def member_label(self, segment: str) -> str:
        if self.label_format:
            return self.label_format.format(segment)
        return segment

    def command_id(self, segment: str, action: str) -> str:
        return f"{self.prefix}.{segment}.{COMMANDS_SEGMENT}.{action}"


@dataclass(frozen=True)
class FamilyLocation:
    """Where a node id sits relative to a family prefix."""

    family: ResourceFamily
    resource_id: str | None
    is_member_root: bool = False

    @property
    def is_count(self) -> bool:
        return self.resource_id is None


def _leaf(
    key: str,
    value_type: str,
    role: str,
    extract: Extractor,
    unit: str | None = None,
) -> MemberField:
    return MemberField(
        key=key,
        metadata=DisplayMetadata(name=key, value_type=value_type, role=role, unit=unit),
        extract=extract,
    )


def _text(key: str, role: str = "text", source: str | None = None) -> MemberField:
    remote = source or key
    return _leaf(key, "string", role, lambda member: to_string_or_null(member.get(remote)))


def _number(key: str, role: str, unit: str | None = None, source: str | None = None) -> MemberField:
    remote = source or key
    return _leaf(key, "number", role, lambda member: to_number_or_null(member.get(remote)), unit)


def _flag(key: str) -> MemberField:
    return _leaf(key, "boolean", "indicator", lambda member: to_boolean_or_null(member.get(key)))


def _kb_size(key: str, source: str) -> MemberField:
    return _leaf(
        key,
        "number",
        "value",
        lambda member: kilobytes_to_gigabytes(member.get(source)),
        "GB",
    )


def _counter(key: str) -> MemberField:
    return _leaf(key, "number", "value", lambda member: big_int_to_number(member.get(key)))


def member_segment(name: str | None) -> str:
    """Sanitized id segment of a member; never the family's ``count`` leaf."""
    segment = sanitize_resource_name(name)
    if segment == COUNT_SEGMENT:
        return f"{segment}_"
    return segment


def positional_identity(member: Mapping[str, Any], position: int) -> MemberIdentity:
    return MemberIdentity(identity=str(position), segment=str(position))


def indexed_identity(member: Mapping[str, Any], position: int) -> MemberIdentity:
    """Use the member's ``idx`` when present, else its position in the list."""
    raw_index = member.get("idx")
    index = to_string_or_null(raw_index) if raw_index is not None else None
    if index is None:
        index = str(position)
    return MemberIdentity(identity=index, segment=member_segment(index))


def container_name(member: Mapping[str, Any]) -> str | None:
    names = member.get("names")
    if not isinstance(names, list) or not names or not isinstance(names[0], str):
        return None
    first = names[0]
    name = first[1:] if first.startswith("/") else first
    return name or None


def container_identity(member: Mapping[str, Any], position: int) -> MemberIdentity | None:
    name = container_name(member)
    if name is None:
        return None
    return MemberIdentity(identity=name, segment=member_segment(name))


def share_identity(member: Mapping[str, Any], position: int) -> MemberIdentity | None:
    name = member.get("name")
    if not isinstance(name, str) or not name:
        return None
    return MemberIdentity(identity=name, segment=member_segment(name))


def vm_identity(member: Mapping[str, Any], position: int) -> MemberIdentity | None:
    """VMs compare by uuid; the node is named after the VM."""
    name = member.get("name")
    uuid = member.get("uuid")
    if not isinstance(name, str) or not name or not isinstance(uuid, str) or not uuid:
        return None
    return MemberIdentity(identity=uuid, segment=member_segment(name))


_CORE_FIELDS = tuple(
    _number(key, "value.percent", "%")
    for key in (
        "percentTotal",
        "percentUser",
        "percentSystem",
        "percentNice",
        "percentIdle",
        "percentIrq",
    )
)

_DISK_FIELDS = (
    _text("name"),
    _text("device"),
    _text("status", role="indicator.status"),
    _number("temp", "value.temperature", "°C"),
    _text("type"),
    _kb_size("sizeGb", "size"),
    _kb_size("fsSizeGb", "fsSize"),
    _kb_size("fsUsedGb", "fsUsed"),
    _kb_size("fsFreeGb", "fsFree"),
    _leaf(
        "fsUsedPercent",
        "number",
        "value.percent",
        lambda member: calculate_usage_percent(member.get("fsUsed"), member.get("fsSize")),
        "%",
    ),
    _text("fsType"),
    _flag("isSpinning"),
    _counter("numReads"),
    _counter("numWrites"),
    _counter("numErrors"),
    _number("warning", "value.temperature", "°C"),
    _number("critical", "value.temperature", "°C"),
    _flag("rotational"),
    _text("transport"),
)

_CONTAINER_FIELDS = (
    _leaf("name", "string", "text", container_name),
    _text("image"),
    _text("state", role="indicator.status"),
    _text("status"),
    _flag("autoStart"),
    _leaf(
        "sizeGb",
        "number",
        "value",
        lambda member: bytes_to_gigabytes(member.get("sizeRootFs")),
        "GB",
    ),
)

_SHARE_FIELDS = (
    _text("name"),
    _kb_size("freeGb", "free"),
    _kb_size("usedGb", "used"),
    _kb_size("sizeGb", "size"),
    _leaf(
        "usedPercent",
        "number",
        "value.percent",
        lambda member: share_usage_percent(member.get("used"), member.get("free")),
        "%",
    ),
    _text("comment"),
    _text("allocator"),
    _text("cow"),
    _text("color"),
)

_VM_FIELDS = (
    _text("name"),
    _text("state", role="indicator.status"),
    _text("uuid"),
)

DOCKER_ACTIONS = ("start", "stop")
VM_ACTIONS = ("start", "stop", "pause", "resume", "forceStop", "reboot", "reset")


def _disk_family(name: str, list_name: str, label: str) -> ResourceFamily:
    return ResourceFamily(
        name=name,
        category=f"array.{list_name}",
        list_path=("array", list_name),
        prefix=f"array.{list_name}",
        identify=indexed_identity,
        fields=_DISK_FIELDS,
        label_format=f"{label} {{}}",
        noun=f"{name} disks",
    )


DEFAULT_FAMILIES: tuple[ResourceFamily, ...] = (
    ResourceFamily(
        name="cpu",
        category="metrics.cpu",
        list_path=("metrics", "cpu", "cpus"),
        prefix="metrics.cpu.cores",
        identify=positional_identity,
        fields=_CORE_FIELDS,
        label_format="Core {}",
        noun="CPU cores",
    ),
    _disk_family("disk", "disks", "Disk"),
    _disk_family("parity", "parities", "Parity"),
    _disk_family("cache", "caches", "Cache"),
    ResourceFamily(
        name="container",
        category="docker.containers",
        list_path=("docker", "containers"),
        prefix="docker.containers",
        identify=container_identity,
        fields=_CONTAINER_FIELDS,
        noun="Docker containers",
        controls=ControlSpec(resource_type="docker", actions=DOCKER_ACTIONS),
    ),
    ResourceFamily(
        name="share",
        category="shares.list",
        list_path=("shares",),
        prefix="shares",
        identify=share_identity,
        fields=_SHARE_FIELDS,
        noun="shares",
    ),
    ResourceFamily(
        name="vm",
        category="vms.list",
        list_path=("vms", "domains"),
        prefix="vms",
        identify=vm_identity,
        fields=_VM_FIELDS,
        noun="VMs",
        controls=ControlSpec(resource_type="vm", actions=VM_ACTIONS),
    ),
)


@dataclass
class FamilyRegistry:
    """Lookup helpers over the known resource families."""

    families: tuple[ResourceFamily, ...] = DEFAULT_FAMILIES
    _by_name: dict[str, ResourceFamily] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self._by_name = {family.name: family for family in self.families}

    def __iter__(self):
        return iter(self.families)

    def get(self, name: str) -> ResourceFamily | None:
        return self._by_name.get(name)

    def governed_by(self, categories: Iterable[str]) -> list[ResourceFamily]:
        wanted = set(categories)
        return [family for family in self.families if family.category in wanted]

    def locate(self, node_id: str) -> FamilyLocation | None:
        """Return the family and member a node id belongs to, if any.

        The family prefix itself is not part of any member; ``<prefix>.count``
        belongs to the family without a member.
        """
        for family in self.families:
            if node_id == family.prefix or not is_same_or_descendant(node_id, family.prefix):
                continue
            rest = node_id[len(family.prefix) + 1 :]
            if rest == COUNT_SEGMENT:
                return FamilyLocation(family=family, resource_id=None)
            segment, _, tail = rest.partition(".")
            return FamilyLocation(
                family=family,
                resource_id=segment,
                is_member_root=not tail,
            )
        return None
