"""Dynamic resource reconciliation: one algorithm for every family."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ur_sync.object_tree import ObjectTreeManager
from ur_sync.resources.families import (
    COUNT_METADATA,
    FamilyRegistry,
    MemberIdentity,
    ResourceFamily,
)
from ur_sync.resources.snapshots import FamilySnapshots
from ur_sync.state_writer import StateWriter
from ur_sync.store.base import DisplayMetadata
from ur_sync.transforms import resolve_value

logger = logging.getLogger(__name__)


@dataclass
class FamilyResult:
    """Outcome of reconciling one family in one cycle."""

    family: str
    members: list[str]
    structural: bool
    removed: list[str] = field(default_factory=list)


class DynamicResourceReconciler:
    """Creates, refreshes and removes the subtrees of runtime-discovered members."""

    def __init__(
        self,
        writer: StateWriter,
        tree: ObjectTreeManager,
        families: FamilyRegistry | None = None,
        snapshots: FamilySnapshots | None = None,
    ) -> None:
        self.writer = writer
        self.tree = tree
        self.families = families or tree.families
        self.snapshots = snapshots or FamilySnapshots()

    def reset_tracking(self, selected_categories: Iterable[str]) -> list[str]:
        """Forget snapshots of families whose category is not selected."""
        keep = [family.name for family in self.families.governed_by(selected_categories)]
        dropped = self.snapshots.forget_all_except(keep)
        if dropped:
            logger.debug("Dropped membership snapshots for %s", ", ".join(dropped))
        return dropped

    def apply(
        self, payload: Mapping[str, Any], selected_categories: Iterable[str]
    ) -> dict[str, FamilyResult]:
        selected = set(selected_categories)
        results: dict[str, FamilyResult] = {}
        for family in self.families:
            if family.category not in selected:
                self.snapshots.forget(family.name)
                continue
            result = self.reconcile(family, payload)
            if result is not None:
                results[family.name] = result
        return results

    def reconcile(
        self, family: ResourceFamily, payload: Mapping[str, Any]
    ) -> FamilyResult | None:
        """Reconcile one family; None when the response carries no list for it."""
        raw_members = resolve_value(payload, family.list_path)
        if not isinstance(raw_members, list):
            logger.debug(
                "No %s list at %s; leaving existing nodes untouched",
                family.name,
                ".".join(family.list_path),
            )
            return None

        members: dict[str, tuple[MemberIdentity, Mapping[str, Any]]] = {}
        placements: dict[str, str] = {}
        for position, member in enumerate(raw_members):
            if not isinstance(member, Mapping):
                continue
            identity = family.identify(member, position)
            if identity is None:
                continue
            placements[identity.identity] = identity.segment
            # sanitized collisions: the later member wins the segment
            members[identity.segment] = (identity, member)

        structural = self.snapshots.has_changed(family.name, placements)
        if structural:
            logger.info("Detected %d %s", len(placements), family.noun)
            self.writer.write_state(family.count_id, COUNT_METADATA, len(placements))
            for segment, (_, member) in members.items():
                self._create_member(family, segment, member)

        for segment, (_, member) in members.items():
            root = family.member_root(segment)
            for member_field in family.fields:
                self.writer.write_state(
                    f"{root}.{member_field.key}",
                    member_field.metadata,
                    member_field.extract(member),
                )

        self.snapshots.remember(family.name, placements)
        removed = self.tree.reconcile_family(family.name, members.keys())
        return FamilyResult(
            family=family.name,
            members=list(members),
            structural=structural,
            removed=removed,
        )

    def _create_member(
        self, family: ResourceFamily, segment: str, member: Mapping[str, Any]
    ) -> None:
        root = family.member_root(segment)
        for member_field in family.fields:
            self.writer.create_state(f"{root}.{member_field.key}", member_field.metadata)
        if family.controls is None:
            return
        remote_id = member.get(family.controls.id_field)
        if not isinstance(remote_id, str) or not remote_id:
            logger.warning("%s at %s has no id, skipping control buttons", family.name, root)
            return
        for action in family.controls.actions:
            metadata = DisplayMetadata(
                name=action,
                value_type="boolean",
                role="button",
                read=True,
                write=True,
                native={
                    "resource_type": family.controls.resource_type,
                    "resource_id": remote_id,
                    "action": action,
                },
            )
            self.writer.write_state(family.command_id(segment, action), metadata, False)
