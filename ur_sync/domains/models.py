"""Declarative catalog types: categories, selection fragments, static mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ur_sync.store.base import DisplayMetadata
from ur_sync.transforms import identity


@dataclass(frozen=True)
class FieldSpec:
    """One requested field, optionally with a nested selection."""

    name: str
    selection: tuple["FieldSpec", ...] = ()


@dataclass(frozen=True)
class RootSelection:
    """A selection fragment anchored at a top-level response field."""

    root: str
    fields: tuple[FieldSpec, ...] = ()


@dataclass(frozen=True)
class StateMapping:
    """Maps one remote path to one local leaf node."""

    id: str
    path: tuple[str, ...]
    metadata: DisplayMetadata
    transform: Callable[[Any], Any] = identity


@dataclass(frozen=True)
class DomainDefinition:
    """Fetch fragment and static mappings of a queryable category."""

    id: str
    selection: tuple[RootSelection, ...]
    states: tuple[StateMapping, ...] = ()

    @property
    def roots(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(item.root for item in self.selection))


@dataclass(frozen=True)
class DomainNode:
    """A selectable category in the domain tree."""

    id: str
    label: str
    default_selected: bool = False
    description: str | None = None
    children: tuple["DomainNode", ...] = field(default_factory=tuple)


def select(name: str, *children: FieldSpec | str) -> FieldSpec:
    """Build a FieldSpec; bare strings become leaf fields."""
    nested = tuple(
        FieldSpec(child) if isinstance(child, str) else child for child in children
    )
    return FieldSpec(name, nested)


def state(
    node_id: str,
    path: tuple[str, ...] | list[str],
    value_type: str,
    role: str,
    *,
    unit: str | None = None,
    name: str | None = None,
    transform: Callable[[Any], Any] = identity,
) -> StateMapping:
    """Build a read-only StateMapping."""
    metadata = DisplayMetadata(
        name=name or node_id.rsplit(".", 1)[-1],
        value_type=value_type,
        role=role,
        unit=unit,
    )
    return StateMapping(id=node_id, path=tuple(path), metadata=metadata, transform=transform)
