"""Per-family membership snapshots used to detect structural changes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Mapping


@dataclass
class FamilySnapshots:
    """Last observed identity to segment placement per family.

    A family without a snapshot is treated as never seen, so its next
    observation counts as a structural change. A member that keeps its
    identity but moves to another segment is a structural change too.
    """

    _members: dict[str, dict[str, str]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def previous(self, family: str) -> dict[str, str] | None:
        with self._lock:
            placement = self._members.get(family)
            return dict(placement) if placement is not None else None

    def has_changed(self, family: str, current: Mapping[str, str]) -> bool:
        """True on first observation or when identities or their segments differ."""
        previous = self.previous(family)
        return previous is None or previous != dict(current)

    def remember(self, family: str, current: Mapping[str, str]) -> None:
        with self._lock:
            self._members[family] = dict(current)

    def forget(self, family: str) -> bool:
        with self._lock:
            return self._members.pop(family, None) is not None

    def forget_all_except(self, families: Iterable[str]) -> list[str]:
        keep = set(families)
        with self._lock:
            dropped = [name for name in self._members if name not in keep]
            for name in dropped:
                del self._members[name]
        return dropped

    def known_families(self) -> list[str]:
        with self._lock:
            return sorted(self._members)
