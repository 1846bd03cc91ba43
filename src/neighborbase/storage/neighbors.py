"""
Neighbor Store.

Immutable mapping from object identifier to its ordered neighbor set, as
loaded from an external neighbor file.

Absent and empty are different answers:
- get() returns None for an object that never appeared as a subject
- get() returns () for a subject whose neighbors all failed to resolve
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import polars as pl

from neighborbase.storage.labels import ObjectId

# Ordered, duplicates allowed, file order preserved
NeighborSet = Tuple[ObjectId, ...]


class NeighborStore(Mapping):
    """
    Read-only ObjectId -> NeighborSet lookup.

    Built once by NeighborStoreBuilder.freeze(); no method mutates it.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Dict[ObjectId, NeighborSet]] = None):
        self._entries = MappingProxyType(
            {oid: tuple(neigh) for oid, neigh in (entries or {}).items()}
        )

    def get(self, object_id: ObjectId, default=None) -> Optional[NeighborSet]:
        """Return the neighbor set of an object, or ``default`` if absent."""
        return self._entries.get(object_id, default)

    def __getitem__(self, object_id: ObjectId) -> NeighborSet:
        return self._entries[object_id]

    def __iter__(self) -> Iterator[ObjectId]:
        return iter(self._entries)

    def __len__(self) -> int:
        """Total number of entries (subjects with a resolved line)."""
        return len(self._entries)

    def __repr__(self) -> str:
        return f"NeighborStore(entries={len(self)})"

    @property
    def pair_count(self) -> int:
        """Total number of (subject, neighbor) pairs."""
        return sum(len(neigh) for neigh in self._entries.values())

    def to_dataframe(self) -> pl.DataFrame:
        """
        Export as one row per (subject, neighbor) pair.

        Columns: object_id, position, neighbor_id. Subjects with an empty
        neighbor set contribute no rows.
        """
        subjects: list = []
        positions: list[int] = []
        neighbors: list = []
        for oid, neigh in self._entries.items():
            for pos, nid in enumerate(neigh):
                subjects.append(oid)
                positions.append(pos)
                neighbors.append(nid)

        return pl.DataFrame({
            "object_id": subjects,
            "position": pl.Series(positions, dtype=pl.UInt32),
            "neighbor_id": neighbors,
        })


class NeighborStoreBuilder:
    """
    Mutable accumulator used while a neighbor file is being read.

    A subject seen on several lines accumulates neighbors in file order.
    """

    def __init__(self):
        self._entries: Dict[ObjectId, List[ObjectId]] = {}

    def append(self, subject: ObjectId, neighbors: Iterable[ObjectId]) -> None:
        """Create the subject's entry if needed and append neighbors to it."""
        self._entries.setdefault(subject, []).extend(neighbors)

    def __len__(self) -> int:
        return len(self._entries)

    def freeze(self) -> NeighborStore:
        return NeighborStore(self._entries)
