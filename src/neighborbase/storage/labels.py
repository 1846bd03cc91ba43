"""
Reverse Label Index.

Maps every label known for an object (plus its optional external id) to the
object's internal identifier. Built in one full pass over the object source
and read-only afterwards.

Key design decisions:
- Explicit index object, scoped to one load (no shared/global reverse map)
- Last-write-wins on label collisions, with a diagnostic warning
- Label-less objects are counted but never indexed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Hashable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import polars as pl

logger = logging.getLogger(__name__)


# Opaque object identifier, owned by the object source
ObjectId = Hashable


# =============================================================================
# Object Records
# =============================================================================

@dataclass(frozen=True, slots=True)
class ObjectRecord:
    """
    One object as seen by the label index.

    Attributes:
        object_id: Internal identifier of the object
        labels: All label strings attached to the object
        external_id: Optional distinguished external key
    """
    object_id: ObjectId
    labels: Tuple[str, ...] = ()
    external_id: Optional[str] = None

    @classmethod
    def coerce(cls, item: Union["ObjectRecord", tuple]) -> "ObjectRecord":
        """Accept an ObjectRecord or an ``(id, labels[, external_id])`` tuple."""
        if isinstance(item, ObjectRecord):
            return item
        object_id, labels, *rest = item
        external_id = rest[0] if rest else None
        return cls(object_id=object_id, labels=_as_labels(labels), external_id=external_id)


def _as_labels(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(lbl for lbl in value if lbl is not None)


def records_from_dataframe(
    df: pl.DataFrame,
    id_column: str = "id",
    label_column: str = "labels",
    external_id_column: Optional[str] = None,
) -> List[ObjectRecord]:
    """
    Convert a polars DataFrame into object records.

    The label column may hold a single string, a list of strings, or null.

    Args:
        df: Object table
        id_column: Column holding object identifiers
        label_column: Column holding labels
        external_id_column: Optional column holding external ids

    Returns:
        Records in row order
    """
    ids = df.get_column(id_column).to_list()
    labels = df.get_column(label_column).to_list()
    if external_id_column is not None:
        external_ids = df.get_column(external_id_column).to_list()
    else:
        external_ids = [None] * len(ids)

    return [
        ObjectRecord(object_id=oid, labels=_as_labels(lbl), external_id=eid)
        for oid, lbl, eid in zip(ids, labels, external_ids)
    ]


# =============================================================================
# Label Index
# =============================================================================

@dataclass(frozen=True)
class LabelCollision:
    """A label that was re-mapped from one object to another."""
    label: str
    previous_id: ObjectId
    object_id: ObjectId


class LabelIndex:
    """
    Immutable mapping from label to object identifier.

    Use LabelIndex.build() to construct one from an object source.

    Example:
        index = LabelIndex.build([
            ObjectRecord(1, ("alpha", "a")),
            ObjectRecord(2, ("beta",), external_id="B-2"),
        ])
        index.get("a")      # 1
        index.get("B-2")    # 2
    """

    def __init__(
        self,
        mapping: Mapping[str, ObjectId],
        object_count: int = 0,
        collisions: Optional[List[LabelCollision]] = None,
    ):
        self._map = MappingProxyType(dict(mapping))
        self._object_count = object_count
        self._collisions = tuple(collisions or ())

    @classmethod
    def build(
        cls,
        objects: Iterable[Union[ObjectRecord, tuple]],
        warn_on_collision: bool = True,
    ) -> "LabelIndex":
        """
        Build the reverse index in one pass over the object source.

        The external id of an object is inserted before its labels. When two
        distinct objects share a label, the later one wins.

        Args:
            objects: Object records or ``(id, labels[, external_id])`` tuples
            warn_on_collision: Log a warning for every collision

        Returns:
            The frozen index
        """
        logger.debug("Building reverse label index...")
        mapping: dict[str, ObjectId] = {}
        collisions: list[LabelCollision] = []
        count = 0

        for item in objects:
            record = ObjectRecord.coerce(item)
            count += 1
            keys = record.labels
            if record.external_id is not None:
                keys = (record.external_id,) + keys
            for label in keys:
                previous = mapping.get(label)
                if previous is not None and previous != record.object_id:
                    collisions.append(LabelCollision(label, previous, record.object_id))
                    if warn_on_collision:
                        logger.warning(
                            f"Label '{label}' maps to both {previous!r} and "
                            f"{record.object_id!r}; keeping {record.object_id!r}"
                        )
                mapping[label] = record.object_id

        logger.debug(f"Indexed {len(mapping)} labels for {count} objects")
        return cls(mapping, object_count=count, collisions=collisions)

    def get(self, label: str) -> Optional[ObjectId]:
        """Resolve a label, or None if it is unknown."""
        return self._map.get(label)

    def __contains__(self, label: object) -> bool:
        return label in self._map

    def __len__(self) -> int:
        """Return the number of distinct labels."""
        return len(self._map)

    def labels(self) -> Iterator[str]:
        return iter(self._map)

    @property
    def object_count(self) -> int:
        """Objects enumerated during build, including label-less ones."""
        return self._object_count

    @property
    def collisions(self) -> Tuple[LabelCollision, ...]:
        return self._collisions

    @property
    def collision_count(self) -> int:
        return len(self._collisions)

    def to_dataframe(self) -> pl.DataFrame:
        """Export the index as a ``(label, object_id)`` DataFrame."""
        return pl.DataFrame({
            "label": pl.Series(list(self._map.keys()), dtype=pl.Utf8),
            "object_id": list(self._map.values()),
        })
