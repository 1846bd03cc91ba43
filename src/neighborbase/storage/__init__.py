"""
NeighborBase Storage Layer.

Label-to-object reverse index and the immutable neighbor store.
"""

from neighborbase.storage.labels import (
    ObjectId,
    ObjectRecord,
    LabelIndex,
    LabelCollision,
    records_from_dataframe,
)
from neighborbase.storage.neighbors import (
    NeighborSet,
    NeighborStore,
    NeighborStoreBuilder,
)

__all__ = [
    "ObjectId",
    "ObjectRecord",
    "LabelIndex",
    "LabelCollision",
    "records_from_dataframe",
    "NeighborSet",
    "NeighborStore",
    "NeighborStoreBuilder",
]
