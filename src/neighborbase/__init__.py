"""
NeighborBase: precomputed neighborhoods loaded from external label files.

Resolves a line-oriented neighbor file (optionally gzip-compressed) against
the labels of an object source and exposes the result as an immutable
per-object neighbor lookup.
"""

__version__ = "0.1.0"

from neighborbase.config import NeighborhoodConfig, ConfigValidationError
from neighborbase.storage.labels import (
    ObjectId,
    ObjectRecord,
    LabelIndex,
    LabelCollision,
    records_from_dataframe,
)
from neighborbase.storage.neighbors import NeighborSet, NeighborStore, NeighborStoreBuilder
from neighborbase.formats.neighbors import (
    NeighborFileParser,
    NeighborFileSerializer,
    NeighborhoodLoadError,
    UnresolvedLabel,
    LoadStats,
    parse_neighbors,
    serialize_neighbors,
)
from neighborbase.neighborhood import ExternalNeighborhood, ExternalNeighborhoodFactory

__all__ = [
    # Configuration
    "NeighborhoodConfig",
    "ConfigValidationError",
    # Labels
    "ObjectId",
    "ObjectRecord",
    "LabelIndex",
    "LabelCollision",
    "records_from_dataframe",
    # Store
    "NeighborSet",
    "NeighborStore",
    "NeighborStoreBuilder",
    # Neighbor files
    "NeighborFileParser",
    "NeighborFileSerializer",
    "NeighborhoodLoadError",
    "UnresolvedLabel",
    "LoadStats",
    "parse_neighbors",
    "serialize_neighbors",
    # Neighborhood
    "ExternalNeighborhood",
    "ExternalNeighborhoodFactory",
]
