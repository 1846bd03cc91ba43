"""
Neighbor File Parser and Serializer.

Supports:
- Plain text neighbor lists (one subject per line)
- Gzip-compressed neighbor lists, detected by magic bytes
"""

from neighborbase.formats.neighbors import (
    NeighborFileParser,
    NeighborFileSerializer,
    NeighborhoodLoadError,
    UnresolvedLabel,
    LoadStats,
    open_neighbor_stream,
    split_tokens,
    parse_neighbors,
    serialize_neighbors,
)

__all__ = [
    "NeighborFileParser",
    "NeighborFileSerializer",
    "NeighborhoodLoadError",
    "UnresolvedLabel",
    "LoadStats",
    "open_neighbor_stream",
    "split_tokens",
    "parse_neighbors",
    "serialize_neighbors",
]
