"""
Precomputed neighborhood loaded from an external file.

Ties the pieces together in the required order: the label index is built
from the full object source first, then the neighbor file is read once
against it, and the resulting store is wrapped for downstream algorithms.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from neighborbase.config import NeighborhoodConfig
from neighborbase.formats.neighbors import NeighborFileParser
from neighborbase.storage.labels import LabelIndex, ObjectId, ObjectRecord
from neighborbase.storage.neighbors import NeighborSet, NeighborStore

logger = logging.getLogger(__name__)


class ExternalNeighborhood:
    """
    Neighbor-set predicate backed by a NeighborStore.

    get_neighbors() answers () for objects without an entry; use
    has_neighbors() or store.get() to tell "no information" apart.
    """

    long_name = "External Neighborhood"
    short_name = "external-neighborhood"

    def __init__(self, store: NeighborStore):
        self.store = store

    def get_neighbors(self, object_id: ObjectId) -> NeighborSet:
        return self.store.get(object_id, ())

    def has_neighbors(self, object_id: ObjectId) -> bool:
        """True if the object appeared as a subject in the neighbor file."""
        return object_id in self.store

    def __len__(self) -> int:
        return len(self.store)


class ExternalNeighborhoodFactory:
    """
    Builds ExternalNeighborhood instances for an object source.

    Example:
        factory = ExternalNeighborhoodFactory("neighbors.txt")
        neighborhood = factory.instantiate(records)
    """

    def __init__(
        self,
        file: Union[str, Path],
        config: Optional[NeighborhoodConfig] = None,
    ):
        """
        Args:
            file: Neighbor file to load
            config: Loader settings; the file here overrides config.file
        """
        self.file = Path(file)
        self.config = config or NeighborhoodConfig(file=self.file)
        self.last_parser: Optional[NeighborFileParser] = None

    @classmethod
    def from_config(cls, config: NeighborhoodConfig) -> "ExternalNeighborhoodFactory":
        config.validate()
        return cls(config.file, config)

    def instantiate(self, objects: Iterable[Union[ObjectRecord, Tuple]]) -> ExternalNeighborhood:
        """
        Load the neighbor file against an object source.

        Raises:
            NeighborhoodLoadError: If the file cannot be read
        """
        store = self.load_neighbors(objects)
        return ExternalNeighborhood(store)

    def load_neighbors(self, objects: Iterable[Union[ObjectRecord, Tuple]]) -> NeighborStore:
        logger.info("Loading external neighborhoods.")
        index = LabelIndex.build(objects, warn_on_collision=self.config.warn_on_collision)

        parser = NeighborFileParser(
            index,
            encoding=self.config.encoding,
            include_subject=self.config.include_subject,
            log_unresolved=self.config.log_unresolved,
        )
        self.last_parser = parser
        return parser.parse(self.file)
