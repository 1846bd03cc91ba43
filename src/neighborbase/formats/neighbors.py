"""
External Neighbor File Parser and Serializer.

Line-oriented text format, one subject per line:

    <subject-label> <neighbor-label-1> ... <neighbor-label-n>

- Tokens are separated by a single space (no run collapsing)
- A subject may appear on several lines; neighbors accumulate
- Blank lines are ignored
- Files may be gzip-compressed; detected by magic bytes, not extension

Unresolvable labels are advisory (warned and skipped). I/O failures are
fatal and abort the whole load.
"""

from __future__ import annotations

import gzip
import io
import logging
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, TextIO, Union

from neighborbase.storage.labels import LabelIndex, ObjectId
from neighborbase.storage.neighbors import NeighborStore, NeighborStoreBuilder

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class NeighborhoodLoadError(Exception):
    """Fatal failure while reading a neighbor file."""
    pass


@dataclass(frozen=True)
class UnresolvedLabel:
    """A label on a neighbor-file line with no matching object."""
    label: str
    line_number: int
    token_index: int
    is_subject: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "line_number": self.line_number,
            "token_index": self.token_index,
            "is_subject": self.is_subject,
        }


@dataclass
class LoadStats:
    """Counters collected while parsing one neighbor file."""
    lines_read: int = 0
    blank_lines: int = 0
    skipped_lines: int = 0
    resolved_neighbors: int = 0
    unresolved_neighbors: int = 0
    entries: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "lines_read": self.lines_read,
            "blank_lines": self.blank_lines,
            "skipped_lines": self.skipped_lines,
            "resolved_neighbors": self.resolved_neighbors,
            "unresolved_neighbors": self.unresolved_neighbors,
            "entries": self.entries,
        }


# =============================================================================
# Stream handling
# =============================================================================

@contextmanager
def open_neighbor_stream(path: Union[str, Path], encoding: str = "utf-8") -> Iterator[TextIO]:
    """
    Open a neighbor file as text, transparently decompressing gzip input.

    Compression is decided once, from the first bytes of the file. The raw
    file and any decompressing wrapper are closed on every exit path.

    Args:
        path: File to open
        encoding: Text encoding of the (decompressed) content

    Yields:
        Text stream with universal newline handling
    """
    raw = open(path, "rb")
    try:
        if raw.peek(len(GZIP_MAGIC))[:len(GZIP_MAGIC)] == GZIP_MAGIC:
            byte_stream = gzip.GzipFile(fileobj=raw, mode="rb")
        else:
            byte_stream = raw
        with io.TextIOWrapper(byte_stream, encoding=encoding, newline=None) as text:
            yield text
    finally:
        raw.close()


def split_tokens(line: str) -> List[str]:
    """
    Split a line on single spaces.

    Empty tokens between two spaces are kept; trailing empty tokens (from
    trailing spaces) are dropped.
    """
    tokens = line.split(" ")
    while tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


# =============================================================================
# Parser
# =============================================================================

class NeighborFileParser:
    """
    Resolves neighbor-file lines against a frozen LabelIndex.

    Example:
        parser = NeighborFileParser(index)
        store = parser.parse("neighbors.txt.gz")
        store.get(obj_id)       # tuple of neighbor ids, or None
        parser.warnings         # UnresolvedLabel records
    """

    def __init__(
        self,
        label_index: LabelIndex,
        encoding: str = "utf-8",
        include_subject: bool = False,
        log_unresolved: bool = True,
    ):
        """
        Initialize parser.

        Args:
            label_index: Fully built label index
            encoding: Text encoding of the file content
            include_subject: Also list the subject as its own first neighbor
            log_unresolved: Emit a log warning per unresolved label
        """
        self.label_index = label_index
        self.encoding = encoding
        self.include_subject = include_subject
        self.log_unresolved = log_unresolved
        self.line_number = 0
        self.warnings: List[UnresolvedLabel] = []
        self.stats = LoadStats()

    def parse(self, path: Union[str, Path]) -> NeighborStore:
        """
        Load a neighbor file.

        Args:
            path: Plain or gzip-compressed neighbor file

        Returns:
            The frozen NeighborStore

        Raises:
            NeighborhoodLoadError: On any I/O, decompression or decoding failure
        """
        logger.info(f"Loading external neighborhoods from {path}")
        try:
            with open_neighbor_stream(path, self.encoding) as stream:
                store = self.parse_lines(stream)
        except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
            logger.error(f"Loading of external neighborhood from {path} failed: {e}")
            raise NeighborhoodLoadError("Loading of external neighborhood failed.") from e

        logger.info(
            f"Loaded {self.stats.entries} neighborhoods from {self.stats.lines_read} lines "
            f"({len(self.warnings)} unresolved labels)"
        )
        return store

    def parse_lines(self, lines: Iterable[str]) -> NeighborStore:
        """
        Resolve already-decoded lines into a NeighborStore.

        Args:
            lines: Lines with or without their terminators

        Returns:
            The frozen NeighborStore
        """
        self.line_number = 0
        self.warnings = []
        self.stats = LoadStats()
        builder = NeighborStoreBuilder()

        for line in lines:
            self.line_number += 1
            self.stats.lines_read += 1
            line = line.rstrip("\r\n")
            if not line:
                self.stats.blank_lines += 1
                continue
            self._parse_line(line, builder)

        self.stats.entries = len(builder)
        return builder.freeze()

    def _parse_line(self, line: str, builder: NeighborStoreBuilder) -> None:
        tokens = split_tokens(line)
        if not tokens:
            self.stats.blank_lines += 1
            return
        subject = self.label_index.get(tokens[0])
        if subject is None:
            self.stats.skipped_lines += 1
            self._unresolved(tokens[0], 0, is_subject=True)
            return

        start = 0 if self.include_subject else 1
        neighbors: List[ObjectId] = []
        for i in range(start, len(tokens)):
            neigh = self.label_index.get(tokens[i])
            if neigh is not None:
                neighbors.append(neigh)
            else:
                self.stats.unresolved_neighbors += 1
                self._unresolved(tokens[i], i)

        self.stats.resolved_neighbors += len(neighbors)
        builder.append(subject, neighbors)

    def _unresolved(self, label: str, token_index: int, is_subject: bool = False) -> None:
        self.warnings.append(UnresolvedLabel(label, self.line_number, token_index, is_subject))
        if self.log_unresolved:
            logger.warning(
                f"No object found for label '{label}' "
                f"(line {self.line_number}, token {token_index})"
            )


def parse_neighbors(
    path: Union[str, Path],
    label_index: LabelIndex,
    encoding: str = "utf-8",
    include_subject: bool = False,
) -> NeighborStore:
    """Convenience function to load a neighbor file."""
    parser = NeighborFileParser(label_index, encoding=encoding, include_subject=include_subject)
    return parser.parse(path)


# =============================================================================
# Serializer
# =============================================================================

class NeighborFileSerializer:
    """
    Writes a NeighborStore back to the neighbor-file format.

    Object ids are turned into labels with ``labeler``; by default str().
    """

    def __init__(self, labeler: Optional[Callable[[ObjectId], str]] = None):
        self.labeler = labeler or str

    def serialize(self, store: NeighborStore) -> str:
        """Serialize to a string, one line per entry."""
        return "".join(self._lines(store))

    def _lines(self, store: NeighborStore) -> Iterator[str]:
        for oid, neighbors in store.items():
            tokens = [self.labeler(oid)] + [self.labeler(n) for n in neighbors]
            yield " ".join(tokens) + "\n"

    def write(self, store: NeighborStore, path: Union[str, Path], compress: bool = False) -> None:
        """Write to a file, gzip-compressed when ``compress`` is set."""
        if compress:
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.writelines(self._lines(store))
        else:
            with open(path, "w", encoding="utf-8") as f:
                f.writelines(self._lines(store))


def serialize_neighbors(
    store: NeighborStore,
    path: Union[str, Path],
    labeler: Optional[Callable[[ObjectId], str]] = None,
    compress: bool = False,
) -> None:
    """Convenience function to write a neighbor file."""
    NeighborFileSerializer(labeler).write(store, path, compress=compress)
