"""
Command line loader for external neighbor files.

Reads an object table (CSV or Parquet) with polars, resolves a neighbor
file against its labels and prints a summary.

Example:
    neighborbase-load --objects objects.parquet --neighbors neighbors.txt.gz
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import polars as pl

from neighborbase.config import NeighborhoodConfig, ConfigValidationError
from neighborbase.formats.neighbors import NeighborhoodLoadError
from neighborbase.neighborhood import ExternalNeighborhoodFactory
from neighborbase.storage.labels import records_from_dataframe

CSV_LABEL_SEPARATOR = ";"


def read_objects(path: Path, id_column: str, label_column: str) -> pl.DataFrame:
    """Read an object table; CSV label cells are split on ';'."""
    if path.suffix.lower() == ".parquet":
        return pl.read_parquet(path)
    df = pl.read_csv(path, infer_schema_length=0)
    return df.with_columns(pl.col(label_column).str.split(CSV_LABEL_SEPARATOR))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Load an external neighborhood file")
    parser.add_argument("--objects", required=True, type=Path,
                        help="Object table (.csv or .parquet)")
    parser.add_argument("--neighbors", type=Path,
                        help="Neighbor file, plain or gzip-compressed")
    parser.add_argument("--config", type=Path,
                        help="JSON configuration file")
    parser.add_argument("--id-column", default="id",
                        help="Object id column (default: id)")
    parser.add_argument("--label-column", default="labels",
                        help="Label column (default: labels)")
    parser.add_argument("--external-id-column", default=None,
                        help="Optional external id column")
    parser.add_argument("--include-subject", action="store_true",
                        help="List each subject as its own first neighbor")
    parser.add_argument("--output", "-o", type=Path,
                        help="Write neighbor pairs to this Parquet file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = NeighborhoodConfig.load(args.config) if args.config else NeighborhoodConfig()
    if args.neighbors:
        config.file = args.neighbors
    if args.include_subject:
        config.include_subject = True

    try:
        factory = ExternalNeighborhoodFactory.from_config(config)
    except ConfigValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    df = read_objects(args.objects, args.id_column, args.label_column)
    records = records_from_dataframe(
        df,
        id_column=args.id_column,
        label_column=args.label_column,
        external_id_column=args.external_id_column,
    )

    try:
        neighborhood = factory.instantiate(records)
    except NeighborhoodLoadError as e:
        print(f"{e} Cause: {e.__cause__}", file=sys.stderr)
        return 1

    stats = factory.last_parser.stats
    print(f"\nObjects:              {len(records):,}")
    print(f"Neighborhoods:        {len(neighborhood):,}")
    print(f"Neighbor pairs:       {neighborhood.store.pair_count:,}")
    print(f"Lines read:           {stats.lines_read:,}")
    print(f"Skipped lines:        {stats.skipped_lines:,}")
    print(f"Unresolved neighbors: {stats.unresolved_neighbors:,}")

    if args.output:
        neighborhood.store.to_dataframe().write_parquet(args.output)
        print(f"\nWrote neighbor pairs to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
