#!/usr/bin/env python3
"""
MBTiles Schema Rename - Copy an MBTiles file and rewrite it in place as an OsmAnd store

Faster than the transcoding pipeline when tile images can be kept as they are:
the file is copied byte for byte and only the schema and tile addresses change.
"""
import argparse
import logging
import shutil
import sqlite3
import sys
from pathlib import Path
from typing import Optional, Tuple

from convert_mbtiles_to_osmand import (
    TILE_NUMBERING,
    Z_MAX,
    ConversionError,
    configure_logging,
    get_mbtiles_stats,
    open_mbtiles,
    prepare_output_path,
)

logger = logging.getLogger(__name__)


def copy_mbtiles(input_path: Path, output_path: Path, overwrite: bool) -> None:
    """Copy the input database file to the output path"""
    prepare_output_path(output_path, overwrite, source=input_path)
    try:
        shutil.copyfile(input_path, output_path)
    except OSError as e:
        raise ConversionError(f"Error copying database: {e}") from e


def tiles_table_type(conn: sqlite3.Connection) -> Optional[str]:
    """Return "table" or "view" for the tiles object, None if missing"""
    row = conn.execute("SELECT type FROM sqlite_master WHERE name = 'tiles'").fetchone()
    return row[0] if row else None


def count_invalid_addresses(conn: sqlite3.Connection) -> int:
    """Count tiles whose row or column falls outside the zoom's grid"""
    cur = conn.execute(
        """
        SELECT COUNT(*) FROM tiles
        WHERE zoom_level < 0 OR zoom_level > ?
            OR tile_column < 0
            OR tile_row < 0 OR tile_row >= (1 << zoom_level)
    """,
        (Z_MAX,),
    )
    return cur.fetchone()[0]


def rewrite_schema(conn: sqlite3.Connection) -> Tuple[Optional[int], Optional[int]]:
    """
    Turn an MBTiles schema into the OsmAnd one, in a single transaction.

    Returns:
        (max_zoom, min_zoom) of the rewritten tiles
    """
    cur = conn.cursor()
    cur.execute("BEGIN")
    try:
        cur.execute("ALTER TABLE tiles RENAME COLUMN tile_column TO x")
        cur.execute("ALTER TABLE tiles RENAME COLUMN tile_row TO y")
        cur.execute("ALTER TABLE tiles RENAME COLUMN zoom_level TO z")
        cur.execute("ALTER TABLE tiles RENAME COLUMN tile_data TO image")

        # Stage through negative zooms so the primary key never sees a
        # transient duplicate while rows are rewritten one by one
        cur.execute("UPDATE tiles SET z = -1 - z")
        cur.execute(
            "UPDATE tiles SET y = (1 << (-1 - z)) - 1 - y, z = ? - (-1 - z)",
            (Z_MAX,),
        )

        cur.execute("DROP TABLE IF EXISTS metadata")
        cur.execute("CREATE INDEX IND ON tiles (x, y, z)")
        cur.execute("CREATE TABLE info (maxzoom INT, minzoom INT, tilenumbering TEXT)")
        cur.execute(
            "INSERT INTO info (maxzoom, minzoom, tilenumbering) "
            "SELECT MAX(z), MIN(z), ? FROM tiles",
            (TILE_NUMBERING,),
        )
        cur.execute("SELECT maxzoom, minzoom FROM info")
        zoom_range = cur.fetchone()
        cur.execute("COMMIT")
    except sqlite3.Error:
        if conn.in_transaction:
            cur.execute("ROLLBACK")
        raise

    return zoom_range


def rename_mbtiles(input_path: Path, output_path: Path, overwrite: bool) -> Tuple[int, int, int]:
    """
    Convert MBTiles to OsmAnd by copying the file and rewriting its schema.

    Returns:
        (tile_count, min_zoom, max_zoom) of the OsmAnd store

    Raises:
        ConversionError: on any failure
    """
    if not input_path.is_file():
        raise ConversionError(f"Input file not found: {input_path}")

    logger.info("Starting conversion: %s -> %s", input_path, output_path)

    source = open_mbtiles(input_path)
    try:
        if tiles_table_type(source) == "view":
            raise ConversionError(
                f"tiles is a view in {input_path} (deduplicated MBTiles) and cannot be "
                "renamed, use convert_mbtiles_to_osmand instead"
            )
        stats = get_mbtiles_stats(source)
        if stats["max_zoom"] is not None and stats["max_zoom"] > Z_MAX:
            raise ConversionError(
                f"Input has zoom {stats['max_zoom']}, OsmAnd numbering supports up to {Z_MAX}"
            )
        invalid = count_invalid_addresses(source)
    except sqlite3.Error as e:
        raise ConversionError(f"Cannot read input database {input_path}: {e}") from e
    finally:
        source.close()

    # rows outside the zoom's grid would be written with a negative y
    if invalid:
        raise ConversionError(
            f"Input has {invalid} tiles outside the zoom's tile grid, "
            "use convert_mbtiles_to_osmand to skip them"
        )

    copy_mbtiles(input_path, output_path, overwrite)

    conn = sqlite3.connect(output_path, isolation_level=None)
    try:
        max_zoom, min_zoom = rewrite_schema(conn)
    except sqlite3.Error as e:
        raise ConversionError(f"Error updating database schema: {e}") from e
    finally:
        conn.close()

    logger.info(
        "Conversion complete: %d tiles, zoom %s-%s, output %s",
        stats["tile_count"],
        min_zoom,
        max_zoom,
        output_path,
    )
    return stats["tile_count"], min_zoom, max_zoom


def main():
    parser = argparse.ArgumentParser(
        description="Copy an MBTiles file and rewrite it as an OsmAnd .sqlitedb (no re-encoding)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rename schema of a copy
  %(prog)s input.mbtiles output.sqlitedb

  # Force overwrite existing output
  %(prog)s -f input.mbtiles output.sqlitedb
        """,
    )

    parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite output file if it exists"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logs"
    )

    parser.add_argument("input_file", type=Path, help="Input MBTiles file")
    parser.add_argument("output_file", type=Path, help="Output OsmAnd .sqlitedb file")

    args = parser.parse_args()
    configure_logging(args.verbose)

    if not args.input_file.exists():
        print(f"Error: Input file not found: {args.input_file}", file=sys.stderr)
        sys.exit(1)

    try:
        rename_mbtiles(args.input_file, args.output_file, args.force)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
