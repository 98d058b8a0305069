#!/usr/bin/env python3
"""
MBTiles to OsmAnd Converter - Transcode an MBTiles archive into an OsmAnd SQLite tile store

Reads every tile of an MBTiles file, rewrites its address from TMS to the OsmAnd
(BigPlanet) convention and optionally re-encodes the image as JPEG. Output is an
OsmAnd-compatible .sqlitedb written in a single transaction.

Architecture:
    - Pure functions for coordinate math and image recoding
    - Bounded queue between one producer (source cursor) and a pool of worker threads
    - One shared destination connection, statement execution serialized by a lock
    - Explicit stage machine in the orchestrator, rollback armed until commit

Pipeline:
    1. Open source (read-only) and destination, begin transaction
    2. Create tiles/info schema
    3. Stream source rows into the queue, workers recode → transform → insert
    4. Close queue and join workers
    5. Insert aggregate zoom range into info
    6. Commit

Coordinates:
    MBTiles: (zoom_level, tile_column, tile_row), TMS (bottom-left origin)
    OsmAnd:  (x, y, z), XYZ (top-left origin), z = 17 - zoom ("BigPlanet" numbering)

Error Policy:
    A tile that cannot be decoded, re-encoded, addressed or inserted is logged and
    dropped; the conversion still commits. Anything that touches the run as a whole
    (missing source, schema, commit) raises ConversionError and rolls back.

Module Usage:

        from convert_mbtiles_to_osmand import convert

        stats = convert("area.mbtiles", "area.sqlitedb", jpeg_quality=85, overwrite=True)
        print(stats.written, stats.failed)

CLI Usage:
    # Keep original tile images
    python convert_mbtiles_to_osmand.py input.mbtiles output.sqlitedb

    # Re-encode everything as JPEG quality 85, overwrite existing output
    python convert_mbtiles_to_osmand.py --jpg 85 -f input.mbtiles output.sqlitedb
"""
import argparse
import enum
import io
import logging
import os
import queue
import sqlite3
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError
from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

logger = logging.getLogger(__name__)

# Type aliases for clarity
PathLike = Union[str, Path]
TileAddress = Tuple[int, int, int]  # (zoom, column, row), MBTiles/TMS
TileCoord = Tuple[int, int, int]  # (x, y, z), OsmAnd

# Highest zoom OsmAnd's inverted numbering can express (z = Z_MAX - zoom)
Z_MAX = 17
TILE_NUMBERING = "BigPlanet"

DEFAULT_WORKERS = 5
DEFAULT_QUEUE_SIZE = 100

SUPPORTED_FORMATS = ("JPEG", "PNG")


# ============================================================================
# Errors
# ============================================================================


class ConversionError(Exception):
    """Fatal error: the whole conversion is aborted and rolled back"""


class TileError(ValueError):
    """Per-tile error: the tile is dropped, the conversion continues"""


class MalformedRow(TileError):
    pass


class InvalidTileAddress(TileError):
    pass


class UnsupportedFormat(TileError):
    pass


class DecodeFailed(TileError):
    pass


class EncodeFailed(TileError):
    pass


# ============================================================================
# Data Model
# ============================================================================


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a conversion run"""

    input_file: Path
    output_file: Path
    jpeg_quality: int  # 0 keeps original images
    force_overwrite: bool
    workers: int
    queue_size: int
    progress: bool


@dataclass(frozen=True)
class TileRecord:
    """One source tile as read from the MBTiles cursor"""

    zoom: int
    column: int
    row: int
    data: bytes

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "TileRecord":
        """Build a record from a (zoom_level, tile_column, tile_row, tile_data) row"""
        try:
            zoom, column, tile_row, data = row
        except (TypeError, ValueError) as e:
            raise MalformedRow(f"Unexpected row shape: {e}") from e

        for name, value in (("zoom_level", zoom), ("tile_column", column), ("tile_row", tile_row)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedRow(f"{name} is not an integer: {value!r}")
            if value < 0:
                raise MalformedRow(f"{name} is negative: {value}")

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise MalformedRow(
                f"tile_data is not a blob for tile ({zoom}/{column}/{tile_row})"
            )

        return cls(zoom=zoom, column=column, row=tile_row, data=bytes(data))

    @property
    def address(self) -> TileAddress:
        return self.zoom, self.column, self.row


@dataclass(frozen=True)
class TranscodedTile:
    """Destination-ready tile in OsmAnd coordinates"""

    x: int
    y: int
    z: int
    image: bytes


@dataclass
class ConversionStats:
    """Outcome of a conversion run"""

    read: int = 0
    written: int = 0
    skipped: int = 0  # malformed source rows
    failed: int = 0  # recode / address / insert failures
    collisions: int = 0  # rejected by the destination primary key
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None


class Stage(enum.Enum):
    INIT = "init"
    SCHEMA_READY = "schema-ready"
    STREAMING = "streaming"
    DRAINING = "draining"
    AGGREGATING = "aggregating"
    COMMITTED = "committed"
    FAILED = "failed"


# ============================================================================
# Pure Functions - Coordinates
# ============================================================================


def mbtiles_to_osmand(zoom: int, column: int, row: int) -> TileCoord:
    """
    Convert an MBTiles (TMS) tile address to OsmAnd (x, y, z).

    The row axis is flipped (TMS origin bottom-left, XYZ origin top-left)
    and the zoom is inverted against Z_MAX.

    Raises:
        InvalidTileAddress: zoom outside [0, Z_MAX] or row outside the zoom's grid
    """
    if not 0 <= zoom <= Z_MAX:
        raise InvalidTileAddress(f"Zoom {zoom} outside supported range 0-{Z_MAX}")

    max_tile = 2**zoom - 1
    if not 0 <= row <= max_tile:
        raise InvalidTileAddress(f"Row {row} outside range 0-{max_tile} at zoom {zoom}")

    return column, max_tile - row, Z_MAX - zoom


def osmand_to_mbtiles(x: int, y: int, z: int) -> TileAddress:
    """Convert OsmAnd (x, y, z) back to an MBTiles (zoom, column, row) address"""
    zoom = Z_MAX - z
    return zoom, x, (2**zoom - 1) - y


# ============================================================================
# Pure Functions - Image Recoding
# ============================================================================


def open_tile_image(data: bytes) -> Image.Image:
    """Open a PNG or JPEG tile lazily; only the header is read"""
    try:
        im = Image.open(io.BytesIO(data))
    except UnidentifiedImageError as e:
        raise UnsupportedFormat("Cannot identify image format") from e

    if im.format not in SUPPORTED_FORMATS:
        raise UnsupportedFormat(f"Unsupported image format: {im.format}")

    return im


def detect_image_format(data: bytes) -> str:
    """Detect image format using Pillow ("jpeg" or "png")"""
    return open_tile_image(data).format.lower()


def recode_tile(data: bytes, quality: int) -> bytes:
    """
    Re-encode a PNG or JPEG tile as JPEG.

    Args:
        data: Raw tile image
        quality: JPEG quality 1-100, or <= 0 to return data untouched

    Returns:
        New JPEG bytes, or the input object itself when quality <= 0

    Raises:
        UnsupportedFormat, DecodeFailed, EncodeFailed
    """
    if quality <= 0:
        return data

    im = open_tile_image(data)
    try:
        im.load()
    except (OSError, SyntaxError, ValueError, EOFError) as e:
        raise DecodeFailed(f"Cannot decode {im.format} image: {e}") from e

    stream = io.BytesIO()
    try:
        im = im.convert("RGB")
        im.save(stream, format="JPEG", subsampling=0, quality=quality)
    except (OSError, ValueError) as e:
        raise EncodeFailed(f"Cannot encode JPEG: {e}") from e

    return stream.getvalue()


def transcode_tile(record: TileRecord, quality: int) -> TranscodedTile:
    """Recode the image, then map the address to OsmAnd coordinates"""
    image = recode_tile(record.data, quality)
    x, y, z = mbtiles_to_osmand(record.zoom, record.column, record.row)
    return TranscodedTile(x=x, y=y, z=z, image=image)


# ============================================================================
# I/O Functions - Source MBTiles Database
# ============================================================================


def open_mbtiles(path: Path) -> sqlite3.Connection:
    """Open an MBTiles file read-only"""
    if not path.is_file():
        raise ConversionError(f"Input file not found: {path}")

    try:
        return sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    except sqlite3.Error as e:
        raise ConversionError(f"Cannot open input database {path}: {e}") from e


def get_mbtiles_stats(conn: sqlite3.Connection) -> dict:
    """Get statistics from an open MBTiles connection"""
    cur = conn.cursor()

    # metadata is optional in practice
    try:
        metadata = {
            row[0]: row[1] for row in cur.execute("SELECT name, value FROM metadata")
        }
    except sqlite3.OperationalError:
        metadata = {}

    cur.execute("SELECT MIN(zoom_level), MAX(zoom_level), COUNT(*) FROM tiles")
    min_zoom, max_zoom, tile_count = cur.fetchone()

    return {
        "format": metadata.get("format"),
        "tile_count": tile_count,
        "min_zoom": min_zoom,
        "max_zoom": max_zoom,
        "metadata": metadata,
    }


def iter_tile_rows(conn: sqlite3.Connection) -> Iterator[Tuple[Any, ...]]:
    """Forward-only scan over every source tile"""
    cur = conn.cursor()
    cur.execute("SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles")
    for row in cur:
        yield row


def prepare_output_path(path: Path, overwrite: bool, source: Optional[Path] = None) -> None:
    """Make sure the output path is free, removing an existing file if allowed"""
    if not path.exists():
        return

    if source is not None and path.resolve() == source.resolve():
        raise ConversionError(f"Output file is the input file: {path}")

    if not overwrite:
        raise ConversionError(f"{path} already exists. Use -f to overwrite.")

    logger.debug("Overwrite is allowed, removing existing %s", path)
    try:
        path.unlink()
    except OSError as e:
        raise ConversionError(f"Failed to overwrite {path}: {e}") from e


# ============================================================================
# I/O Functions - Destination OsmAnd Database
# ============================================================================


class DestinationStore:
    """
    OsmAnd SQLite tile store opened for a single conversion.

    The connection is shared by the worker threads; every statement runs
    under one lock since SQLite allows a single writer. The connection is
    in autocommit mode so that the transaction is driven explicitly.
    """

    INSERT_TILE = "INSERT INTO tiles (x, y, z, image) VALUES (?, ?, ?, ?)"

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)

    def __enter__(self) -> "DestinationStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._conn.execute(sql, params)

    # Transaction control, used by the orchestrator only

    def begin(self) -> None:
        self._execute("BEGIN")

    def commit(self) -> None:
        self._execute("COMMIT")

    def rollback(self) -> None:
        if self._conn.in_transaction:
            self._execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator["DestinationStore"]:
        """Commit on success, roll back on any exception (including a failed commit)"""
        self.begin()
        try:
            yield self
            self.commit()
        except BaseException:
            self.rollback()
            raise

    # Schema

    def create_schema(self) -> None:
        """Create OsmAnd tiles/info tables and the tile index"""
        self._execute(
            """
            CREATE TABLE tiles (
                x INT,
                y INT,
                z INT,
                image BLOB,
                PRIMARY KEY (x, y, z)
            )
        """
        )
        # Same key as the primary key, but OsmAnd expects it
        self._execute("CREATE INDEX IND ON tiles (x, y, z)")
        self._execute("CREATE TABLE info (maxzoom INT, minzoom INT, tilenumbering TEXT)")

    def insert_tile(self, tile: TranscodedTile) -> None:
        self._execute(
            self.INSERT_TILE,
            (tile.x, tile.y, tile.z, sqlite3.Binary(tile.image)),
        )

    def insert_info(self) -> Tuple[Optional[int], Optional[int]]:
        """Insert the aggregate zoom range of all written tiles, return (max, min)"""
        self._execute(
            "INSERT INTO info (maxzoom, minzoom, tilenumbering) "
            "SELECT MAX(z), MIN(z), ? FROM tiles",
            (TILE_NUMBERING,),
        )
        return self._execute("SELECT maxzoom, minzoom FROM info").fetchone()


# ============================================================================
# Concurrency - Queue and Worker Pool
# ============================================================================


class TileQueue:
    """
    Bounded single-producer / multi-consumer queue with close semantics.

    put() blocks while full. get() blocks while empty and returns None once
    the queue has been closed and every item ahead of the close was taken.
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = False

    def put(self, record: TileRecord) -> None:
        if self._closed:
            raise RuntimeError("Cannot put to a closed tile queue")
        self._queue.put(record)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(self._CLOSED)

    def get(self) -> Optional[TileRecord]:
        item = self._queue.get()
        if item is self._CLOSED:
            # hand the marker on to the next consumer
            self._queue.put(item)
            return None
        return item


class TileWorker(threading.Thread):
    """Consume tile records until the queue is drained; never raises per tile"""

    def __init__(
        self,
        name: str,
        tiles: TileQueue,
        store: DestinationStore,
        jpeg_quality: int,
        log: logging.Logger,
    ):
        super().__init__(name=name, daemon=True)
        self.tiles = tiles
        self.store = store
        self.jpeg_quality = jpeg_quality
        self.log = log
        self.written = 0
        self.failed = 0
        self.collisions = 0

    def run(self) -> None:
        while True:
            record = self.tiles.get()
            if record is None:
                return
            self.process(record)

    def process(self, record: TileRecord) -> None:
        zoom, column, row = record.address
        try:
            tile = transcode_tile(record, self.jpeg_quality)
        except TileError as e:
            self.failed += 1
            self.log.warning("Skipping tile %d/%d/%d: %s", zoom, column, row, e)
            return
        except Exception:
            self.failed += 1
            self.log.exception("Unexpected error on tile %d/%d/%d", zoom, column, row)
            return

        try:
            self.store.insert_tile(tile)
        except sqlite3.IntegrityError:
            self.collisions += 1
            self.log.warning(
                "Coordinate collision: tile %d/%d/%d maps to an already written "
                "(x=%d, y=%d, z=%d), skipping",
                zoom, column, row, tile.x, tile.y, tile.z,
            )
        except sqlite3.Error as e:
            self.failed += 1
            self.log.warning("Failed to insert tile %d/%d/%d: %s", zoom, column, row, e)
        else:
            self.written += 1


class WorkerPool:
    """
    Fixed set of TileWorker threads bound to one queue.

    Used as a context manager: workers start on enter; on exit the queue is
    closed and every worker is joined, whether or not the body raised.
    """

    def __init__(
        self,
        tiles: TileQueue,
        store: DestinationStore,
        jpeg_quality: int,
        size: int = DEFAULT_WORKERS,
        log: logging.Logger = logger,
    ):
        self.tiles = tiles
        self.workers = [
            TileWorker(f"tile-worker-{i}", tiles, store, jpeg_quality, log)
            for i in range(size)
        ]

    def __enter__(self) -> "WorkerPool":
        for worker in self.workers:
            worker.start()
        return self

    def __exit__(self, *exc) -> None:
        self.tiles.close()
        self.join()

    def join(self) -> None:
        for worker in self.workers:
            worker.join()

    def collect(self, stats: ConversionStats) -> None:
        for worker in self.workers:
            stats.written += worker.written
            stats.failed += worker.failed
            stats.collisions += worker.collisions


# ============================================================================
# Main Pipeline
# ============================================================================


class TileTranscoder:
    """
    Orchestrates one MBTiles → OsmAnd conversion.

    Owns the source cursor, the destination transaction and the worker
    pool. Only this class begins, commits or rolls back the transaction.
    """

    def __init__(
        self,
        source_path: Path,
        destination_path: Path,
        jpeg_quality: int = 0,
        workers: int = DEFAULT_WORKERS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        progress: bool = False,
        log: Optional[logging.Logger] = None,
    ):
        self.source_path = source_path
        self.destination_path = destination_path
        self.jpeg_quality = jpeg_quality
        self.workers = workers
        self.queue_size = queue_size
        self.progress = progress
        self.log = log or logger
        self.stage = Stage.INIT
        self.stats = ConversionStats()

    def _enter(self, stage: Stage) -> None:
        self.log.debug("Stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def run(self) -> ConversionStats:
        try:
            self._run()
        except Exception as e:
            self._enter(Stage.FAILED)
            if isinstance(e, ConversionError):
                raise
            raise ConversionError(f"Conversion failed: {e}") from e
        return self.stats

    def _run(self) -> None:
        source = open_mbtiles(self.source_path)
        try:
            source_stats = get_mbtiles_stats(source)
            self.log.info(
                "Source %s: %d tiles, zoom %s-%s, format %s",
                self.source_path,
                source_stats["tile_count"],
                source_stats["min_zoom"],
                source_stats["max_zoom"],
                source_stats["format"] or "unknown",
            )

            with DestinationStore(self.destination_path) as store:
                with store.transaction():
                    try:
                        store.create_schema()
                    except sqlite3.Error as e:
                        raise ConversionError(
                            f"Failed to create schema in {self.destination_path}: {e}"
                        ) from e
                    self._enter(Stage.SCHEMA_READY)

                    self._stream(source, store, source_stats["tile_count"])

                    self._enter(Stage.AGGREGATING)
                    max_zoom, min_zoom = store.insert_info()
                    self.stats.max_zoom, self.stats.min_zoom = max_zoom, min_zoom
                # transaction() commits on leaving the block
                self._enter(Stage.COMMITTED)
        finally:
            source.close()

    def _stream(self, source: sqlite3.Connection, store: DestinationStore, total: int) -> None:
        """Feed every source row to the pool and wait for it to drain"""
        tiles = TileQueue(self.queue_size)
        pool = WorkerPool(tiles, store, self.jpeg_quality, self.workers, self.log)

        with pool:
            self._enter(Stage.STREAMING)
            with tqdm(
                total=total, desc="Converting tiles", unit="tile", disable=not self.progress
            ) as pbar:
                for row in iter_tile_rows(source):
                    self.stats.read += 1
                    pbar.update(1)
                    try:
                        record = TileRecord.from_row(row)
                    except MalformedRow as e:
                        self.stats.skipped += 1
                        self.log.warning("Skipping source row %d: %s", self.stats.read, e)
                        continue
                    tiles.put(record)
            self._enter(Stage.DRAINING)

        pool.collect(self.stats)
        self.log.debug("All %d workers finished", len(pool.workers))


def convert(
    source_path: PathLike,
    destination_path: PathLike,
    jpeg_quality: int = 0,
    overwrite: bool = False,
    *,
    workers: int = DEFAULT_WORKERS,
    queue_size: int = DEFAULT_QUEUE_SIZE,
    progress: bool = False,
    log: Optional[logging.Logger] = None,
) -> ConversionStats:
    """
    Convert an MBTiles file into an OsmAnd SQLite tile store.

    Args:
        source_path: Input .mbtiles file
        destination_path: Output .sqlitedb file
        jpeg_quality: 0 keeps tile images as they are, 1-100 re-encodes as JPEG
        overwrite: Replace an existing destination file
        workers: Number of worker threads
        queue_size: Capacity of the queue between reader and workers
        progress: Show a progress bar
        log: Logger for this conversion (default: module logger)

    Returns:
        ConversionStats of the committed run

    Raises:
        ConversionError: on any failure that aborts the conversion
    """
    log = log or logger
    source_path = Path(source_path)
    destination_path = Path(destination_path)

    if not 0 <= jpeg_quality <= 100:
        raise ConversionError(f"JPEG quality must be between 0 and 100, got {jpeg_quality}")
    if workers < 1 or queue_size < 1:
        raise ConversionError("Workers and queue size must be at least 1")
    if not source_path.is_file():
        raise ConversionError(f"Input file not found: {source_path}")

    prepare_output_path(destination_path, overwrite, source=source_path)

    log.info("Starting conversion: %s -> %s", source_path, destination_path)
    transcoder = TileTranscoder(
        source_path,
        destination_path,
        jpeg_quality=jpeg_quality,
        workers=workers,
        queue_size=queue_size,
        progress=progress,
        log=log,
    )
    stats = transcoder.run()

    log.info(
        "Conversion complete: %d of %d tiles written (%d skipped, %d failed, %d collisions), "
        "zoom %s-%s",
        stats.written,
        stats.read,
        stats.skipped,
        stats.failed,
        stats.collisions,
        stats.min_zoom,
        stats.max_zoom,
    )
    return stats


def process_file(config: Config) -> ConversionStats:
    """Run a conversion from CLI configuration"""
    return convert(
        config.input_file,
        config.output_file,
        config.jpeg_quality,
        config.force_overwrite,
        workers=config.workers,
        queue_size=config.queue_size,
        progress=config.progress,
    )


def configure_logging(verbose: bool) -> None:
    level = logging.INFO
    if verbose or os.environ.get("LOG_LEVEL", "").upper() == "DEBUG":
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    parser = argparse.ArgumentParser(
        description="Convert MBTiles to an OsmAnd SQLite tile store (.sqlitedb)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Keep original tile images
  %(prog)s input.mbtiles output.sqlitedb

  # Re-encode tiles as JPEG (quality 85) to save space
  %(prog)s --jpg 85 input.mbtiles output.sqlitedb

  # Overwrite existing output, 8 worker threads
  %(prog)s -f -w 8 input.mbtiles output.sqlitedb
        """,
    )

    parser.add_argument(
        "--jpg",
        type=int,
        metavar="QUALITY",
        help="Convert tiles to JPEG with quality 1-100, 0 keeps original format (default: 0)",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite output file if it exists",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of worker threads (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=DEFAULT_QUEUE_SIZE,
        help=f"Tiles buffered between reader and workers (default: {DEFAULT_QUEUE_SIZE})",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show a progress bar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logs (same as LOG_LEVEL=DEBUG)",
    )

    parser.add_argument("input_file", type=Path, help="Input MBTiles file")
    parser.add_argument("output_file", type=Path, help="Output OsmAnd .sqlitedb file")

    args = parser.parse_args()
    configure_logging(args.verbose)

    # Validate inputs
    if not args.input_file.exists():
        print(f"Error: Input file not found: {args.input_file}", file=sys.stderr)
        sys.exit(1)

    if args.jpg is not None and not (0 <= args.jpg <= 100):
        print("Error: JPEG quality must be between 0 and 100", file=sys.stderr)
        sys.exit(1)

    if args.workers < 1 or args.queue_size < 1:
        print("Error: Workers and queue size must be at least 1", file=sys.stderr)
        sys.exit(1)

    if args.output_file.exists() and not args.force:
        print(
            f"Error: {args.output_file} already exists. Use -f to overwrite.",
            file=sys.stderr,
        )
        sys.exit(1)

    config = Config(
        input_file=args.input_file,
        output_file=args.output_file,
        jpeg_quality=args.jpg or 0,
        force_overwrite=args.force,
        workers=args.workers,
        queue_size=args.queue_size,
        progress=not args.no_progress,
    )

    try:
        with logging_redirect_tqdm():
            process_file(config)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
