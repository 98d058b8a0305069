"""Tests for the tile queue and worker pool."""

import logging
import sqlite3
import threading

import pytest

from convert_mbtiles_to_osmand import TileQueue, TileRecord, WorkerPool, ConversionStats


class RecordingStore:
    """Stands in for DestinationStore, enforcing the (x, y, z) key"""

    def __init__(self, fail_on=()):
        self.lock = threading.Lock()
        self.tiles = {}
        self.fail_on = set(fail_on)

    def insert_tile(self, tile):
        key = (tile.x, tile.y, tile.z)
        with self.lock:
            if key in self.fail_on:
                raise sqlite3.OperationalError("database is locked")
            if key in self.tiles:
                raise sqlite3.IntegrityError("UNIQUE constraint failed")
            self.tiles[key] = tile.image


def test_queue_returns_items_then_none_after_close():
    tiles = TileQueue(maxsize=4)
    first = TileRecord(1, 0, 0, b"a")
    second = TileRecord(1, 1, 0, b"b")
    tiles.put(first)
    tiles.put(second)
    tiles.close()

    assert tiles.get() is first
    assert tiles.get() is second
    # every consumer sees the close
    assert tiles.get() is None
    assert tiles.get() is None


def test_queue_put_after_close():
    tiles = TileQueue()
    tiles.close()
    with pytest.raises(RuntimeError):
        tiles.put(TileRecord(0, 0, 0, b""))


def test_queue_blocks_producer_when_full():
    tiles = TileQueue(maxsize=1)
    producer = threading.Thread(
        target=lambda: [tiles.put(TileRecord(2, i, 0, b"")) for i in range(2)]
    )
    producer.start()

    producer.join(timeout=0.2)
    assert producer.is_alive()

    assert tiles.get().column == 0
    producer.join(timeout=5)
    assert not producer.is_alive()
    assert tiles.get().column == 1


def test_pool_drains_queue_before_exit(png_tile):
    store = RecordingStore()
    tiles = TileQueue(maxsize=2)
    stats = ConversionStats()

    with WorkerPool(tiles, store, jpeg_quality=0, size=3) as pool:
        for column in range(50):
            tiles.put(TileRecord(6, column, 0, png_tile))

    assert not any(worker.is_alive() for worker in pool.workers)
    pool.collect(stats)
    assert stats.written == 50
    assert len(store.tiles) == 50
    assert (49, 63, 11) in store.tiles


def test_pool_isolates_tile_failures(png_tile, gif_tile, caplog):
    store = RecordingStore(fail_on={(2, 63, 11)})
    tiles = TileQueue()
    stats = ConversionStats()

    with caplog.at_level(logging.WARNING):
        with WorkerPool(tiles, store, jpeg_quality=75, size=2) as pool:
            tiles.put(TileRecord(6, 0, 0, png_tile))
            tiles.put(TileRecord(6, 0, 0, png_tile))  # collision
            tiles.put(TileRecord(6, 1, 0, gif_tile))  # unsupported
            tiles.put(TileRecord(6, 2, 0, png_tile))  # insert error
            tiles.put(TileRecord(20, 0, 0, png_tile))  # zoom out of range
            tiles.put(TileRecord(6, 3, 0, png_tile))

    pool.collect(stats)
    assert stats.written == 2
    assert stats.collisions == 1
    assert stats.failed == 3
    assert set(store.tiles) == {(0, 63, 11), (3, 63, 11)}
    assert "Coordinate collision" in caplog.text


def test_pool_joins_workers_when_producer_fails(png_tile):
    store = RecordingStore()
    tiles = TileQueue(maxsize=1)

    with pytest.raises(KeyError):
        with WorkerPool(tiles, store, jpeg_quality=0, size=2) as pool:
            tiles.put(TileRecord(4, 0, 0, png_tile))
            raise KeyError("source cursor failed")

    assert not any(worker.is_alive() for worker in pool.workers)
    assert list(store.tiles) == [(0, 15, 13)]
