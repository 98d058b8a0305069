import io
import sqlite3

import pytest
from PIL import Image


def _image_bytes(fmt, size=(32, 32), color=(200, 80, 40)):
    stream = io.BytesIO()
    Image.new("RGB", size, color).save(stream, format=fmt)
    return stream.getvalue()


@pytest.fixture
def png_tile():
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_tile():
    return _image_bytes("JPEG", color=(10, 120, 220))


@pytest.fixture
def gif_tile():
    return _image_bytes("GIF")


@pytest.fixture
def make_mbtiles(tmp_path):
    """Factory writing an MBTiles file from (zoom, column, row, data) tuples"""

    def _make(tiles, name="source.mbtiles", primary_key=True, metadata=None):
        path = tmp_path / name
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE metadata (name TEXT, value TEXT)")
        key = ", PRIMARY KEY (zoom_level, tile_column, tile_row)" if primary_key else ""
        conn.execute(
            "CREATE TABLE tiles (zoom_level INTEGER, tile_column INTEGER, "
            f"tile_row INTEGER, tile_data BLOB{key})"
        )
        for name_, value in (metadata or {"name": "test", "format": "png"}).items():
            conn.execute("INSERT INTO metadata (name, value) VALUES (?, ?)", (name_, value))
        conn.executemany(
            "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) "
            "VALUES (?, ?, ?, ?)",
            tiles,
        )
        conn.commit()
        conn.close()
        return path

    return _make


@pytest.fixture
def read_db():
    """Run a query against a finished database and return all rows"""

    def _read(path, sql, params=()):
        conn = sqlite3.connect(path)
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    return _read
