"""Shared test fixtures for chuk-mcp-relief."""

import io

import numpy as np
import pytest
from PIL import Image
from unittest.mock import AsyncMock, MagicMock

from chuk_mcp_relief.constants import TERRARIUM_OFFSET, TILE_SIZE
from chuk_mcp_relief.core.errors import TileFetchError
from chuk_mcp_relief.core.tile_math import TileAddress


def encode_terrarium(elevation: np.ndarray) -> np.ndarray:
    """Pack elevations (metres) into Terrarium RGB, truncated to 1/256 m."""
    v = np.asarray(elevation, dtype=np.float64) + TERRARIUM_OFFSET
    r = np.floor(v / 256.0)
    g = np.floor(v - r * 256.0)
    b = np.floor((v - r * 256.0 - g) * 256.0)
    return np.stack([r, g, b], axis=-1).astype(np.uint8)


class FakeTileSource:
    """In-memory tile source: elevation is a function of global pixel coords."""

    url_template = "memory://{z}/{x}/{y}.png"

    def __init__(self, elevation_fn, tile_size: int = TILE_SIZE, fail: set | None = None):
        self.elevation_fn = elevation_fn
        self.tile_size = tile_size
        self.cache = None
        self.fail = fail or set()
        self.calls: list[TileAddress] = []

    def fetch_tile(self, address: TileAddress) -> np.ndarray:
        self.calls.append(address)
        if (address.x, address.y) in self.fail:
            raise TileFetchError(address, "HTTP 503")
        rows, cols = np.mgrid[0 : self.tile_size, 0 : self.tile_size]
        gx = address.x * self.tile_size + cols
        gy = address.y * self.tile_size + rows
        return np.asarray(self.elevation_fn(gx, gy), dtype=np.float32)


@pytest.fixture
def terrarium_png():
    """Factory: elevation array -> Terrarium PNG bytes."""

    def _make(elevation: np.ndarray) -> bytes:
        buf = io.BytesIO()
        Image.fromarray(encode_terrarium(elevation)).save(buf, format="PNG")
        return buf.getvalue()

    return _make


@pytest.fixture
def sample_bbox():
    """Small alpine viewport, a few zoom-12 tiles wide."""
    return [7.60, 45.95, 7.70, 46.00]


@pytest.fixture
def cone_source():
    """Tile source whose terrain is a cone peaking inside ``sample_bbox`` at 1500 m."""

    def _cone(gx, gy):
        dist = np.hypot(gx - 546_563.0, gy - 373_148.0)
        return 1500.0 - dist

    return FakeTileSource(_cone)


@pytest.fixture
def make_tile_source():
    """Factory for FakeTileSource with a custom elevation function."""
    return FakeTileSource


@pytest.fixture
def mock_artifact_store():
    """Mock artifact store."""
    store = AsyncMock()
    store.store = AsyncMock(return_value=None)
    store.retrieve = AsyncMock(return_value=b"fake-zip-bytes")
    return store


@pytest.fixture
def mock_manager(mock_artifact_store, cone_source):
    """ReliefManager with an in-memory tile source and mocked store."""
    from chuk_mcp_relief.core.relief_manager import ReliefManager

    manager = ReliefManager(tile_source=cone_source, fetch_concurrency=4)
    manager._get_store = MagicMock(return_value=mock_artifact_store)
    return manager


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp
