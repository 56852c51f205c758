"""
Raster operations for relief export.

All functions are synchronous; callers wrap them in asyncio.to_thread().
Handles the tile-count ceiling, stitching decoded tiles into one elevation
surface, and nearest-neighbour resampling onto the square analysis grid.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import MAX_TILES, TILE_SIZE, ErrorMessages
from .errors import AreaTooLargeError, DegenerateElevationError, TileFetchError
from .tile_math import PixelRect, TileAddress, TileRange

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]


@dataclass
class ElevationRaster:
    """Stitched elevation surface, row-major (row 0 is the northern edge)."""

    data: FloatArray

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])


@dataclass
class SampleGrid:
    """Square N x N elevation sample grid and its elevation range."""

    values: FloatArray
    min_elevation: float
    max_elevation: float

    @property
    def size(self) -> int:
        return int(self.values.shape[0])


# ---------------------------------------------------------------------------
# Stitching
# ---------------------------------------------------------------------------


def check_tile_budget(tile_range: TileRange, max_tiles: int = MAX_TILES) -> int:
    """Refuse selections needing more than ``max_tiles`` tiles.

    Returns:
        The tile count, when within budget

    Raises:
        AreaTooLargeError: carrying the computed tile count
    """
    count = tile_range.tile_count
    if count > max_tiles:
        raise AreaTooLargeError(count, max_tiles)
    return count


def stitch_tiles(
    tile_range: TileRange,
    tiles: Mapping[tuple[int, int], FloatArray],
    tile_size: int = TILE_SIZE,
) -> ElevationRaster:
    """
    Assemble decoded tiles into one contiguous raster.

    Args:
        tile_range: Inclusive tile index range
        tiles: Decoded (tile_size, tile_size) arrays keyed by (x, y)
        tile_size: Tile edge length in pixels

    Returns:
        ElevationRaster of (tiles_y * tile_size, tiles_x * tile_size)

    Raises:
        TileFetchError: if any tile of the range is absent
    """
    height = tile_range.tiles_y * tile_size
    width = tile_range.tiles_x * tile_size
    data = np.empty((height, width), dtype=np.float32)

    for address in tile_range.addresses():
        tile = tiles.get((address.x, address.y))
        if tile is None:
            raise TileFetchError(address, ErrorMessages.TILE_MISSING.format(address))

        row0 = (address.y - tile_range.y_min) * tile_size
        col0 = (address.x - tile_range.x_min) * tile_size
        data[row0 : row0 + tile_size, col0 : col0 + tile_size] = tile

    logger.debug(f"Stitched {tile_range.tile_count} tiles into {width}x{height} raster")
    return ElevationRaster(data)


def tile_key(address: TileAddress) -> tuple[int, int]:
    return address.x, address.y


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------


def _nearest_indices(start: float, stop: float, n: int, limit: int) -> NDArray[np.intp]:
    """Nearest source index for n evenly spaced positions from start to stop."""
    positions = start + (stop - start) * (np.arange(n, dtype=np.float64) / (n - 1))
    # round half up, like the pixel-centre convention of the tile grid
    indices = np.floor(positions + 0.5)
    return np.clip(indices, 0, limit - 1).astype(np.intp)


def resample(raster: ElevationRaster, rect: PixelRect, n: int) -> SampleGrid:
    """
    Sample an N x N grid from the raster over a pixel rectangle.

    Grid cell (j, i) reads the source pixel nearest to
    (west + (east - west) * i / (n - 1), north + (south - north) * j / (n - 1)),
    clamped to the raster. Nearest-neighbour only: no interpolation across
    tile seams.

    Args:
        raster: Stitched elevation raster
        rect: Viewport in raster pixel coordinates
        n: Grid size (>= 2)

    Returns:
        SampleGrid with min/max over finite samples

    Raises:
        DegenerateElevationError: flat or entirely non-finite samples
    """
    if n < 2:
        raise ValueError(ErrorMessages.GRID_TOO_SMALL.format(2, n))

    cols = _nearest_indices(rect.west, rect.east, n, raster.width)
    rows = _nearest_indices(rect.north, rect.south, n, raster.height)
    values = raster.data[np.ix_(rows, cols)].astype(np.float32)

    finite = values[np.isfinite(values)]
    if finite.size == 0:
        raise DegenerateElevationError(math.nan, math.nan)

    min_elev = float(finite.min())
    max_elev = float(finite.max())
    if max_elev <= min_elev:
        raise DegenerateElevationError(min_elev, max_elev)

    return SampleGrid(values=values, min_elevation=min_elev, max_elevation=max_elev)
