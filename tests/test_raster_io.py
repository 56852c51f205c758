"""Tests for chuk_mcp_relief.core.raster_io module."""

import numpy as np
import pytest

from chuk_mcp_relief.core.errors import (
    AreaTooLargeError,
    DegenerateElevationError,
    TileFetchError,
)
from chuk_mcp_relief.core.raster_io import (
    ElevationRaster,
    check_tile_budget,
    resample,
    stitch_tiles,
)
from chuk_mcp_relief.core.tile_math import PixelRect, TileRange


def _range(tiles_x, tiles_y) -> TileRange:
    return TileRange(zoom=12, x_min=100, x_max=99 + tiles_x, y_min=200, y_max=199 + tiles_y)


# ===========================================================================
# Tile budget
# ===========================================================================


class TestCheckTileBudget:
    def test_exactly_64_tiles_accepted(self):
        assert check_tile_budget(_range(8, 8)) == 64

    def test_65_tiles_rejected(self):
        with pytest.raises(AreaTooLargeError) as exc_info:
            check_tile_budget(_range(13, 5))
        assert exc_info.value.tile_count == 65

    def test_custom_ceiling(self):
        with pytest.raises(AreaTooLargeError):
            check_tile_budget(_range(2, 2), max_tiles=3)


# ===========================================================================
# Stitching
# ===========================================================================


class TestStitchTiles:
    def test_places_tiles(self):
        r = _range(2, 2)
        tiles = {
            (100, 200): np.full((4, 4), 1.0),
            (101, 200): np.full((4, 4), 2.0),
            (100, 201): np.full((4, 4), 3.0),
            (101, 201): np.full((4, 4), 4.0),
        }
        raster = stitch_tiles(r, tiles, tile_size=4)

        assert (raster.height, raster.width) == (8, 8)
        assert raster.data[0, 0] == 1.0
        assert raster.data[0, 7] == 2.0
        assert raster.data[7, 0] == 3.0
        assert raster.data[7, 7] == 4.0
        assert raster.data.dtype == np.float32

    def test_missing_tile(self):
        r = _range(2, 1)
        with pytest.raises(TileFetchError) as exc_info:
            stitch_tiles(r, {(100, 200): np.zeros((4, 4))}, tile_size=4)
        assert exc_info.value.address.x == 101


# ===========================================================================
# Resampling
# ===========================================================================


class TestResample:
    def test_linear_ramp_extremes(self):
        ramp = np.tile(np.arange(512, dtype=np.float32), (256, 1))
        raster = ElevationRaster(ramp)
        rect = PixelRect(west=10.0, north=0.0, east=500.0, south=255.0)

        grid = resample(raster, rect, 64)

        assert grid.size == 64
        assert grid.values.shape == (64, 64)
        assert grid.min_elevation == 10.0
        assert grid.max_elevation == 500.0
        np.testing.assert_array_equal(grid.values[:, 0], 10.0)
        np.testing.assert_array_equal(grid.values[:, -1], 500.0)

    def test_nearest_rounds_half_up(self):
        ramp = np.tile(np.arange(4, dtype=np.float32), (4, 1))
        grid = resample(ElevationRaster(ramp), PixelRect(0.5, 0.0, 2.5, 3.0), 2)
        assert grid.values[0, 0] == 1.0
        assert grid.values[0, 1] == 3.0

    def test_clamps_to_raster(self):
        ramp = np.tile(np.arange(8, dtype=np.float32), (8, 1))
        grid = resample(ElevationRaster(ramp), PixelRect(-3.0, -3.0, 12.0, 12.0), 4)
        assert grid.min_elevation == 0.0
        assert grid.max_elevation == 7.0

    def test_row_zero_is_north(self):
        data = np.tile(np.arange(16, dtype=np.float32)[:, None], (1, 16))
        grid = resample(ElevationRaster(data), PixelRect(0.0, 0.0, 15.0, 15.0), 4)
        assert grid.values[0, 0] < grid.values[-1, 0]

    def test_flat_raster_degenerate(self):
        raster = ElevationRaster(np.full((32, 32), 12.0, dtype=np.float32))
        with pytest.raises(DegenerateElevationError) as exc_info:
            resample(raster, PixelRect(0.0, 0.0, 31.0, 31.0), 8)
        assert exc_info.value.min_elevation == 12.0
        assert exc_info.value.max_elevation == 12.0

    def test_all_nan_degenerate(self):
        raster = ElevationRaster(np.full((8, 8), np.nan, dtype=np.float32))
        with pytest.raises(DegenerateElevationError):
            resample(raster, PixelRect(0.0, 0.0, 7.0, 7.0), 4)

    def test_range_ignores_non_finite(self):
        data = np.tile(np.arange(8, dtype=np.float32), (8, 1))
        data[0, 0] = np.nan
        grid = resample(ElevationRaster(data), PixelRect(0.0, 0.0, 7.0, 7.0), 8)
        assert grid.min_elevation == 0.0
        assert np.isnan(grid.values[0, 0])

    def test_grid_too_small(self):
        raster = ElevationRaster(np.zeros((4, 4), dtype=np.float32))
        with pytest.raises(ValueError):
            resample(raster, PixelRect(0.0, 0.0, 3.0, 3.0), 1)
