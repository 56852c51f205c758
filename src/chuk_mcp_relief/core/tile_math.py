"""
XYZ (Web Mercator) tile coordinate math.

Pure functions, no I/O. Latitudes must lie inside the Mercator domain
(poles excluded); request validation enforces that before anything here runs.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass

from ..constants import TILE_SIZE
from ..models.requests import GeoBounds


@dataclass(frozen=True)
class TileAddress:
    """Integer tile index at a zoom level."""

    zoom: int
    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.zoom}/{self.x}/{self.y}"


@dataclass(frozen=True)
class FractionalTileCoord:
    """Tile-space coordinate with sub-tile precision."""

    x: float
    y: float


@dataclass(frozen=True)
class TileRange:
    """Inclusive range of tile indices covering a viewport."""

    zoom: int
    x_min: int
    x_max: int
    y_min: int
    y_max: int

    @property
    def tiles_x(self) -> int:
        return self.x_max - self.x_min + 1

    @property
    def tiles_y(self) -> int:
        return self.y_max - self.y_min + 1

    @property
    def tile_count(self) -> int:
        return self.tiles_x * self.tiles_y

    def addresses(self) -> Iterator[TileAddress]:
        """Yield addresses row by row (north to south, west to east)."""
        for ty in range(self.y_min, self.y_max + 1):
            for tx in range(self.x_min, self.x_max + 1):
                yield TileAddress(self.zoom, tx, ty)


@dataclass(frozen=True)
class PixelRect:
    """Viewport edges in stitched-raster pixel coordinates."""

    west: float
    north: float
    east: float
    south: float

    @property
    def width(self) -> float:
        return self.east - self.west

    @property
    def height(self) -> float:
        return self.south - self.north


def project(lon: float, lat: float, zoom: int) -> FractionalTileCoord:
    """Project lon/lat (degrees) to fractional tile coordinates."""
    n = 2.0**zoom
    x = (lon + 180.0) / 360.0 * n
    lat_rad = math.radians(lat)
    y = (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n
    return FractionalTileCoord(x, y)


def unproject(x: float, y: float, zoom: int) -> tuple[float, float]:
    """Inverse of project(): fractional tile coordinates to (lon, lat)."""
    n = 2.0**zoom
    lon = x / n * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n))))
    return lon, lat


def corner_coords(bounds: GeoBounds, zoom: int) -> tuple[FractionalTileCoord, FractionalTileCoord]:
    """Project the north-west and south-east corners of a viewport."""
    top_left = project(bounds.west, bounds.north, zoom)
    bottom_right = project(bounds.east, bounds.south, zoom)
    return top_left, bottom_right


def address_range(bounds: GeoBounds, zoom: int) -> TileRange:
    """Inclusive tile index range covering the viewport.

    A degenerate viewport collapses to a single tile index per axis.
    """
    tl, br = corner_coords(bounds, zoom)
    return TileRange(
        zoom=zoom,
        x_min=math.floor(min(tl.x, br.x)),
        x_max=math.floor(max(tl.x, br.x)),
        y_min=math.floor(min(tl.y, br.y)),
        y_max=math.floor(max(tl.y, br.y)),
    )


def pixel_rect(bounds: GeoBounds, tile_range: TileRange, tile_size: int = TILE_SIZE) -> PixelRect:
    """Viewport rectangle inside the stitched raster of ``tile_range``.

    Uses the same fractional corner coordinates as address_range() so the
    sampled rectangle lines up with the stitched tiles exactly.
    """
    tl, br = corner_coords(bounds, tile_range.zoom)
    return PixelRect(
        west=(min(tl.x, br.x) - tile_range.x_min) * tile_size,
        north=(min(tl.y, br.y) - tile_range.y_min) * tile_size,
        east=(max(tl.x, br.x) - tile_range.x_min) * tile_size,
        south=(max(tl.y, br.y) - tile_range.y_min) * tile_size,
    )


def ground_size_m(bounds: GeoBounds) -> tuple[float, float]:
    """Approximate (width, height) of the viewport on the ground in metres."""
    mid_lat = (bounds.south + bounds.north) / 2.0
    meters_per_deg_lon = 111320.0 * math.cos(math.radians(mid_lat))
    meters_per_deg_lat = 111320.0
    return (
        (bounds.east - bounds.west) * meters_per_deg_lon,
        (bounds.north - bounds.south) * meters_per_deg_lat,
    )
