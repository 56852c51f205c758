"""
Marching-squares isoband extraction.

For a level t the extractor returns closed rings bounding the region where
the sample grid is >= t. Coordinates are grid indices: x = column, y = row,
both in [0, N-1].

Ring contract:

- The grid is padded with a virtual border below every level, so regions
  touching the grid edge close along the edge (border points are clamped
  onto the first/last row and column).
- Rings are explicitly closed: the first point is repeated last.
- Outer boundaries have positive signed (shoelace) area in (x, y) grid
  coordinates, i.e. they run clockwise on screen with y pointing down.
  Holes have negative area.
- Edge crossings are linearly interpolated between a corner >= t and a
  corner < t; a non-finite corner puts the crossing at the edge midpoint.
  The fraction is clamped to [CONTOUR_EDGE_MARGIN, 1 - CONTOUR_EDGE_MARGIN]
  so a sample equal to t never puts the crossings of two of its edges on
  the same point, and rings stay simple.

Saddle rule: a cell with two diagonal corners >= t and two < t takes the
mean of its four corners as the centre value. If the centre is >= t the two
high corners are joined through the cell; otherwise each is cut off on its
own. The rule is applied identically for every level, and both pairings
keep the high side of every segment on the same hand, so rings never cross
and winding stays consistent.

Segments are chained by edge identity, not by coordinates. Each crossed
grid edge starts exactly one segment and ends exactly one, so every chain
is a cycle and rings close exactly.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import CONTOUR_EDGE_MARGIN
from .raster_io import FloatArray, SampleGrid

logger = logging.getLogger(__name__)

Ring = NDArray[np.float64]
EdgeKey = tuple[str, int, int]


@dataclass
class ContourLayer:
    """Rings bounding 'elevation >= level' on the sample grid."""

    level: float
    rings: list[Ring] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rings

    @property
    def point_count(self) -> int:
        return sum(len(r) for r in self.rings)


def signed_area(ring: Ring) -> float:
    """Shoelace area of a closed ring (first point repeated last)."""
    x = ring[:, 0]
    y = ring[:, 1]
    return 0.5 * float(np.sum(x[:-1] * y[1:] - x[1:] * y[:-1]))


# ---------------------------------------------------------------------------
# Cell walk
# ---------------------------------------------------------------------------


def _cell_edges(r: int, c: int) -> tuple[EdgeKey, EdgeKey, EdgeKey, EdgeKey]:
    """Edges of padded cell (r, c), clockwise from the top edge.

    Edge k joins walk corner k to corner k + 1, with corners ordered
    top-left, top-right, bottom-right, bottom-left.
    """
    return (
        ("h", r, c),
        ("v", r, c + 1),
        ("h", r + 1, c),
        ("v", r, c),
    )


def _cell_segments(
    case: int,
    edges: tuple[EdgeKey, ...],
    centre_high: bool,
) -> list[tuple[EdgeKey, EdgeKey]]:
    """Directed segments (exit edge -> entry edge) for one cell."""
    states = ((case >> 3) & 1, (case >> 2) & 1, (case >> 1) & 1, case & 1)

    # crossings in walk order: (edge, is_exit)
    crossings = [
        (edges[k], bool(states[k]))
        for k in range(4)
        if states[k] != states[(k + 1) % 4]
    ]

    if len(crossings) == 2:
        (e0, exit0), (e1, _) = crossings
        return [(e0, e1)] if exit0 else [(e1, e0)]

    # saddle: crossings alternate exit/entry around the cell
    segments = []
    for i, (edge, is_exit) in enumerate(crossings):
        if not is_exit:
            continue
        if centre_high:
            partner = crossings[(i + 1) % 4][0]
        else:
            partner = crossings[(i - 1) % 4][0]
        segments.append((edge, partner))
    return segments


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class _EdgePoints:
    """Interpolated crossing positions on the padded grid."""

    def __init__(self, padded: NDArray[np.float64], level: float) -> None:
        self.padded = padded
        self.level = level
        self.max_row = padded.shape[0] - 3
        self.max_col = padded.shape[1] - 3
        self._cache: dict[EdgeKey, tuple[float, float]] = {}

    def _position(self, pr: int, pc: int) -> tuple[float, float]:
        x = float(min(max(pc - 1, 0), self.max_col))
        y = float(min(max(pr - 1, 0), self.max_row))
        return x, y

    def point(self, key: EdgeKey) -> tuple[float, float]:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        kind, r, c = key
        a = (r, c)
        b = (r, c + 1) if kind == "h" else (r + 1, c)
        va = self.padded[a]
        vb = self.padded[b]

        if va >= self.level:
            inside, outside, v_in, v_out = a, b, va, vb
        else:
            inside, outside, v_in, v_out = b, a, vb, va

        if np.isfinite(v_in) and np.isfinite(v_out):
            s = float((v_in - self.level) / (v_in - v_out))
            s = min(max(s, CONTOUR_EDGE_MARGIN), 1.0 - CONTOUR_EDGE_MARGIN)
        else:
            s = 0.5

        # border edges collapse onto the clamped sample position
        x0, y0 = self._position(*inside)
        x1, y1 = self._position(*outside)
        pt = (x0 + s * (x1 - x0), y0 + s * (y1 - y0))

        self._cache[key] = pt
        return pt


def _clean_ring(points: list[tuple[float, float]]) -> list[tuple[float, float]]:
    """Drop repeated points and zero-width back-tracks (A, B, A -> A)."""
    changed = True
    while changed and len(points) >= 3:
        changed = False
        out: list[tuple[float, float]] = []
        for p in points:
            if out and out[-1] == p:
                changed = True
                continue
            if len(out) >= 2 and out[-2] == p:
                out.pop()
                changed = True
                continue
            out.append(p)
        # wrap-around
        while len(out) >= 2 and out[0] == out[-1]:
            out.pop()
            changed = True
        while len(out) >= 3 and out[1] == out[-1]:
            out.pop(0)
            out.pop()
            changed = True
        points = out
    return points


def _chain(segments: dict[EdgeKey, EdgeKey]) -> list[list[EdgeKey]]:
    """Follow exit -> entry links until every segment belongs to a cycle."""
    cycles: list[list[EdgeKey]] = []
    visited: set[EdgeKey] = set()
    for start in segments:
        if start in visited:
            continue
        cycle = [start]
        visited.add(start)
        key = segments[start]
        while key != start:
            if key in visited or key not in segments:
                raise RuntimeError(f"Open contour chain at edge {key}")
            cycle.append(key)
            visited.add(key)
            key = segments[key]
        cycles.append(cycle)
    return cycles


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_layer(values: FloatArray, level: float) -> ContourLayer:
    """
    Extract the closed rings of {values >= level}.

    Args:
        values: 2D sample grid (rows x cols), at least 2 x 2
        level: Threshold elevation

    Returns:
        ContourLayer, possibly with no rings
    """
    grid = np.asarray(values, dtype=np.float64)
    if grid.ndim != 2 or min(grid.shape) < 2:
        raise ValueError(f"Contour grid must be 2D and at least 2x2, got shape {grid.shape}")

    padded = np.full((grid.shape[0] + 2, grid.shape[1] + 2), -np.inf)
    padded[1:-1, 1:-1] = grid

    with np.errstate(invalid="ignore"):
        high = (padded >= level).astype(np.uint8)

    case = (high[:-1, :-1] << 3) | (high[:-1, 1:] << 2) | (high[1:, 1:] << 1) | high[1:, :-1]
    rows, cols = np.nonzero((case != 0) & (case != 15))

    links: dict[EdgeKey, EdgeKey] = {}
    for r, c in zip(rows.tolist(), cols.tolist()):
        cell_case = int(case[r, c])
        centre_high = False
        if cell_case in (5, 10):
            centre = padded[r : r + 2, c : c + 2].mean()
            centre_high = bool(centre >= level)
        for start, end in _cell_segments(cell_case, _cell_edges(r, c), centre_high):
            links[start] = end

    points = _EdgePoints(padded, level)
    rings: list[Ring] = []
    for cycle in _chain(links):
        pts = _clean_ring([points.point(key) for key in cycle])
        if len(pts) < 3:
            continue
        ring = np.array(pts + [pts[0]], dtype=np.float64)
        if abs(signed_area(ring)) < 1e-12:
            continue
        rings.append(ring)

    return ContourLayer(level=float(level), rings=rings)


def extract_layers(grid: SampleGrid, thresholds: Iterable[float]) -> list[ContourLayer]:
    """
    Extract one layer per threshold, ascending, dropping empty layers.

    Any failure on one level propagates: a partial stack is never returned.
    """
    layers: list[ContourLayer] = []
    for level in sorted(thresholds):
        layer = extract_layer(grid.values, level)
        if layer.is_empty:
            logger.info(f"Level {level:.1f}m does not intersect the grid, skipped")
            continue
        layers.append(layer)

    logger.info(f"Extracted {len(layers)} non-empty contour layers")
    return layers


def ring_summary(layer: ContourLayer) -> dict[str, Any]:
    """Counts used in responses and the manifest."""
    outer = sum(1 for r in layer.rings if signed_area(r) > 0)
    return {
        "level": layer.level,
        "rings": len(layer.rings),
        "outer_rings": outer,
        "holes": len(layer.rings) - outer,
        "points": layer.point_count,
    }
