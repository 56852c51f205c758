"""
Physical projection and SVG serialization of contour layers.

Each layer becomes one SVG whose canvas is the requested physical size
(inches or millimetres) with a matching viewBox, so one user unit equals one
physical unit. Contour rings stay in grid coordinates inside a
``scale(sx sy)`` group; the stroke width is divided by the larger scale
factor so the rendered line is a hairline after the transform. Registration
circles are drawn in physical space, outside the scaled group, and appear
identically on every layer.
"""

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import svgwrite

from ..constants import (
    HAIRLINE_STROKE,
    LAYER_EXTENSION,
    MANIFEST_NAME,
    SVG_MIME,
    STROKE_COLOR,
    TEXT_MIME,
)
from ..models.requests import ExportRequest
from .contours import ContourLayer, Ring
from .raster_io import SampleGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerArtifact:
    """One named file of the export bundle."""

    filename: str
    content: bytes
    mime_type: str = SVG_MIME


@dataclass
class ManifestSummary:
    """Facts recorded in the README shipped with every bundle."""

    min_elevation: float
    max_elevation: float
    interval_m: float
    grid: int
    width: float
    height: float
    units: str
    layers: list[tuple[str, float]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def scale_factors(n: int, width: float, height: float) -> tuple[float, float]:
    """Physical units per grid step: grid index n-1 maps to the far edge."""
    return width / (n - 1), height / (n - 1)


def project_rings(layer: ContourLayer, n: int, width: float, height: float) -> list[Ring]:
    """Rings of a layer in physical units (x to the right, y down)."""
    sx, sy = scale_factors(n, width, height)
    factors = np.array([sx, sy], dtype=np.float64)
    return [ring * factors for ring in layer.rings]


def compensated_stroke(sx: float, sy: float, base: float) -> float:
    """Stroke width to use inside a scale(sx sy) group so it renders as ``base``."""
    return base / max(sx, sy)


def registration_marks(
    width: float, height: float, diameter: float, inset: float
) -> list[tuple[float, float, float]]:
    """(cx, cy, r) of the four corner alignment circles."""
    r = diameter / 2.0
    return [
        (inset, inset, r),
        (width - inset, inset, r),
        (inset, height - inset, r),
        (width - inset, height - inset, r),
    ]


def layer_filename(index: int, level: float) -> str:
    """``layer_001_120m.svg``; the elevation label rounds half up."""
    label = int(math.floor(level + 0.5))
    return f"layer_{index:03d}_{label}m.{LAYER_EXTENSION}"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _fmt(value: float) -> str:
    return format(float(value), ".10g")


def _ring_path(ring: Ring) -> str:
    # closing point is implied by Z
    pts = ring[:-1] if len(ring) > 1 and np.array_equal(ring[0], ring[-1]) else ring
    body = " L ".join(f"{x:.4f},{y:.4f}" for x, y in pts)
    return f"M {body} Z"


def render_layer_svg(layer: ContourLayer, request: ExportRequest, n: int) -> bytes:
    """
    Render one contour layer as a standalone SVG document.

    Args:
        layer: Non-empty contour layer in grid coordinates
        request: Export parameters (canvas size, units, marks)
        n: Sample grid size the rings were extracted from

    Returns:
        UTF-8 encoded SVG document
    """
    width, height, units = request.width, request.height, request.units
    hairline = HAIRLINE_STROKE[units]

    dwg = svgwrite.Drawing(
        size=(f"{_fmt(width)}{units}", f"{_fmt(height)}{units}"),
        viewBox=f"0 0 {_fmt(width)} {_fmt(height)}",
        profile="full",
        debug=False,
    )

    if request.registration_marks:
        for cx, cy, r in registration_marks(
            width, height, request.mark_diameter, request.mark_inset
        ):
            dwg.add(
                dwg.circle(
                    center=(_fmt(cx), _fmt(cy)),
                    r=_fmt(r),
                    fill="none",
                    stroke=STROKE_COLOR,
                    stroke_width=_fmt(hairline),
                )
            )

    sx, sy = scale_factors(n, width, height)
    group = dwg.g(transform=f"scale({_fmt(sx)} {_fmt(sy)})")
    group.add(
        dwg.path(
            d=" ".join(_ring_path(ring) for ring in layer.rings),
            fill="none",
            stroke=STROKE_COLOR,
            stroke_width=_fmt(compensated_stroke(sx, sy, hairline)),
        )
    )
    dwg.add(group)

    return dwg.tostring().encode("utf-8")


def render_manifest(summary: ManifestSummary) -> bytes:
    """README.txt describing the bundle."""
    lines = [
        "Topo relief layer export",
        f"Min elevation: {summary.min_elevation:.2f} m",
        f"Max elevation: {summary.max_elevation:.2f} m",
        f"Interval: {_fmt(summary.interval_m)} m",
        f"Grid: {summary.grid} x {summary.grid}",
        f"Canvas: {_fmt(summary.width)} x {_fmt(summary.height)} {summary.units}",
        f"Layers written: {len(summary.layers)}",
        "",
    ]
    lines += [f"  {name}  >= {level:.2f} m" for name, level in summary.layers]
    lines += [
        "",
        "Each SVG is a silhouette slice (everything ABOVE the layer elevation).",
        "Set the black stroke to CUT in your laser software.",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")


def serialize_layers(
    layers: list[ContourLayer], request: ExportRequest, grid: SampleGrid
) -> list[LayerArtifact]:
    """
    Serialize non-empty layers (ascending) followed by the manifest.

    Layers are numbered 1..N over the layers actually emitted, so numbering
    is contiguous even when some thresholds produced no rings.
    """
    emitted = sorted(
        (layer for layer in layers if not layer.is_empty), key=lambda layer: layer.level
    )

    artifacts: list[LayerArtifact] = []
    for index, layer in enumerate(emitted, start=1):
        name = layer_filename(index, layer.level)
        artifacts.append(LayerArtifact(name, render_layer_svg(layer, request, grid.size)))
        logger.debug(f"Rendered {name} ({len(layer.rings)} rings)")

    summary = ManifestSummary(
        min_elevation=grid.min_elevation,
        max_elevation=grid.max_elevation,
        interval_m=request.interval_m,
        grid=grid.size,
        width=request.width,
        height=request.height,
        units=request.units,
        layers=[(a.filename, layer.level) for a, layer in zip(artifacts, emitted)],
    )
    artifacts.append(LayerArtifact(MANIFEST_NAME, render_manifest(summary), TEXT_MIME))
    return artifacts
