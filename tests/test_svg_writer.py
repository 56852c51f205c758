"""Tests for chuk_mcp_relief.core.svg_writer module."""

import xml.etree.ElementTree as ET

import numpy as np
import pytest

from chuk_mcp_relief.constants import HAIRLINE_STROKE, MANIFEST_NAME, SVG_MIME, TEXT_MIME
from chuk_mcp_relief.core.contours import ContourLayer, extract_layer
from chuk_mcp_relief.core.raster_io import SampleGrid
from chuk_mcp_relief.core.svg_writer import (
    ManifestSummary,
    compensated_stroke,
    layer_filename,
    project_rings,
    registration_marks,
    render_layer_svg,
    render_manifest,
    scale_factors,
    serialize_layers,
)
from chuk_mcp_relief.models.requests import ExportRequest, GeoBounds

SVG_NS = "{http://www.w3.org/2000/svg}"


@pytest.fixture
def request_in():
    bounds = GeoBounds(west=7.6, south=45.95, east=7.7, north=46.0)
    return ExportRequest(bounds=bounds, grid=64)


@pytest.fixture
def square_layer():
    values = np.zeros((65, 65), dtype=np.float32)
    values[16:48, 16:48] = 10.0
    return extract_layer(values, 5.0)


def _parse(svg: bytes) -> ET.Element:
    return ET.fromstring(svg.decode("utf-8"))


# ===========================================================================
# Projection helpers
# ===========================================================================


class TestScaleFactors:
    def test_default_canvas(self):
        sx, sy = scale_factors(256, 20.0, 12.0)
        assert sx == pytest.approx(20.0 / 255)
        assert sy == pytest.approx(12.0 / 255)

    def test_last_index_maps_to_far_edge(self):
        sx, sy = scale_factors(101, 10.0, 5.0)
        assert 100 * sx == pytest.approx(10.0)
        assert 100 * sy == pytest.approx(5.0)


class TestProjectRings:
    def test_physical_units(self, square_layer):
        rings = project_rings(square_layer, 65, 16.0, 8.0)
        assert len(rings) == 1
        assert rings[0][:, 0].max() <= 16.0
        assert rings[0][:, 1].max() <= 8.0
        np.testing.assert_allclose(rings[0], square_layer.rings[0] * [0.25, 0.125])


class TestCompensatedStroke:
    @pytest.mark.parametrize("n,w,h", [(256, 20.0, 12.0), (64, 300.0, 500.0), (1024, 1.0, 1.0)])
    def test_round_trip(self, n, w, h):
        sx, sy = scale_factors(n, w, h)
        stroke = compensated_stroke(sx, sy, 0.001)
        assert stroke * max(sx, sy) == pytest.approx(0.001)

    def test_uses_larger_scale(self):
        assert compensated_stroke(0.5, 2.0, 1.0) == 0.5


class TestRegistrationMarks:
    def test_four_corners(self):
        marks = registration_marks(20.0, 12.0, 0.125, 0.35)
        centres = {(cx, cy) for cx, cy, _ in marks}
        assert centres == {(0.35, 0.35), (19.65, 0.35), (0.35, 11.65), (19.65, 11.65)}
        assert all(r == 0.0625 for _, _, r in marks)


class TestLayerFilename:
    def test_padded_index(self):
        assert layer_filename(1, 120.0) == "layer_001_120m.svg"
        assert layer_filename(42, 3000.0) == "layer_042_3000m.svg"

    def test_rounds_half_up(self):
        assert layer_filename(3, 12.5) == "layer_003_13m.svg"
        assert layer_filename(3, 12.4) == "layer_003_12m.svg"
        assert layer_filename(3, -12.5) == "layer_003_-12m.svg"


# ===========================================================================
# Rendering
# ===========================================================================


class TestRenderLayerSvg:
    def test_canvas_and_viewbox(self, square_layer, request_in):
        root = _parse(render_layer_svg(square_layer, request_in, 65))
        assert root.get("width") == "20in"
        assert root.get("height") == "12in"
        assert root.get("viewBox") == "0 0 20 12"

    def test_registration_circles(self, square_layer, request_in):
        root = _parse(render_layer_svg(square_layer, request_in, 65))
        circles = root.findall(f"{SVG_NS}circle")
        assert len(circles) == 4
        for c in circles:
            assert c.get("fill") == "none"
            assert float(c.get("r")) == pytest.approx(0.0625)
            assert float(c.get("stroke-width")) == pytest.approx(HAIRLINE_STROKE["in"])

    def test_marks_optional(self, square_layer, request_in):
        req = request_in.model_copy(update={"registration_marks": False})
        root = _parse(render_layer_svg(square_layer, req, 65))
        assert root.findall(f"{SVG_NS}circle") == []

    def test_scaled_group_with_compensated_stroke(self, square_layer, request_in):
        root = _parse(render_layer_svg(square_layer, request_in, 65))
        group = root.find(f"{SVG_NS}g")
        assert group.get("transform") == "scale(0.3125 0.1875)"

        path = group.find(f"{SVG_NS}path")
        assert path.get("fill") == "none"
        assert path.get("stroke") == "black"
        stroke = float(path.get("stroke-width"))
        assert stroke * 0.3125 == pytest.approx(0.001)

    def test_one_subpath_per_ring(self, request_in):
        values = np.full((65, 65), 10.0, dtype=np.float32)
        values[30:34, 30:34] = 0.0
        layer = extract_layer(values, 5.0)
        root = _parse(render_layer_svg(layer, request_in, 65))
        d = root.find(f"{SVG_NS}g").find(f"{SVG_NS}path").get("d")
        assert d.count("M ") == 2
        assert d.count(" Z") == 2

    def test_millimetres(self, square_layer, request_in):
        req = request_in.model_copy(update={"units": "mm", "width": 300.0, "height": 200.0})
        root = _parse(render_layer_svg(square_layer, req, 65))
        assert root.get("width") == "300mm"
        assert root.get("viewBox") == "0 0 300 200"


class TestRenderManifest:
    def test_contents(self):
        summary = ManifestSummary(
            min_elevation=105.123,
            max_elevation=242.0,
            interval_m=30.0,
            grid=256,
            width=20.0,
            height=12.0,
            units="in",
            layers=[("layer_001_120m.svg", 120.0), ("layer_002_150m.svg", 150.0)],
        )
        text = render_manifest(summary).decode("utf-8")
        assert "Min elevation: 105.12 m" in text
        assert "Max elevation: 242.00 m" in text
        assert "Interval: 30 m" in text
        assert "Grid: 256 x 256" in text
        assert "Layers written: 2" in text
        assert "layer_002_150m.svg" in text
        assert "CUT" in text


# ===========================================================================
# Serialization
# ===========================================================================


class TestSerializeLayers:
    def _grid(self):
        return SampleGrid(np.zeros((65, 65), dtype=np.float32), 100.0, 260.0)

    def test_numbering_and_manifest_last(self, request_in, square_layer):
        layers = [
            ContourLayer(level=150.0, rings=square_layer.rings),
            ContourLayer(level=120.0, rings=square_layer.rings),
        ]
        artifacts = serialize_layers(layers, request_in, self._grid())

        names = [a.filename for a in artifacts]
        assert names == ["layer_001_120m.svg", "layer_002_150m.svg", MANIFEST_NAME]
        assert artifacts[0].mime_type == SVG_MIME
        assert artifacts[-1].mime_type == TEXT_MIME

    def test_empty_layers_not_numbered(self, request_in, square_layer):
        layers = [
            ContourLayer(level=120.0, rings=square_layer.rings),
            ContourLayer(level=150.0),
            ContourLayer(level=180.0, rings=square_layer.rings),
        ]
        artifacts = serialize_layers(layers, request_in, self._grid())
        assert [a.filename for a in artifacts[:-1]] == [
            "layer_001_120m.svg",
            "layer_002_180m.svg",
        ]
        assert b"Layers written: 2" in artifacts[-1].content

    def test_content_is_svg(self, request_in, square_layer):
        artifacts = serialize_layers(
            [ContourLayer(level=120.0, rings=square_layer.rings)], request_in, self._grid()
        )
        assert _parse(artifacts[0].content).tag == f"{SVG_NS}svg"
