"""Tests for chuk_mcp_relief.core.tile_source module."""

from unittest.mock import MagicMock

import numpy as np
import pytest
import requests

from chuk_mcp_relief.core.errors import TileFetchError
from chuk_mcp_relief.core.tile_cache import TileCache
from chuk_mcp_relief.core.tile_math import TileAddress
from chuk_mcp_relief.core.tile_source import (
    TerrariumTileSource,
    decode_terrarium,
    decode_tile_png,
)

ADDR = TileAddress(12, 2134, 1457)


def _response(content=b"", ok=True, status=200):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status
    resp.content = content
    return resp


# ===========================================================================
# Decoding
# ===========================================================================


class TestDecodeTerrarium:
    def test_sea_level(self):
        rgb = np.array([[[128, 0, 0]]], dtype=np.uint8)
        assert decode_terrarium(rgb)[0, 0] == pytest.approx(0.0)

    def test_fractional_metres(self):
        rgb = np.array([[[128, 100, 128]]], dtype=np.uint8)
        assert decode_terrarium(rgb)[0, 0] == pytest.approx(100.5)

    def test_below_sea_level(self):
        rgb = np.array([[[127, 156, 0]]], dtype=np.uint8)
        assert decode_terrarium(rgb)[0, 0] == pytest.approx(-100.0)

    def test_ignores_alpha(self):
        rgba = np.array([[[128, 1, 0, 255]]], dtype=np.uint8)
        assert decode_terrarium(rgba)[0, 0] == pytest.approx(1.0)

    def test_output_dtype(self):
        assert decode_terrarium(np.zeros((2, 2, 3), dtype=np.uint8)).dtype == np.float32


class TestDecodeTilePng:
    def test_decodes_png(self, terrarium_png):
        elevation = np.linspace(-50.0, 4000.0, 256 * 256).reshape(256, 256)
        out = decode_tile_png(terrarium_png(elevation), ADDR)
        assert out.shape == (256, 256)
        np.testing.assert_allclose(out, elevation, atol=0.01)

    def test_malformed_payload(self):
        with pytest.raises(TileFetchError) as exc_info:
            decode_tile_png(b"<html>not a tile</html>", ADDR)
        assert exc_info.value.address == ADDR

    def test_wrong_size(self, terrarium_png):
        payload = terrarium_png(np.zeros((128, 128)))
        with pytest.raises(TileFetchError, match="expected 256x256"):
            decode_tile_png(payload, ADDR)


# ===========================================================================
# Fetching
# ===========================================================================


class TestTerrariumTileSource:
    def test_tile_url(self):
        src = TerrariumTileSource(url_template="https://t/{z}/{x}/{y}.png", session=MagicMock())
        assert src.tile_url(ADDR) == "https://t/12/2134/1457.png"

    def test_fetch_tile(self, terrarium_png):
        session = MagicMock()
        session.get.return_value = _response(terrarium_png(np.full((256, 256), 812.0)))
        src = TerrariumTileSource(session=session, timeout_s=3.0)

        out = src.fetch_tile(ADDR)

        assert out.shape == (256, 256)
        assert float(out.mean()) == pytest.approx(812.0)
        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 3.0

    def test_http_error_status(self):
        session = MagicMock()
        session.get.return_value = _response(ok=False, status=404)
        src = TerrariumTileSource(session=session)

        with pytest.raises(TileFetchError, match="HTTP 404") as exc_info:
            src.fetch_payload(ADDR)
        assert exc_info.value.address == ADDR

    def test_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        src = TerrariumTileSource(session=session)

        with pytest.raises(TileFetchError, match="ConnectionError"):
            src.fetch_payload(ADDR)

    def test_timeout(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")
        src = TerrariumTileSource(session=session)

        with pytest.raises(TileFetchError):
            src.fetch_payload(ADDR)

    def test_cache_hit_skips_network(self):
        session = MagicMock()
        session.get.return_value = _response(b"payload")
        src = TerrariumTileSource(session=session, cache=TileCache())

        assert src.fetch_payload(ADDR) == b"payload"
        assert src.fetch_payload(ADDR) == b"payload"
        assert session.get.call_count == 1

    def test_failed_fetch_not_cached(self):
        session = MagicMock()
        session.get.return_value = _response(ok=False, status=500)
        cache = TileCache()
        src = TerrariumTileSource(session=session, cache=cache)

        with pytest.raises(TileFetchError):
            src.fetch_payload(ADDR)
        assert len(cache) == 0

    def test_close_closes_session(self):
        session = MagicMock()
        TerrariumTileSource(session=session).close()
        session.close.assert_called_once()
