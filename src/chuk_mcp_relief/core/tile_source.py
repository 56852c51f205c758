"""
Elevation tile fetching and Terrarium decoding.

All functions are synchronous; the manager runs them in worker threads via
asyncio.to_thread(). A failed or malformed tile raises TileFetchError for
that address. Nothing here retries: retry policy belongs to the caller.
"""

import io
import logging
from typing import Any

import numpy as np
import requests
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from ..constants import (
    DEFAULT_TILE_TIMEOUT_S,
    DEFAULT_TILE_URL,
    TERRARIUM_OFFSET,
    TILE_SIZE,
    ErrorMessages,
)
from .errors import TileFetchError
from .tile_cache import TileCache
from .tile_math import TileAddress

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating[Any]]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_terrarium(rgb: NDArray[Any]) -> FloatArray:
    """Decode Terrarium-packed RGB pixels to elevation in metres.

    Args:
        rgb: (..., 3+) array of 8-bit channel values; extra channels are ignored

    Returns:
        float32 array of elevations, shape rgb.shape[:-1]
    """
    channels = np.asarray(rgb, dtype=np.float32)
    r = channels[..., 0]
    g = channels[..., 1]
    b = channels[..., 2]
    return (r * 256.0 + g + b / 256.0 - TERRARIUM_OFFSET).astype(np.float32)


def decode_tile_png(
    payload: bytes,
    address: TileAddress,
    tile_size: int = TILE_SIZE,
) -> FloatArray:
    """Decode a Terrarium PNG (or any Pillow-readable image) into elevations.

    Raises:
        TileFetchError: payload is not an image or has the wrong size
    """
    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            rgb = np.asarray(img.convert("RGB"))
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise TileFetchError(address, f"malformed tile image: {e}") from e

    height, width = rgb.shape[:2]
    if (width, height) != (tile_size, tile_size):
        raise TileFetchError(
            address, ErrorMessages.TILE_BAD_SHAPE.format(tile_size, tile_size, width, height)
        )

    return decode_terrarium(rgb)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


class TerrariumTileSource:
    """Fetches Terrarium tiles over HTTP from an XYZ URL template."""

    def __init__(
        self,
        url_template: str = DEFAULT_TILE_URL,
        timeout_s: float = DEFAULT_TILE_TIMEOUT_S,
        tile_size: int = TILE_SIZE,
        session: requests.Session | None = None,
        cache: TileCache | None = None,
    ) -> None:
        self.url_template = url_template
        self.timeout_s = timeout_s
        self.tile_size = tile_size
        self.cache = cache
        self._session = session or requests.Session()

    def tile_url(self, address: TileAddress) -> str:
        return self.url_template.format(z=address.zoom, x=address.x, y=address.y)

    def fetch_payload(self, address: TileAddress) -> bytes:
        """Download the raw tile bytes.

        Raises:
            TileFetchError: transport failure or non-success status
        """
        url = self.tile_url(address)

        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                logger.debug(f"Tile cache hit: {address}")
                return cached

        try:
            response = self._session.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise TileFetchError(address, f"{type(e).__name__}: {e}") from e

        if not response.ok:
            raise TileFetchError(address, f"HTTP {response.status_code} {url}")

        payload = response.content
        if self.cache is not None:
            self.cache.put(url, payload)
        return payload

    def fetch_tile(self, address: TileAddress) -> FloatArray:
        """Fetch and decode one tile into a (tile_size, tile_size) elevation array."""
        payload = self.fetch_payload(address)
        elevation = decode_tile_png(payload, address, self.tile_size)
        logger.debug(f"Decoded tile {address}")
        return elevation

    def close(self) -> None:
        self._session.close()
