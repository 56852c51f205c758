"""
Relief Manager: central orchestrator for layered relief exports.

Owns the tile source (and its optional cache), the fetch fan-out and the
artifact storage of finished bundles. Tile fetches run concurrently in worker
threads bounded by a semaphore; the CPU-bound stages (stitch, resample,
contour, serialize, archive) run in one worker thread per export. Every
failure aborts the export and propagates as a ReliefError subclass.
"""

import asyncio
import logging
import os
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    DEFAULT_FETCH_CONCURRENCY,
    DEFAULT_TILE_TIMEOUT_S,
    DEFAULT_TILE_URL,
    MAX_TILES,
    TILE_CACHE_MAX_BYTES,
    TILE_SIZE,
    TILE_SOURCE,
    TILE_ZOOM,
    EnvVar,
    ErrorMessages,
)
from ..models.requests import ExportRequest, GeoBounds
from . import raster_io
from .archive import ArchiveSink, ZipArchiveSink
from .contours import ContourLayer, extract_layers, ring_summary
from .errors import NoLayersError
from .raster_io import FloatArray, SampleGrid
from .svg_writer import LayerArtifact, serialize_layers
from .thresholds import plan_thresholds
from .tile_cache import TileCache
from .tile_math import TileAddress, TileRange, address_range, ground_size_m, pixel_rect
from .tile_source import TerrariumTileSource

logger = logging.getLogger(__name__)


@dataclass
class ExportBundle:
    """Everything produced by one export before it is stored."""

    tile_range: TileRange
    grid: SampleGrid
    thresholds: list[float]
    layers: list[ContourLayer]
    artifacts: list[LayerArtifact]
    archive: bytes
    archive_name: str
    archive_mime: str


@dataclass
class ExportResult:
    """Result of a stored layered relief export."""

    artifact_ref: str
    archive_name: str
    tile_count: int
    grid: int
    elevation_range: list[float]
    interval_m: float
    thresholds: list[float]
    files: list[str]
    layers: list[dict[str, Any]] = field(default_factory=list)
    size_bytes: int = 0


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def default_tile_source() -> TerrariumTileSource:
    """Tile source configured from RELIEF_* environment variables."""
    cache_mb = _env_float(EnvVar.TILE_CACHE_MB, TILE_CACHE_MAX_BYTES / (1024 * 1024))
    cache = TileCache(max_bytes=int(cache_mb * 1024 * 1024)) if cache_mb > 0 else None
    return TerrariumTileSource(
        url_template=os.environ.get(EnvVar.TILE_URL) or DEFAULT_TILE_URL,
        timeout_s=_env_float(EnvVar.TILE_TIMEOUT_S, DEFAULT_TILE_TIMEOUT_S),
        cache=cache,
    )


class ReliefManager:
    """Central manager for relief export operations."""

    def __init__(
        self,
        tile_source: Any | None = None,
        zoom: int = TILE_ZOOM,
        max_tiles: int = MAX_TILES,
        fetch_concurrency: int | None = None,
        archive_factory: Callable[[], ArchiveSink] = ZipArchiveSink,
    ) -> None:
        self.tile_source = tile_source if tile_source is not None else default_tile_source()
        self.zoom = zoom
        self.max_tiles = max_tiles
        self.fetch_concurrency = fetch_concurrency or _env_int(
            EnvVar.FETCH_CONCURRENCY, DEFAULT_FETCH_CONCURRENCY
        )
        self.archive_factory = archive_factory

    @property
    def tile_size(self) -> int:
        return getattr(self.tile_source, "tile_size", TILE_SIZE)

    @property
    def cache_size(self) -> int:
        """Number of cached tile payloads (0 when caching is off)."""
        cache = getattr(self.tile_source, "cache", None)
        return len(cache) if cache is not None else 0

    # ------------------------------------------------------------------
    # Planning (sync, no I/O)
    # ------------------------------------------------------------------

    def describe_source(self) -> dict:
        """Tile source metadata."""
        info = dict(TILE_SOURCE)
        info["zoom"] = self.zoom
        info["tile_size"] = self.tile_size
        info["url_template"] = getattr(self.tile_source, "url_template", None)
        return info

    def check_area(self, bounds: GeoBounds) -> dict:
        """Tile range and size of a viewport without fetching anything."""
        tile_range = address_range(bounds, self.zoom)
        rect = pixel_rect(bounds, tile_range, self.tile_size)
        width_m, height_m = ground_size_m(bounds)

        return {
            "bbox": bounds.as_bbox(),
            "zoom": self.zoom,
            "tile_range": {
                "x_min": tile_range.x_min,
                "x_max": tile_range.x_max,
                "y_min": tile_range.y_min,
                "y_max": tile_range.y_max,
            },
            "tile_count": tile_range.tile_count,
            "max_tiles": self.max_tiles,
            "within_limit": tile_range.tile_count <= self.max_tiles,
            "pixel_size": [round(rect.width, 1), round(rect.height, 1)],
            "ground_size_m": [round(width_m, 1), round(height_m, 1)],
        }

    def plan_layers(
        self, min_elevation: float, max_elevation: float, interval_m: float
    ) -> list[float]:
        """Threshold preview for a known elevation range."""
        return plan_thresholds(min_elevation, max_elevation, interval_m)

    # ------------------------------------------------------------------
    # Export (async)
    # ------------------------------------------------------------------

    async def fetch_tiles(self, tile_range: TileRange) -> dict[tuple[int, int], FloatArray]:
        """Fetch every tile of the range concurrently.

        The first failure cancels every fetch still waiting or awaiting its
        worker thread and is re-raised unwrapped.
        """
        sem = asyncio.Semaphore(self.fetch_concurrency)
        tiles: dict[tuple[int, int], FloatArray] = {}

        async def _worker(address: TileAddress) -> None:
            async with sem:
                tiles[raster_io.tile_key(address)] = await asyncio.to_thread(
                    self.tile_source.fetch_tile, address
                )

        try:
            async with asyncio.TaskGroup() as tg:
                for address in tile_range.addresses():
                    tg.create_task(_worker(address))
        except ExceptionGroup as group:
            raise group.exceptions[0] from None
        logger.info(f"Fetched {len(tiles)} tiles at zoom {tile_range.zoom}")
        return tiles

    async def build_bundle(self, request: ExportRequest) -> ExportBundle:
        """Run the full pipeline up to the finished archive, without storing it."""
        tile_range = address_range(request.bounds, self.zoom)
        tile_count = raster_io.check_tile_budget(tile_range, self.max_tiles)
        logger.info(
            f"Export {request.bounds.as_bbox()}: {tile_count} tiles, "
            f"grid {request.grid}, interval {request.interval_m}m"
        )

        tiles = await self.fetch_tiles(tile_range)
        return await asyncio.to_thread(self._process, request, tile_range, tiles)

    def _process(
        self,
        request: ExportRequest,
        tile_range: TileRange,
        tiles: dict[tuple[int, int], FloatArray],
    ) -> ExportBundle:
        raster = raster_io.stitch_tiles(tile_range, tiles, self.tile_size)
        rect = pixel_rect(request.bounds, tile_range, self.tile_size)
        grid = raster_io.resample(raster, rect, request.grid)
        del raster

        thresholds = plan_thresholds(grid.min_elevation, grid.max_elevation, request.interval_m)
        layers = extract_layers(grid, thresholds)
        if not layers:
            raise NoLayersError(grid.min_elevation, grid.max_elevation, request.interval_m)

        artifacts = serialize_layers(layers, request, grid)

        sink = self.archive_factory()
        for artifact in artifacts:
            sink.add(artifact.filename, artifact.content)
        archive = sink.finalize()

        logger.info(
            f"Built {sink.name}: {len(layers)} layers, "
            f"{grid.min_elevation:.1f}m to {grid.max_elevation:.1f}m, {len(archive)} bytes"
        )
        return ExportBundle(
            tile_range=tile_range,
            grid=grid,
            thresholds=thresholds,
            layers=layers,
            artifacts=artifacts,
            archive=archive,
            archive_name=sink.name,
            archive_mime=sink.mime_type,
        )

    async def export_layers(self, request: ExportRequest) -> ExportResult:
        """Export a viewport as layered SVGs and store the archive."""
        bundle = await self.build_bundle(request)
        grid = bundle.grid

        layer_info = []
        for artifact, layer in zip(bundle.artifacts, bundle.layers):
            info = ring_summary(layer)
            info["filename"] = artifact.filename
            layer_info.append(info)

        artifact_ref = await self._store_bundle(
            bundle.archive,
            {
                "schema_version": "1.0",
                "type": "relief_layers",
                "bbox": request.bounds.as_bbox(),
                "zoom": bundle.tile_range.zoom,
                "tile_count": bundle.tile_range.tile_count,
                "grid": grid.size,
                "elevation_range": [grid.min_elevation, grid.max_elevation],
                "interval_m": request.interval_m,
                "canvas": [request.width, request.height, request.units],
                "layers": len(bundle.layers),
                "files": [a.filename for a in bundle.artifacts],
            },
            name=bundle.archive_name,
            mime_type=bundle.archive_mime,
        )

        return ExportResult(
            artifact_ref=artifact_ref,
            archive_name=bundle.archive_name,
            tile_count=bundle.tile_range.tile_count,
            grid=grid.size,
            elevation_range=[grid.min_elevation, grid.max_elevation],
            interval_m=request.interval_m,
            thresholds=bundle.thresholds,
            files=[a.filename for a in bundle.artifacts],
            layers=layer_info,
            size_bytes=len(bundle.archive),
        )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _get_store(self) -> Any:
        """Get the artifact store instance."""
        from chuk_mcp_server import get_artifact_store

        store = get_artifact_store()
        if store is None:
            raise RuntimeError(ErrorMessages.NO_ARTIFACT_STORE)
        return store

    async def _store_bundle(
        self,
        data: bytes,
        metadata: dict,
        name: str,
        mime_type: str,
    ) -> str:
        """Store an export archive in the artifact store."""
        try:
            store = self._get_store()
            ref = f"relief/{uuid.uuid4().hex[:12]}_{name}"

            await store.store(
                ref,
                data,
                mime_type=mime_type,
                metadata=metadata,
                summary=f"Relief layers ({metadata.get('layers', 0)} layers)",
            )
            return ref
        except Exception as e:
            logger.error(f"Failed to store bundle: {e}")
            raise
