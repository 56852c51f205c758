"""
Export tools: layer planning and layered relief export.

relief_export_layers performs network I/O to fetch elevation tiles and stores
the resulting archive in the artifact store. A tile fetch failure aborts the
export; the whole export is then retried here, never inside the pipeline.
"""

import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...constants import (
    DEFAULT_GRID,
    DEFAULT_HEIGHT,
    DEFAULT_INTERVAL_M,
    DEFAULT_MARK_DIAMETER,
    DEFAULT_MARK_INSET,
    DEFAULT_REGISTRATION_MARKS,
    DEFAULT_UNITS,
    DEFAULT_WIDTH,
    RETRY_ATTEMPTS,
    RETRY_WAIT_MAX,
    RETRY_WAIT_MIN,
    SuccessMessages,
)
from ...core.errors import TileFetchError
from ...models.requests import build_export_request
from ...models.responses import (
    ErrorResponse,
    ExportResponse,
    LayerInfo,
    PlanResponse,
    format_response,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Whole-export retry on upstream tile failures
# ---------------------------------------------------------------------------

_retry_tile_fetch = retry(
    stop=stop_after_attempt(RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
    retry=retry_if_exception_type(TileFetchError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


@_retry_tile_fetch
async def run_export(manager, request):
    return await manager.export_layers(request)


def register_export_tools(mcp, manager):
    """Register export tools with the MCP server."""

    @mcp.tool()
    async def relief_plan_layers(
        min_elevation: float,
        max_elevation: float,
        interval_m: float = DEFAULT_INTERVAL_M,
        output_mode: str = "json",
    ) -> str:
        """Preview the layer elevations an export would cut for a known elevation range.

        Layers sit at multiples of interval_m strictly between the rounded-down
        minimum and the rounded-up maximum. No network access.

        Args:
            min_elevation: Lowest elevation of the area in metres
            max_elevation: Highest elevation of the area in metres
            interval_m: Elevation step per layer in metres
            output_mode: "json" or "text"

        Returns:
            Ascending list of layer elevations
        """
        try:
            thresholds = manager.plan_layers(min_elevation, max_elevation, interval_m)

            response = PlanResponse(
                elevation_range=[min_elevation, max_elevation],
                interval_m=interval_m,
                thresholds=thresholds,
                layer_count=len(thresholds),
                message=SuccessMessages.PLAN_COMPLETE.format(len(thresholds), interval_m),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_plan_layers failed: {e}")
            return format_response(ErrorResponse.from_exception(e), output_mode)

    @mcp.tool()
    async def relief_export_layers(
        bbox: list[float],
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        units: str = DEFAULT_UNITS,
        interval_m: float = DEFAULT_INTERVAL_M,
        grid: int = DEFAULT_GRID,
        registration_marks: bool = DEFAULT_REGISTRATION_MARKS,
        mark_diameter: float = DEFAULT_MARK_DIAMETER,
        mark_inset: float = DEFAULT_MARK_INSET,
        output_mode: str = "json",
    ) -> str:
        """Export a map viewport as a zip of laser-cut SVG layers, one per elevation band.

        Each SVG is the silhouette of all terrain at or above its layer elevation,
        sized to width x height in the given units, with optional registration
        circles at the corners. A README.txt manifest is included.

        Args:
            bbox: Bounding box [west, south, east, north] in EPSG:4326
            width: Output canvas width (default 20)
            height: Output canvas height (default 12)
            units: Canvas units, "in" or "mm" (default "in")
            interval_m: Elevation step per layer in metres (default 30)
            grid: Sample grid size N, 64-1024 (default 256)
            registration_marks: Add corner alignment circles (default True)
            mark_diameter: Alignment circle diameter in canvas units
            mark_inset: Alignment circle centre inset from each corner
            output_mode: "json" or "text"

        Returns:
            Artifact reference of the archive with per-layer details
        """
        try:
            request = build_export_request(
                bbox,
                width=width,
                height=height,
                units=units,
                interval_m=interval_m,
                grid=grid,
                registration_marks=registration_marks,
                mark_diameter=mark_diameter,
                mark_inset=mark_inset,
            )

            result = await run_export(manager, request)

            response = ExportResponse(
                bbox=request.bounds.as_bbox(),
                artifact_ref=result.artifact_ref,
                archive_name=result.archive_name,
                size_bytes=result.size_bytes,
                tile_count=result.tile_count,
                grid=result.grid,
                width=request.width,
                height=request.height,
                units=request.units,
                elevation_range=result.elevation_range,
                interval_m=result.interval_m,
                layers=[LayerInfo(**info) for info in result.layers],
                files=result.files,
                message=SuccessMessages.EXPORT_COMPLETE.format(
                    len(result.layers),
                    result.elevation_range[0],
                    result.elevation_range[1],
                    result.interval_m,
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_export_layers failed: {e}")
            return format_response(ErrorResponse.from_exception(e), output_mode)
