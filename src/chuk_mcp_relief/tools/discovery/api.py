"""
Discovery tools: server status, capabilities, viewport checks.

These tools require no network I/O and return information about the server
configuration and the tile budget of a viewport.
"""

import logging
import os

from ...constants import (
    DEFAULT_FETCH_CONCURRENCY,
    DEFAULT_GRID,
    DEFAULT_HEIGHT,
    DEFAULT_INTERVAL_M,
    DEFAULT_MARK_DIAMETER,
    DEFAULT_MARK_INSET,
    DEFAULT_REGISTRATION_MARKS,
    DEFAULT_UNITS,
    DEFAULT_WIDTH,
    EXPORT_TOOLS,
    MAX_GRID,
    MIN_GRID,
    OUTPUT_UNITS,
    EnvVar,
    ServerConfig,
    StorageProvider,
    SuccessMessages,
)
from ...models.requests import GeoBounds
from ...models.responses import (
    AreaCheckResponse,
    CapabilitiesResponse,
    ErrorResponse,
    StatusResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def relief_status(output_mode: str = "json") -> str:
        """Get server status including version, tile source, and storage configuration.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)

            store_available = False
            try:
                manager._get_store()
                store_available = True
            except Exception:
                pass

            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                zoom=manager.zoom,
                tile_url=getattr(manager.tile_source, "url_template", None),
                storage_provider=provider,
                artifact_store_available=store_available,
                cached_tiles=manager.cache_size,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_status failed: {e}")
            return format_response(ErrorResponse.from_exception(e), output_mode)

    @mcp.tool()
    async def relief_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities including tools, defaults, limits, and guidance.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                tile_source=manager.describe_source(),
                tools=list(EXPORT_TOOLS),
                units=list(OUTPUT_UNITS),
                defaults={
                    "width": DEFAULT_WIDTH,
                    "height": DEFAULT_HEIGHT,
                    "units": DEFAULT_UNITS,
                    "interval_m": DEFAULT_INTERVAL_M,
                    "grid": DEFAULT_GRID,
                    "registration_marks": DEFAULT_REGISTRATION_MARKS,
                    "mark_diameter": DEFAULT_MARK_DIAMETER,
                    "mark_inset": DEFAULT_MARK_INSET,
                },
                limits={
                    "max_tiles": manager.max_tiles,
                    "min_grid": MIN_GRID,
                    "max_grid": MAX_GRID,
                    "fetch_concurrency": getattr(
                        manager, "fetch_concurrency", DEFAULT_FETCH_CONCURRENCY
                    ),
                },
                tool_count=len(EXPORT_TOOLS),
                llm_guidance=(
                    "Use relief_check_area first to confirm the viewport fits the tile limit. "
                    "Use relief_plan_layers to preview layer elevations for a known range. "
                    "Use relief_export_layers to produce a zip of one SVG per elevation "
                    "layer plus README.txt; each SVG is a silhouette of everything above "
                    "its elevation, drawn as hairline cut paths at physical size. "
                    "If the export reports AREA_TOO_LARGE, shrink the bbox. "
                    "If it reports NO_LAYERS, use a smaller interval_m."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_capabilities failed: {e}")
            return format_response(ErrorResponse.from_exception(e), output_mode)

    @mcp.tool()
    async def relief_check_area(bbox: list[float], output_mode: str = "json") -> str:
        """Check how many elevation tiles a viewport needs and whether it can be exported.

        No network access; use before relief_export_layers.

        Args:
            bbox: Bounding box [west, south, east, north] in EPSG:4326
            output_mode: "json" or "text"

        Returns:
            Tile range, tile count, limit and approximate ground size
        """
        try:
            bounds = GeoBounds.from_bbox(bbox)
            info = manager.check_area(bounds)

            template = (
                SuccessMessages.CHECK_AREA_OK
                if info["within_limit"]
                else SuccessMessages.CHECK_AREA_TOO_LARGE
            )
            response = AreaCheckResponse(
                **info,
                message=template.format(info["tile_count"], info["max_tiles"]),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_check_area failed: {e}")
            return format_response(ErrorResponse.from_exception(e), output_mode)
