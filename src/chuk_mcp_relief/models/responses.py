"""
Response models for chuk-mcp-relief tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ErrorCode
from ..core.errors import ReliefError


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")
    code: str | None = Field(None, description="Machine-readable error code")
    http_status: int | None = Field(None, description="HTTP status hint for transports")
    retryable: bool = Field(False, description="Whether retrying the same request may succeed")
    context: dict[str, Any] = Field(default_factory=dict, description="Error details")

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorResponse":
        """Build from a pipeline error; unclassified faults become INTERNAL."""
        if isinstance(exc, ReliefError):
            info = exc.to_error_dict()
            return cls(
                error=info["message"] or str(exc),
                code=info["code"],
                http_status=info["http_status"],
                retryable=info["retryable"],
                context=info["context"],
            )
        return cls(
            error=str(exc) or type(exc).__name__,
            code=ErrorCode.INTERNAL,
            http_status=500,
        )

    def to_text(self) -> str:
        if self.code:
            return f"Error [{self.code}]: {self.error}"
        return f"Error: {self.error}"


# ---------------------------------------------------------------------------
# Discovery responses
# ---------------------------------------------------------------------------


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="chuk-mcp-relief", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    zoom: int = Field(..., description="Fixed elevation tile zoom level")
    tile_url: str | None = Field(None, description="Elevation tile URL template")
    storage_provider: str = Field(..., description="Active storage provider (memory/filesystem/s3)")
    artifact_store_available: bool = Field(
        default=False, description="Whether artifact store is available"
    )
    cached_tiles: int = Field(default=0, description="Number of tiles in the tile cache")

    def to_text(self) -> str:
        store_status = "available" if self.artifact_store_available else "not available"
        lines = [
            f"{self.server} v{self.version}",
            f"Tile zoom: {self.zoom}",
            f"Tiles: {self.tile_url}",
            f"Storage: {self.storage_provider}",
            f"Artifact store: {store_status}",
            f"Cached tiles: {self.cached_tiles}",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    tile_source: dict[str, Any] = Field(..., description="Elevation tile source metadata")
    tools: list[str] = Field(..., description="Available tool names")
    units: list[str] = Field(..., description="Supported physical output units")
    defaults: dict[str, Any] = Field(..., description="Default export parameters")
    limits: dict[str, Any] = Field(..., description="Grid and tile limits")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count} ({', '.join(self.tools)})",
            f"Tiles: {self.tile_source.get('name')} at zoom {self.tile_source.get('zoom')}",
            f"Units: {', '.join(self.units)}",
            "Defaults: " + ", ".join(f"{k}={v}" for k, v in self.defaults.items()),
            "Limits: " + ", ".join(f"{k}={v}" for k, v in self.limits.items()),
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)


class AreaCheckResponse(BaseModel):
    """Response model for tile-budget checks of a viewport."""

    model_config = ConfigDict(extra="forbid")

    bbox: list[float] = Field(..., description="Bounding box [west, south, east, north]")
    zoom: int = Field(..., description="Tile zoom level")
    tile_range: dict[str, int] = Field(..., description="Inclusive tile index range")
    tile_count: int = Field(..., description="Tiles needed to cover the viewport", ge=1)
    max_tiles: int = Field(..., description="Per-export tile ceiling")
    within_limit: bool = Field(..., description="Whether the viewport can be exported")
    pixel_size: list[float] = Field(..., description="[width, height] of viewport in pixels")
    ground_size_m: list[float] = Field(..., description="Approximate [width, height] in metres")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        tr = self.tile_range
        status = "OK" if self.within_limit else "TOO LARGE"
        lines = [
            f"Area check: {status}",
            f"Tiles: {self.tile_count} of {self.max_tiles} "
            f"(x {tr['x_min']}-{tr['x_max']}, y {tr['y_min']}-{tr['y_max']}, zoom {self.zoom})",
            f"Ground size: {self.ground_size_m[0]:.0f}m x {self.ground_size_m[1]:.0f}m",
            self.message,
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Export responses
# ---------------------------------------------------------------------------


class PlanResponse(BaseModel):
    """Response model for threshold planning."""

    model_config = ConfigDict(extra="forbid")

    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    interval_m: float = Field(..., description="Elevation step per layer")
    thresholds: list[float] = Field(..., description="Layer elevations, ascending")
    layer_count: int = Field(..., description="Number of planned layers", ge=1)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        levels = ", ".join(f"{t:g}" for t in self.thresholds)
        return "\n".join([self.message, f"Thresholds (m): {levels}"])


class LayerInfo(BaseModel):
    """One emitted layer of an export."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(..., description="SVG file name inside the archive")
    level: float = Field(..., description="Layer elevation threshold in metres")
    rings: int = Field(..., description="Number of closed rings", ge=1)
    outer_rings: int = Field(..., description="Rings bounding raised regions", ge=0)
    holes: int = Field(..., description="Rings bounding lower pockets", ge=0)
    points: int = Field(..., description="Total ring vertices", ge=0)

    def to_text(self) -> str:
        return f"{self.filename}: >= {self.level:g}m, {self.rings} rings ({self.holes} holes)"


class ExportResponse(BaseModel):
    """Response model for layered relief exports."""

    model_config = ConfigDict(extra="forbid")

    bbox: list[float] = Field(..., description="Bounding box [west, south, east, north]")
    artifact_ref: str = Field(..., description="Artifact store reference for the archive")
    archive_name: str = Field(..., description="Archive file name")
    size_bytes: int = Field(..., description="Archive size in bytes", ge=0)
    tile_count: int = Field(..., description="Elevation tiles fetched")
    grid: int = Field(..., description="Sample grid size N")
    width: float = Field(..., description="Canvas width")
    height: float = Field(..., description="Canvas height")
    units: str = Field(..., description="Canvas units (in or mm)")
    elevation_range: list[float] = Field(..., description="[min, max] sampled elevation")
    interval_m: float = Field(..., description="Elevation step per layer")
    layers: list[LayerInfo] = Field(..., description="Emitted layers, ascending")
    files: list[str] = Field(..., description="Archive entries in order")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            self.message,
            f"Archive: {self.archive_name} -> {self.artifact_ref} ({self.size_bytes} bytes)",
            f"Canvas: {self.width:g} x {self.height:g} {self.units}, grid {self.grid}x{self.grid}",
            f"Elevation: {self.elevation_range[0]:.1f}m to {self.elevation_range[1]:.1f}m",
        ]
        lines.extend(f"  {layer.to_text()}" for layer in self.layers)
        return "\n".join(lines)
