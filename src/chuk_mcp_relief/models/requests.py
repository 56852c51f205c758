"""
Request models for chuk-mcp-relief.

An ExportRequest is validated once at the tool boundary and is immutable
afterwards; every pipeline stage reads from the same instance.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..constants import (
    DEFAULT_GRID,
    DEFAULT_HEIGHT,
    DEFAULT_INTERVAL_M,
    DEFAULT_MARK_DIAMETER,
    DEFAULT_MARK_INSET,
    DEFAULT_REGISTRATION_MARKS,
    DEFAULT_UNITS,
    DEFAULT_WIDTH,
    MAX_GRID,
    MAX_MERCATOR_LAT,
    MIN_GRID,
    ErrorMessages,
)
from ..core.errors import InvalidConfigError


class GeoBounds(BaseModel):
    """Geographic viewport in degrees (EPSG:4326)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    west: float = Field(..., description="Western longitude in degrees")
    south: float = Field(..., description="Southern latitude in degrees")
    east: float = Field(..., description="Eastern longitude in degrees")
    north: float = Field(..., description="Northern latitude in degrees")

    @model_validator(mode="after")
    def _check_ranges(self) -> "GeoBounds":
        for lon in (self.west, self.east):
            if not (-180.0 <= lon <= 180.0):
                raise ValueError(ErrorMessages.INVALID_LON.format(lon))
        for lat in (self.south, self.north):
            if not (-MAX_MERCATOR_LAT < lat < MAX_MERCATOR_LAT):
                raise ValueError(ErrorMessages.INVALID_LAT.format(lat, MAX_MERCATOR_LAT))
        if self.west >= self.east:
            raise ValueError(ErrorMessages.INVALID_BBOX_VALUES.format(self.west, self.east))
        if self.south >= self.north:
            raise ValueError(ErrorMessages.INVALID_BBOX_LAT.format(self.south, self.north))
        return self

    @classmethod
    def from_bbox(cls, bbox: list[float]) -> "GeoBounds":
        """Build from a [west, south, east, north] list."""
        if bbox is None or len(bbox) != 4:
            raise InvalidConfigError(ErrorMessages.INVALID_BBOX, bbox=bbox)
        west, south, east, north = bbox
        return _validated(cls, west=west, south=south, east=east, north=north)

    def as_bbox(self) -> list[float]:
        return [self.west, self.south, self.east, self.north]


class ExportRequest(BaseModel):
    """Parameters of one layered relief export."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    bounds: GeoBounds = Field(..., description="Viewport to export")
    width: float = Field(DEFAULT_WIDTH, gt=0, description="Output canvas width (physical units)")
    height: float = Field(DEFAULT_HEIGHT, gt=0, description="Output canvas height (physical units)")
    units: Literal["in", "mm"] = Field(DEFAULT_UNITS, description="Physical unit of the canvas")
    interval_m: float = Field(DEFAULT_INTERVAL_M, gt=0, description="Elevation step per layer")
    grid: int = Field(
        DEFAULT_GRID, ge=MIN_GRID, le=MAX_GRID, description="Sample grid size N (N x N)"
    )
    registration_marks: bool = Field(
        DEFAULT_REGISTRATION_MARKS, description="Draw alignment circles at the canvas corners"
    )
    mark_diameter: float = Field(
        DEFAULT_MARK_DIAMETER, gt=0, description="Registration mark diameter (physical units)"
    )
    mark_inset: float = Field(
        DEFAULT_MARK_INSET, ge=0, description="Mark centre inset from each corner"
    )

    @field_validator("width", "height", "interval_m", "mark_diameter", "mark_inset")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError(f"value must be finite, got {value}")
        return value

    @model_validator(mode="after")
    def _marks_on_canvas(self) -> "ExportRequest":
        if not self.registration_marks:
            return self
        r = self.mark_diameter / 2.0
        if self.mark_inset < r or self.mark_inset + r > min(self.width, self.height):
            raise ValueError(
                ErrorMessages.MARKS_OFF_CANVAS.format(
                    self.mark_diameter, self.mark_inset, self.width, self.height
                )
            )
        return self


def build_export_request(bbox: list[float], **params) -> ExportRequest:
    """Validate tool arguments into an ExportRequest.

    Raises:
        InvalidConfigError: on any malformed or out-of-range field
    """
    bounds = GeoBounds.from_bbox(bbox)
    params = {k: v for k, v in params.items() if v is not None}
    return _validated(ExportRequest, bounds=bounds, **params)


def _validated(model: type[BaseModel], **fields):
    try:
        return model(**fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidConfigError(problems, fields=sorted(fields)) from e
