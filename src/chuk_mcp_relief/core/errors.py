"""
Export error taxonomy.

Every failure of the relief pipeline aborts the whole export and surfaces as
exactly one of these classes. Each carries a machine-readable ``code``, an
HTTP status hint for transport layers, a ``retryable`` flag and the context
(tile count, elevation range, tile address...) the caller needs to decide
whether to change parameters.

- ``InvalidConfigError``        malformed or out-of-range request fields (400)
- ``AreaTooLargeError``         tile count exceeds the ceiling (413)
- ``TileFetchError``            upstream raster unavailable or malformed (502)
- ``DegenerateElevationError``  flat or non-finite terrain (422)
- ``NoLayersError``             interval too coarse for the relief (422)
"""

from __future__ import annotations

from typing import Any

from ..constants import ErrorCode, ErrorMessages, MAX_TILES


class ReliefError(Exception):
    """Base class for all relief export failures."""

    code: str = ErrorCode.INTERNAL
    http_status: int = 500
    retryable: bool = False

    def __init__(self, message: str = "", **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_error_dict(self) -> dict[str, Any]:
        """Return a structured error payload with stable keys."""
        return {
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
            "retryable": self.retryable,
            "context": dict(self.context),
        }


class InvalidConfigError(ReliefError, ValueError):
    """Request field missing, malformed or out of range."""

    code = ErrorCode.INVALID_CONFIG
    http_status = 400


class AreaTooLargeError(ReliefError):
    """Selection needs more elevation tiles than the per-request ceiling."""

    code = ErrorCode.AREA_TOO_LARGE
    http_status = 413

    def __init__(self, tile_count: int, max_tiles: int = MAX_TILES) -> None:
        self.tile_count = tile_count
        self.max_tiles = max_tiles
        super().__init__(
            ErrorMessages.AREA_TOO_LARGE.format(tile_count, max_tiles),
            tile_count=tile_count,
            max_tiles=max_tiles,
        )


class TileFetchError(ReliefError):
    """A raster tile could not be fetched or decoded.

    Never retried inside the pipeline; a caller may retry the whole export.
    """

    code = ErrorCode.TILE_FETCH_FAILED
    http_status = 502
    retryable = True

    def __init__(self, address: Any, reason: str = "") -> None:
        self.address = address
        self.reason = reason
        super().__init__(
            ErrorMessages.TILE_FETCH_FAILED.format(address, reason),
            address=str(address),
            reason=reason,
        )


class DegenerateElevationError(ReliefError):
    """Sampled terrain is flat or has no finite values."""

    code = ErrorCode.DEGENERATE_ELEVATION
    http_status = 422

    def __init__(self, min_elevation: float, max_elevation: float) -> None:
        self.min_elevation = min_elevation
        self.max_elevation = max_elevation
        super().__init__(
            ErrorMessages.DEGENERATE_ELEVATION.format(min_elevation, max_elevation),
            min_elevation=min_elevation,
            max_elevation=max_elevation,
        )


class NoLayersError(ReliefError):
    """Interval too coarse: no threshold falls inside the elevation range."""

    code = ErrorCode.NO_LAYERS
    http_status = 422

    def __init__(self, min_elevation: float, max_elevation: float, interval: float) -> None:
        self.min_elevation = min_elevation
        self.max_elevation = max_elevation
        self.interval = interval
        super().__init__(
            ErrorMessages.NO_LAYERS.format(min_elevation, max_elevation, interval),
            min_elevation=min_elevation,
            max_elevation=max_elevation,
            interval=interval,
        )
