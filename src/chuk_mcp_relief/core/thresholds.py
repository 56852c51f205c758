"""Elevation threshold planning: one layer per interval band above the minimum."""

import math

from ..constants import ErrorMessages
from .errors import InvalidConfigError, NoLayersError


def plan_thresholds(min_elevation: float, max_elevation: float, interval: float) -> list[float]:
    """
    Interval multiples strictly between floor(min / interval) * interval and
    ceil(max / interval) * interval.

    The lowest point of the surface is never its own layer, and the closing
    multiple at or above the maximum would be empty, so neither is emitted.
    For min=105, max=242, interval=30 this gives [120, 150, 180, 210, 240].

    Raises:
        InvalidConfigError: interval not finite or <= 0
        NoLayersError: no multiple falls strictly inside the range
    """
    if not math.isfinite(interval) or interval <= 0:
        raise InvalidConfigError(ErrorMessages.INVALID_INTERVAL.format(interval), interval=interval)
    if not (math.isfinite(min_elevation) and math.isfinite(max_elevation)):
        raise NoLayersError(min_elevation, max_elevation, interval)

    first = math.floor(min_elevation / interval)
    last = math.ceil(max_elevation / interval)

    # multiples of the interval, not a running sum, so no float drift
    thresholds = [float(k * interval) for k in range(first + 1, last)]

    if not thresholds:
        raise NoLayersError(min_elevation, max_elevation, interval)
    return thresholds
