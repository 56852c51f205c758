"""Tests for chuk_mcp_relief.core.thresholds module."""

import math

import pytest

from chuk_mcp_relief.core.errors import InvalidConfigError, NoLayersError
from chuk_mcp_relief.core.thresholds import plan_thresholds


class TestPlanThresholds:
    def test_typical_range(self):
        assert plan_thresholds(105.0, 242.0, 30.0) == [120.0, 150.0, 180.0, 210.0, 240.0]

    def test_interval_too_coarse(self):
        with pytest.raises(NoLayersError) as exc_info:
            plan_thresholds(100.0, 110.0, 50.0)
        err = exc_info.value
        assert (err.min_elevation, err.max_elevation, err.interval) == (100.0, 110.0, 50.0)

    def test_strictly_increasing(self):
        t = plan_thresholds(-412.3, 3891.7, 25.0)
        assert all(b > a for a, b in zip(t, t[1:]))

    def test_exact_multiples_not_accumulated(self):
        t = plan_thresholds(0.05, 1.0, 0.1)
        assert t == [k * 0.1 for k in range(1, 10)]

    def test_bounds_on_exact_multiples(self):
        # lowest point is not a layer; the closing multiple at the max is empty
        assert plan_thresholds(90.0, 180.0, 30.0) == [120.0, 150.0]

    def test_negative_elevations(self):
        assert plan_thresholds(-95.0, -5.0, 30.0) == [-90.0, -60.0, -30.0]

    def test_all_within_range(self):
        t = plan_thresholds(105.0, 242.0, 10.0)
        assert t[0] > 100.0
        assert t[-1] < 250.0

    @pytest.mark.parametrize("interval", [0.0, -10.0, math.nan, math.inf])
    def test_invalid_interval(self, interval):
        with pytest.raises(InvalidConfigError):
            plan_thresholds(0.0, 100.0, interval)

    def test_non_finite_range(self):
        with pytest.raises(NoLayersError):
            plan_thresholds(math.nan, 100.0, 10.0)
