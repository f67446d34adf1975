"""Tests for the HDR latency histogram."""

from __future__ import annotations

import pytest

from gatewayload.metrics.histogram import LatencyHistogram


class TestLatencyHistogram:
    def test_empty_stats_are_zero(self):
        assert LatencyHistogram().stats() == (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    def test_stats_in_milliseconds(self):
        hist = LatencyHistogram()
        for ms in range(1, 101):
            hist.record(float(ms))

        lat_min, lat_max, lat_avg, p50, p90, p95, p99 = hist.stats()
        assert hist.total_count == 100
        assert lat_min == pytest.approx(1.0, rel=1e-2)
        assert lat_max == pytest.approx(100.0, rel=1e-2)
        assert lat_avg == pytest.approx(50.5, rel=1e-2)
        assert p50 == pytest.approx(50.0, rel=1e-2)
        assert p90 == pytest.approx(90.0, rel=1e-2)
        assert p95 == pytest.approx(95.0, rel=1e-2)
        assert p99 == pytest.approx(99.0, rel=1e-2)

    def test_values_are_clamped(self):
        hist = LatencyHistogram()
        hist.record(0.0)
        hist.record(120_000.0)
        lat_min, lat_max, *_ = hist.stats()
        assert lat_min == pytest.approx(0.001)
        assert lat_max == pytest.approx(60_000.0, rel=1e-2)

    def test_reset(self):
        hist = LatencyHistogram()
        hist.record(5.0)
        hist.reset()
        assert hist.total_count == 0
