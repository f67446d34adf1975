"""HDR histogram of request latencies for the run summary.

Interval snapshots compute exact percentiles from the few requests of one
tick. The run summary instead reads its latencies from one HDR histogram per
endpoint plus an overall one, fed as requests arrive, so building it needs
no sort over every request of the run. Request counts and error tallies in
the summary still come from the retained request metrics.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

# Trackable range in microseconds: 1 us to 60 s
_LOWEST_US = 1
_HIGHEST_US = 60_000_000
_SIGNIFICANT_DIGITS = 3

LatencyStats = tuple[float, float, float, float, float, float, float]


class LatencyHistogram:
    """Latency histogram taking and returning milliseconds.

    Values are stored as integer microseconds, clamped to 1 us .. 60 s.
    """

    def __init__(self) -> None:
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            _LOWEST_US, _HIGHEST_US, _SIGNIFICANT_DIGITS
        )

    @property
    def total_count(self) -> int:
        return int(self._histogram.total_count)

    def record(self, latency_ms: float) -> None:
        value_us = max(_LOWEST_US, min(int(latency_ms * 1000), _HIGHEST_US))
        self._histogram.record_value(value_us)

    def stats(self) -> LatencyStats:
        """Return (min, max, avg, p50, p90, p95, p99) in milliseconds.

        All zeros when nothing was recorded.
        """
        if self.total_count == 0:
            return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        h = self._histogram
        return (
            h.get_min_value() / 1000.0,
            h.get_max_value() / 1000.0,
            float(h.get_mean_value()) / 1000.0,
            h.get_value_at_percentile(50.0) / 1000.0,
            h.get_value_at_percentile(90.0) / 1000.0,
            h.get_value_at_percentile(95.0) / 1000.0,
            h.get_value_at_percentile(99.0) / 1000.0,
        )

    def reset(self) -> None:
        self._histogram.reset()
