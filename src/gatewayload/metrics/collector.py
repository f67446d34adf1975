"""In-memory collection of request metrics, check results and iterations."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import TYPE_CHECKING

import numpy as np

from gatewayload._internal.logging import get_logger
from gatewayload.metrics.histogram import LatencyHistogram
from gatewayload.metrics.models import CheckMetrics, EndpointMetrics, MetricSnapshot

if TYPE_CHECKING:
    from gatewayload.metrics.histogram import LatencyStats
    from gatewayload.metrics.models import CheckResult, IterationMetric, RequestMetric

logger = get_logger("metrics.collector")

_PERCENTILES = [50.0, 90.0, 95.0, 99.0]


def _compute_latency_stats(latencies: list[float]) -> LatencyStats:
    """Compute latency statistics from a list of latency values.

    Args:
        latencies: List of latency values in milliseconds.

    Returns:
        Tuple of (min, max, avg, p50, p90, p95, p99).
    """
    if not latencies:
        return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    arr = np.array(latencies, dtype=np.float64)
    p50, p90, p95, p99 = np.percentile(arr, _PERCENTILES)

    return (
        float(np.min(arr)),
        float(np.max(arr)),
        float(np.mean(arr)),
        float(p50),
        float(p90),
        float(p95),
        float(p99),
    )


class MetricCollector:
    """Collects request metrics, check results and iterations in deques.

    ``record``, ``record_check`` and ``record_iteration`` are handed to the
    HTTP client and the scenario driver as callbacks. ``flush`` drains the
    buffers into an interval ``MetricSnapshot`` with exact percentiles;
    ``get_cumulative_snapshot`` summarises everything seen so far, taking
    its latencies from HDR histograms fed on every ``record``.

    Attributes:
        worker_id: Worker identifier for metric tagging.
    """

    def __init__(self, worker_id: int = 0) -> None:
        self.worker_id = worker_id
        self._requests: deque[RequestMetric] = deque()
        self._checks: deque[CheckResult] = deque()
        self._iterations: deque[IterationMetric] = deque()
        self._all_requests: list[RequestMetric] = []
        self._all_checks: list[CheckResult] = []
        self._all_iterations: list[IterationMetric] = []
        self._overall_latency = LatencyHistogram()
        self._endpoint_latency: dict[str, LatencyHistogram] = defaultdict(LatencyHistogram)
        self._last_flush_time: float = time.monotonic()

    @property
    def pending_count(self) -> int:
        """Return the number of unflushed request metrics."""
        return len(self._requests)

    def record(self, metric: RequestMetric) -> None:
        """Append a request metric. Used as ``HttpClient.metric_callback``."""
        self._requests.append(metric)
        self._overall_latency.record(metric.latency_ms)
        self._endpoint_latency[metric.name].record(metric.latency_ms)

    def record_check(self, result: CheckResult) -> None:
        """Append a check outcome."""
        self._checks.append(result)
        if not result.passed:
            logger.debug(
                "Check failed: %s (status=%d)",
                result.name,
                result.status_code,
                extra={"check": result.name, "status_code": result.status_code},
            )

    def record_iteration(self, metric: IterationMetric) -> None:
        """Append a completed iteration."""
        self._iterations.append(metric)

    def flush(
        self,
        elapsed_seconds: float,
        active_users: int,
    ) -> MetricSnapshot:
        """Drain the buffers and compute an aggregated snapshot.

        Args:
            elapsed_seconds: Seconds elapsed since the test started.
            active_users: Current number of running virtual users.

        Returns:
            A MetricSnapshot summarising everything flushed in this call.
        """
        requests = _drain(self._requests)
        checks = _drain(self._checks)
        iterations = _drain(self._iterations)

        self._all_requests.extend(requests)
        self._all_checks.extend(checks)
        self._all_iterations.extend(iterations)

        now = time.monotonic()
        interval = max(now - self._last_flush_time, 0.001)
        self._last_flush_time = now

        return self._build_snapshot(
            requests=requests,
            checks=checks,
            iterations=iterations,
            elapsed_seconds=elapsed_seconds,
            active_users=active_users,
            interval=interval,
        )

    def get_cumulative_snapshot(
        self,
        elapsed_seconds: float,
        active_users: int,
    ) -> MetricSnapshot:
        """Return a snapshot of everything collected since init.

        Pending (unflushed) data is included without being drained.

        Args:
            elapsed_seconds: Total elapsed seconds, used for RPS.
            active_users: Current running virtual user count.

        Returns:
            A cumulative MetricSnapshot.
        """
        return self._build_snapshot(
            requests=[*self._all_requests, *self._requests],
            checks=[*self._all_checks, *self._checks],
            iterations=[*self._all_iterations, *self._iterations],
            elapsed_seconds=elapsed_seconds,
            active_users=active_users,
            interval=max(elapsed_seconds, 0.001),
            from_histograms=True,
        )

    def reset(self) -> None:
        """Clear all internal state. Primarily for testing."""
        for buffer in (self._requests, self._checks, self._iterations):
            buffer.clear()
        self._all_requests.clear()
        self._all_checks.clear()
        self._all_iterations.clear()
        self._overall_latency.reset()
        self._endpoint_latency.clear()
        self._last_flush_time = time.monotonic()

    def _build_snapshot(
        self,
        requests: list[RequestMetric],
        checks: list[CheckResult],
        iterations: list[IterationMetric],
        elapsed_seconds: float,
        active_users: int,
        interval: float,
        from_histograms: bool = False,
    ) -> MetricSnapshot:
        """Aggregate requests, checks and iterations into a snapshot.

        With ``from_histograms`` the latency figures come from the running
        HDR histograms instead of an exact pass over ``requests``.
        """
        # Group requests by endpoint
        by_endpoint: dict[str, list[RequestMetric]] = defaultdict(list)
        errors_by_status: dict[int, int] = defaultdict(int)
        errors_by_type: dict[str, int] = defaultdict(int)
        total_errors = 0

        for metric in requests:
            by_endpoint[metric.name].append(metric)
            if metric.failed:
                total_errors += 1
                if metric.status_code >= 400:
                    errors_by_status[metric.status_code] += 1
                if metric.error is not None:
                    # "ClientConnectorError: ..." -> "ClientConnectorError"
                    errors_by_type[metric.error.split(":")[0].strip()] += 1

        if from_histograms:
            overall = self._overall_latency.stats()
        else:
            overall = _compute_latency_stats([m.latency_ms for m in requests])
        lat_min, lat_max, lat_avg, p50, p90, p95, p99 = overall

        endpoints: dict[str, EndpointMetrics] = {}
        for name, ep_metrics in by_endpoint.items():
            ep_count = len(ep_metrics)
            ep_errors = sum(1 for m in ep_metrics if m.failed)
            if from_histograms:
                ep_stats = self._endpoint_latency[name].stats()
            else:
                ep_stats = _compute_latency_stats([m.latency_ms for m in ep_metrics])
            ep_min, ep_max, ep_avg, ep_p50, ep_p90, ep_p95, ep_p99 = ep_stats
            endpoints[name] = EndpointMetrics(
                name=name,
                request_count=ep_count,
                error_count=ep_errors,
                error_rate=ep_errors / ep_count,
                requests_per_second=ep_count / interval,
                latency_min=ep_min,
                latency_max=ep_max,
                latency_avg=ep_avg,
                latency_p50=ep_p50,
                latency_p90=ep_p90,
                latency_p95=ep_p95,
                latency_p99=ep_p99,
            )

        # Checks keep first-seen order so reports follow the scenario order
        check_tallies: dict[str, CheckMetrics] = {}
        for result in checks:
            tally = check_tallies.setdefault(result.name, CheckMetrics(name=result.name))
            if result.passed:
                tally.passes += 1
            else:
                tally.fails += 1
        checks_passed = sum(t.passes for t in check_tallies.values())
        checks_failed = sum(t.fails for t in check_tallies.values())

        iteration_avg = (
            float(np.mean([i.duration_ms for i in iterations])) if iterations else 0.0
        )

        total_requests = len(requests)
        return MetricSnapshot(
            timestamp=time.monotonic(),
            elapsed_seconds=elapsed_seconds,
            active_users=active_users,
            total_requests=total_requests,
            requests_per_second=total_requests / interval,
            latency_min=lat_min,
            latency_max=lat_max,
            latency_avg=lat_avg,
            latency_p50=p50,
            latency_p90=p90,
            latency_p95=p95,
            latency_p99=p99,
            total_errors=total_errors,
            error_rate=total_errors / total_requests if total_requests else 0.0,
            errors_by_status=dict(errors_by_status),
            errors_by_type=dict(errors_by_type),
            iterations=len(iterations),
            iteration_duration_avg=iteration_avg,
            checks_passed=checks_passed,
            checks_failed=checks_failed,
            endpoints=endpoints,
            checks=check_tallies,
        )


def _drain(buffer: deque) -> list:
    drained = []
    while buffer:
        drained.append(buffer.popleft())
    return drained
