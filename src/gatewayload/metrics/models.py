"""Metric aggregation dataclasses for gatewayload."""

from __future__ import annotations

from dataclasses import dataclass, field

# NOTE: RequestMetric and CheckResult live in the dsl package. Imported here
# for re-export so consumers can import every metric type from one place.
from gatewayload.dsl.checks import CheckResult
from gatewayload.dsl.http_client import RequestMetric

__all__ = [
    "CheckMetrics",
    "CheckResult",
    "EndpointMetrics",
    "IterationMetric",
    "MetricSnapshot",
    "RequestMetric",
    "TestResult",
]


@dataclass
class IterationMetric:
    """One completed scenario iteration of one virtual user.

    Attributes:
        timestamp: Monotonic time the iteration started.
        user_id: Virtual user that ran the iteration.
        iteration: Zero-based iteration number for that user.
        duration_ms: Time spent issuing requests, pause excluded.
        checks_passed: Checks that passed during the iteration.
        checks_failed: Checks that failed during the iteration.
    """

    timestamp: float
    user_id: int
    iteration: int
    duration_ms: float
    checks_passed: int = 0
    checks_failed: int = 0


@dataclass
class EndpointMetrics:
    """Aggregated metrics for a single endpoint (logical request name).

    Attributes:
        name: Logical endpoint name (e.g., "service-a hello").
        request_count: Total number of requests to this endpoint.
        error_count: Number of failed requests (status >= 400 or error).
        error_rate: Fraction of requests that failed (0.0 to 1.0).
        requests_per_second: Requests per second to this endpoint.
        latency_min: Minimum response time in milliseconds.
        latency_max: Maximum response time in milliseconds.
        latency_avg: Mean response time in milliseconds.
        latency_p50: 50th percentile response time in milliseconds.
        latency_p90: 90th percentile response time in milliseconds.
        latency_p95: 95th percentile response time in milliseconds.
        latency_p99: 99th percentile response time in milliseconds.
    """

    name: str
    request_count: int = 0
    error_count: int = 0
    error_rate: float = 0.0
    requests_per_second: float = 0.0
    latency_min: float = 0.0
    latency_max: float = 0.0
    latency_avg: float = 0.0
    latency_p50: float = 0.0
    latency_p90: float = 0.0
    latency_p95: float = 0.0
    latency_p99: float = 0.0


@dataclass
class CheckMetrics:
    """Pass/fail tally for one named check.

    Attributes:
        name: Check name.
        passes: Number of times the check passed.
        fails: Number of times the check failed.
    """

    name: str
    passes: int = 0
    fails: int = 0

    @property
    def total(self) -> int:
        return self.passes + self.fails

    @property
    def pass_rate(self) -> float:
        """Fraction of evaluations that passed, 0.0 when never evaluated."""
        return self.passes / self.total if self.total else 0.0


@dataclass
class MetricSnapshot:
    """Aggregated metrics over an interval, or over the whole run.

    Attributes:
        timestamp: Monotonic timestamp of the snapshot.
        elapsed_seconds: Seconds since the test started.
        active_users: Number of running virtual users.
        total_requests: Requests in this interval.
        requests_per_second: Overall RPS in this interval.
        latency_min: Minimum latency in milliseconds.
        latency_max: Maximum latency in milliseconds.
        latency_avg: Mean latency in milliseconds.
        latency_p50: 50th percentile latency (ms).
        latency_p90: 90th percentile latency (ms).
        latency_p95: 95th percentile latency (ms).
        latency_p99: 99th percentile latency (ms).
        total_errors: Failed requests in this interval.
        error_rate: Fraction of requests that errored (0.0 to 1.0).
        errors_by_status: Error count breakdown by HTTP status code.
        errors_by_type: Error count breakdown by error type string.
        iterations: Iterations completed in this interval.
        iteration_duration_avg: Mean iteration duration (ms), pause excluded.
        checks_passed: Checks passed in this interval.
        checks_failed: Checks failed in this interval.
        endpoints: Per-endpoint metrics keyed by endpoint name.
        checks: Per-check tallies keyed by check name.
    """

    timestamp: float
    elapsed_seconds: float
    active_users: int
    total_requests: int = 0
    requests_per_second: float = 0.0
    latency_min: float = 0.0
    latency_max: float = 0.0
    latency_avg: float = 0.0
    latency_p50: float = 0.0
    latency_p90: float = 0.0
    latency_p95: float = 0.0
    latency_p99: float = 0.0
    total_errors: int = 0
    error_rate: float = 0.0
    errors_by_status: dict[int, int] = field(default_factory=dict)
    errors_by_type: dict[str, int] = field(default_factory=dict)
    iterations: int = 0
    iteration_duration_avg: float = 0.0
    checks_passed: int = 0
    checks_failed: int = 0
    endpoints: dict[str, EndpointMetrics] = field(default_factory=dict)
    checks: dict[str, CheckMetrics] = field(default_factory=dict)

    @property
    def check_failure_rate(self) -> float:
        """Fraction of checks that failed (0.0 when no checks ran)."""
        total = self.checks_passed + self.checks_failed
        return self.checks_failed / total if total else 0.0


@dataclass
class TestResult:
    """Complete result of a load test run.

    Attributes:
        scenario_name: Name of the scenario that was executed.
        vus: Configured virtual user count.
        start_time: Monotonic time when the test started.
        end_time: Monotonic time when the test completed.
        duration_seconds: Total wall-clock duration of the test.
        snapshots: Time-series of interval MetricSnapshots.
        final_summary: Aggregate MetricSnapshot for the entire test.
    """

    __test__ = False

    scenario_name: str
    vus: int
    start_time: float
    end_time: float
    duration_seconds: float
    snapshots: list[MetricSnapshot] = field(default_factory=list)
    final_summary: MetricSnapshot | None = None
