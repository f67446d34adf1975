"""gatewayload: light load tests for an API gateway, written as Python code."""

from __future__ import annotations

from gatewayload.dsl.checks import CheckResult, check, status_is
from gatewayload.dsl.decorators import scenario, setup, task, teardown
from gatewayload.dsl.http_client import HttpClient, RequestMetric

__version__ = "0.1.0"

__all__ = [
    "CheckResult",
    "HttpClient",
    "RequestMetric",
    "check",
    "scenario",
    "setup",
    "status_is",
    "task",
    "teardown",
]
