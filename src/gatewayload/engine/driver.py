"""Scenario driver: runs one iteration of a scenario for one virtual user."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING

import aiohttp

from gatewayload._internal.logging import get_logger
from gatewayload.dsl.checks import check, status_is
from gatewayload.metrics.models import IterationMetric

if TYPE_CHECKING:
    from collections.abc import Callable

    from gatewayload.dsl.http_client import HttpClient
    from gatewayload.dsl.scenario import ScenarioDefinition
    from gatewayload.metrics.models import CheckResult

logger = get_logger("engine.driver")


def _noop(_: object) -> None:
    """Default no-op callback."""


class ScenarioDriver:
    """Executes scenario iterations for a single virtual user.

    An iteration runs every task of the scenario once, in declaration
    order, each waiting for the previous response. After each task the
    driver checks the response status against the task's expected status
    and records the outcome. A failed check, a non-2xx response or a
    transport error never stops the iteration; the next task runs
    regardless. ``asyncio.CancelledError`` is the only exception that
    escapes.

    One driver is created per virtual user so the per-iteration check
    counts belong to that user alone. Checks made by tasks through
    ``client.check`` should be routed through :meth:`record_check` so they
    are counted too.

    Attributes:
        scenario: The scenario being driven.
        user_id: Virtual user this driver belongs to.
        pause_seconds: Pause after each iteration.
    """

    def __init__(
        self,
        scenario: ScenarioDefinition,
        *,
        on_check: Callable[[CheckResult], None] | None = None,
        on_iteration: Callable[[IterationMetric], None] | None = None,
        user_id: int = 0,
        worker_id: int = 0,
        pause_seconds: float | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            scenario: Scenario whose tasks make up an iteration.
            on_check: Receives every ``CheckResult``.
            on_iteration: Receives an ``IterationMetric`` after each
                iteration.
            user_id: Virtual user identifier, used in logs and metrics.
            worker_id: Worker identifier for check tagging.
            pause_seconds: Override for the scenario's pause.
        """
        self.scenario = scenario
        self.user_id = user_id
        self.pause_seconds = scenario.pause_seconds if pause_seconds is None else pause_seconds
        self._on_check = on_check or _noop
        self._on_iteration = on_iteration or _noop
        self._worker_id = worker_id
        self._iterations_completed = 0
        self._passed = 0
        self._failed = 0

    @property
    def iterations_completed(self) -> int:
        """Number of iterations this driver has finished."""
        return self._iterations_completed

    def record_check(self, result: CheckResult) -> None:
        """Count a check against the current iteration and forward it."""
        if result.passed:
            self._passed += 1
        else:
            self._failed += 1
        self._on_check(result)

    async def run_iteration(self, instance: object, client: HttpClient) -> IterationMetric:
        """Run every task once, in order, checking each response.

        Args:
            instance: Instance of the scenario class for this user.
            client: The user's open ``HttpClient``.

        Returns:
            The iteration's metric (also passed to ``on_iteration``).
        """
        self._passed = 0
        self._failed = 0
        iteration = self._iterations_completed
        start = time.monotonic()

        for task_def in self.scenario.tasks:
            response: object | None = None
            try:
                response = await task_def.func(instance, client)
            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, TimeoutError) as exc:
                # Already counted as a request error by the client
                logger.debug(
                    "Request in %s failed for user %d: %s",
                    task_def.name,
                    self.user_id,
                    exc,
                    extra={"user_id": self.user_id, "iteration": iteration},
                )
            except Exception:
                logger.debug(
                    "Task %s raised for user %d",
                    task_def.name,
                    self.user_id,
                    exc_info=True,
                    extra={"user_id": self.user_id, "iteration": iteration},
                )

            if task_def.check_name is not None and task_def.expected_status is not None:
                check(
                    response,
                    {task_def.check_name: status_is(task_def.expected_status)},
                    callback=self.record_check,
                    worker_id=self._worker_id,
                )

        metric = IterationMetric(
            timestamp=start,
            user_id=self.user_id,
            iteration=iteration,
            duration_ms=(time.monotonic() - start) * 1000,
            checks_passed=self._passed,
            checks_failed=self._failed,
        )
        self._iterations_completed += 1
        self._on_iteration(metric)
        return metric

    async def pause(self, stop_event: asyncio.Event | None = None) -> None:
        """Sleep for the iteration pause.

        The pause starts after the last response of the iteration, so the
        gap between iterations is never shorter than ``pause_seconds``. It
        ends early only when ``stop_event`` is set.

        Args:
            stop_event: Event signalling that the run is stopping.
        """
        if self.pause_seconds <= 0:
            return
        if stop_event is None:
            await asyncio.sleep(self.pause_seconds)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=self.pause_seconds)
