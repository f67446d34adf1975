"""Test session lifecycle management and signal handling."""

from __future__ import annotations

import asyncio
import signal
import sys
import threading
import time
from enum import Enum, auto
from typing import TYPE_CHECKING

from gatewayload._internal.errors import ConfigError, EngineError
from gatewayload._internal.logging import get_logger
from gatewayload.dsl.http_client import HttpClient
from gatewayload.engine._user_utils import DEFAULT_GRACEFUL_STOP, shutdown_all_users
from gatewayload.engine.driver import ScenarioDriver
from gatewayload.metrics.collector import MetricCollector
from gatewayload.metrics.models import MetricSnapshot, TestResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from gatewayload.dsl.scenario import ScenarioDefinition

logger = get_logger("engine.session")


class SessionState(Enum):
    """State machine for a test session."""

    CREATED = auto()
    STARTING = auto()
    RUNNING = auto()
    STOPPING = auto()
    COMPLETED = auto()
    FAILED = auto()


class TestSession:
    """Runs a fixed number of virtual users for a fixed duration.

    Every virtual user loops: run one scenario iteration, pause, repeat.
    Users are independent; they share only the metric collector and the
    stop event. The session ends when the duration elapses, when every
    user has finished its iteration cap, or when SIGINT/SIGTERM arrives.

    State machine: CREATED -> STARTING -> RUNNING -> STOPPING -> COMPLETED
                                                  -> FAILED (on error)

    Attributes:
        scenario: The scenario being executed.
        vus: Number of virtual users.
        base_url: Gateway base URL the users target.
    """

    __test__ = False

    def __init__(
        self,
        scenario: ScenarioDefinition,
        vus: int,
        duration_seconds: float,
        *,
        base_url: str | None = None,
        iterations: int | None = None,
        pause_seconds: float | None = None,
        tick_interval: float = 1.0,
        request_timeout: float = 30.0,
        graceful_stop: float = DEFAULT_GRACEFUL_STOP,
        on_snapshot: Callable[[MetricSnapshot], None] | None = None,
        handle_signals: bool = True,
        worker_id: int = 0,
    ) -> None:
        """Initialize a test session.

        Args:
            scenario: The scenario definition to execute.
            vus: Number of concurrent virtual users.
            duration_seconds: Maximum run duration in seconds.
            base_url: Base URL override. Falls back to the scenario's.
            iterations: Optional per-user iteration cap.
            pause_seconds: Override for the scenario's iteration pause.
            tick_interval: Seconds between interval snapshots.
            request_timeout: Per-request timeout in seconds.
            graceful_stop: Seconds users get to finish on shutdown.
            on_snapshot: Optional callback for every interval snapshot.
            handle_signals: Install SIGINT/SIGTERM handlers while running.
            worker_id: Worker identifier for metric tagging.

        Raises:
            ConfigError: If a numeric parameter is out of range or no base
                URL is available.
        """
        if vus < 1:
            msg = f"vus must be >= 1, got {vus}"
            raise ConfigError(msg)
        if duration_seconds <= 0:
            msg = f"duration_seconds must be positive, got {duration_seconds}"
            raise ConfigError(msg)
        if iterations is not None and iterations < 1:
            msg = f"iterations must be >= 1, got {iterations}"
            raise ConfigError(msg)
        if tick_interval <= 0:
            msg = f"tick_interval must be positive, got {tick_interval}"
            raise ConfigError(msg)

        resolved_url = base_url or scenario.base_url
        if not resolved_url:
            msg = f"No base URL for scenario {scenario.name!r}"
            raise ConfigError(msg)

        self.scenario = scenario
        self.vus = vus
        self.base_url = resolved_url
        self._duration_seconds = duration_seconds
        self._iterations = iterations
        self._pause_seconds = pause_seconds
        self._tick_interval = tick_interval
        self._request_timeout = request_timeout
        self._graceful_stop = graceful_stop
        self._on_snapshot = on_snapshot
        self._handle_signals = handle_signals
        self._worker_id = worker_id

        self._state = SessionState.CREATED
        self._collector = MetricCollector(worker_id=worker_id)
        self._user_tasks: list[tuple[int, asyncio.Task[None]]] = []
        self._stop_event = asyncio.Event()
        self._signals_installed = False
        self._aborted_users = 0

    @property
    def state(self) -> SessionState:
        """Return the current session state."""
        return self._state

    @property
    def active_user_count(self) -> int:
        """Return the number of virtual users still running."""
        return sum(1 for _, t in self._user_tasks if not t.done())

    async def run(self) -> TestResult:
        """Execute the full test session lifecycle.

        Returns:
            TestResult containing all interval snapshots and the summary.

        Raises:
            EngineError: If the session encounters an unrecoverable error
                or every virtual user aborted.
        """
        self._state = SessionState.STARTING
        logger.info(
            "Starting test session: scenario=%s, vus=%d, duration=%.1fs, base_url=%s",
            self.scenario.name,
            self.vus,
            self._duration_seconds,
            self.base_url,
            extra={"scenario": self.scenario.name},
        )

        self._install_signal_handlers()

        start_time = time.monotonic()
        deadline = start_time + self._duration_seconds
        snapshots: list[MetricSnapshot] = []

        try:
            for user_id in range(self.vus):
                task = asyncio.create_task(
                    self._run_virtual_user(user_id),
                    name=f"virtual-user-{user_id}",
                )
                self._user_tasks.append((user_id, task))

            self._state = SessionState.RUNNING

            while not self._stop_event.is_set():
                now = time.monotonic()
                if now >= deadline or self.active_user_count == 0:
                    break

                await asyncio.sleep(min(self._tick_interval, deadline - now))

                elapsed = time.monotonic() - start_time
                snapshot = self._collector.flush(
                    elapsed_seconds=elapsed,
                    active_users=self.active_user_count,
                )
                snapshots.append(snapshot)
                if self._on_snapshot is not None:
                    self._on_snapshot(snapshot)

                logger.debug(
                    "Tick %.1fs: users=%d, rps=%.1f, p95=%.1fms, checks_failed=%d",
                    elapsed,
                    snapshot.active_users,
                    snapshot.requests_per_second,
                    snapshot.latency_p95,
                    snapshot.checks_failed,
                )

        except Exception as exc:
            self._state = SessionState.FAILED
            logger.exception("Test session failed")
            raise EngineError("Test session failed") from exc
        finally:
            if self._state != SessionState.FAILED:
                self._state = SessionState.STOPPING
            await shutdown_all_users(self._user_tasks, self._stop_event, self._graceful_stop)
            self._remove_signal_handlers()

        if self._aborted_users == self.vus:
            self._state = SessionState.FAILED
            msg = f"All {self.vus} virtual user(s) aborted"
            logger.error(msg)
            raise EngineError(msg)

        end_time = time.monotonic()
        total_duration = end_time - start_time

        # Capture whatever arrived during shutdown
        self._collector.flush(elapsed_seconds=total_duration, active_users=0)
        final_summary = self._collector.get_cumulative_snapshot(
            elapsed_seconds=total_duration,
            active_users=0,
        )

        self._state = SessionState.COMPLETED
        logger.info(
            "Test completed: duration=%.1fs, iterations=%d, requests=%d, "
            "p95=%.1fms, checks=%d passed / %d failed",
            total_duration,
            final_summary.iterations,
            final_summary.total_requests,
            final_summary.latency_p95,
            final_summary.checks_passed,
            final_summary.checks_failed,
        )

        return TestResult(
            scenario_name=self.scenario.name,
            vus=self.vus,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=total_duration,
            snapshots=snapshots,
            final_summary=final_summary,
        )

    async def stop(self) -> None:
        """Request graceful shutdown; the main loop exits on its next check."""
        if self._state == SessionState.RUNNING:
            logger.info("Graceful shutdown requested")
            self._state = SessionState.STOPPING
            self._stop_event.set()

    async def _run_virtual_user(self, user_id: int) -> None:
        """Run a single virtual user lifecycle.

        A user whose scenario instance, client or setup raises is counted
        as aborted; the other users keep running.

        Args:
            user_id: Unique identifier for this virtual user.
        """
        driver = ScenarioDriver(
            self.scenario,
            on_check=self._collector.record_check,
            on_iteration=self._collector.record_iteration,
            user_id=user_id,
            worker_id=self._worker_id,
            pause_seconds=self._pause_seconds,
        )
        log_extra = {"user_id": user_id}

        try:
            instance = self.scenario.cls()
            async with HttpClient(
                base_url=self.base_url,
                headers=dict(self.scenario.default_headers),
                metric_callback=self._collector.record,
                check_callback=driver.record_check,
                worker_id=self._worker_id,
                timeout=self._request_timeout,
            ) as client:
                try:
                    if self.scenario.setup_func is not None:
                        await self.scenario.setup_func(instance, client)

                    while not self._stop_event.is_set():
                        await driver.run_iteration(instance, client)
                        await driver.pause(self._stop_event)
                        if (
                            self._iterations is not None
                            and driver.iterations_completed >= self._iterations
                        ):
                            break
                finally:
                    # Teardown always runs once the instance exists
                    await self._run_teardown(instance, client, user_id)

            logger.debug(
                "User %d finished after %d iteration(s)",
                user_id,
                driver.iterations_completed,
                extra=log_extra,
            )

        except asyncio.CancelledError:
            pass
        except Exception:
            self._aborted_users += 1
            logger.warning("Virtual user %d aborted", user_id, exc_info=True, extra=log_extra)

    async def _run_teardown(self, instance: object, client: HttpClient, user_id: int) -> None:
        if self.scenario.teardown_func is None:
            return
        try:
            await self.scenario.teardown_func(instance, client)
        except Exception:
            logger.warning(
                "Teardown failed for user %d",
                user_id,
                exc_info=True,
                extra={"user_id": user_id},
            )

    def _install_signal_handlers(self) -> None:
        """Install SIGINT and SIGTERM handlers for graceful shutdown.

        Only possible from the main thread; elsewhere the session runs
        without them.
        """
        if not self._handle_signals or threading.current_thread() is not threading.main_thread():
            return

        loop = asyncio.get_running_loop()

        def _signal_handler() -> None:
            logger.info("Signal received, initiating graceful shutdown")
            self._state = SessionState.STOPPING
            self._stop_event.set()

        if sys.platform != "win32":
            loop.add_signal_handler(signal.SIGINT, _signal_handler)
            loop.add_signal_handler(signal.SIGTERM, _signal_handler)
        else:
            # Windows doesn't support add_signal_handler
            signal.signal(signal.SIGINT, lambda _s, _f: _signal_handler())
            signal.signal(signal.SIGTERM, lambda _s, _f: _signal_handler())
        self._signals_installed = True

    def _remove_signal_handlers(self) -> None:
        """Remove custom signal handlers, restoring defaults."""
        if not self._signals_installed:
            return
        if sys.platform != "win32":
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
        else:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            signal.signal(signal.SIGTERM, signal.SIG_DFL)
        self._signals_installed = False
