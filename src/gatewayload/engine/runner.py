"""Top-level load test orchestrator."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gatewayload._internal.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from gatewayload._internal.errors import ConfigError, EngineError
from gatewayload._internal.logging import get_logger, setup_logging
from gatewayload.dsl.loader import resolve_scenario
from gatewayload.dsl.scenario import ScenarioDefinition
from gatewayload.engine.session import TestSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from gatewayload.metrics.models import MetricSnapshot, TestResult

logger = get_logger("engine.runner")


class LoadTestRunner:
    """Blocking entry point for a load test run.

    Resolves the scenario (a definition, a scenario file, or the built-in
    gateway scenario), configures logging, and drives a ``TestSession`` on
    a fresh event loop.

    Attributes:
        scenario_path: Absolute path to the scenario file, or None when
            running a definition or the built-in scenario.
        on_snapshot: Callback invoked with each interval snapshot. May be
            replaced before ``run()``.
    """

    def __init__(
        self,
        scenario: ScenarioDefinition | str | Path | None = None,
        *,
        vus: int,
        duration_seconds: float,
        scenario_name: str | None = None,
        base_url: str | None = None,
        fallback_base_url: str = DEFAULT_BASE_URL,
        iterations: int | None = None,
        pause_seconds: float | None = None,
        tick_interval: float = 1.0,
        request_timeout: float = DEFAULT_TIMEOUT,
        on_snapshot: Callable[[MetricSnapshot], None] | None = None,
        log_level: int = logging.INFO,
        json_logs: bool = False,
    ) -> None:
        """Initialize the runner.

        Args:
            scenario: Scenario definition, path to a scenario .py file, or
                None for the built-in gateway scenario.
            vus: Number of concurrent virtual users.
            duration_seconds: Maximum run duration in seconds.
            scenario_name: Scenario to pick from a file defining several.
            base_url: Base URL override. Without it the scenario's own
                base URL is used, then ``fallback_base_url``.
            fallback_base_url: Base URL for scenarios that declare none.
            iterations: Optional per-user iteration cap.
            pause_seconds: Override for the scenario's iteration pause.
            tick_interval: Seconds between interval snapshots.
            request_timeout: Per-request timeout in seconds.
            on_snapshot: Optional callback invoked with each snapshot.
            log_level: Logging level.
            json_logs: Emit structured JSON logs.

        Raises:
            ConfigError: If vus, duration or iterations are out of range.
            EngineError: If the scenario file does not exist.
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
        if pause_seconds is not None and pause_seconds < 0:
            msg = f"pause_seconds must be >= 0, got {pause_seconds}"
            raise ConfigError(msg)

        self.scenario_path: str | None = None
        if scenario is not None and not isinstance(scenario, ScenarioDefinition):
            self.scenario_path = str(Path(scenario).resolve())
            if not Path(self.scenario_path).exists():
                msg = f"Scenario file not found: {self.scenario_path}"
                raise EngineError(msg)

        self._scenario = scenario if isinstance(scenario, ScenarioDefinition) else None
        self._scenario_name = scenario_name
        self._vus = vus
        self._duration_seconds = duration_seconds
        self._base_url = base_url
        self._fallback_base_url = fallback_base_url
        self._iterations = iterations
        self._pause_seconds = pause_seconds
        self._tick_interval = tick_interval
        self._request_timeout = request_timeout
        self._log_level = log_level
        self._json_logs = json_logs
        self._resolved: tuple[ScenarioDefinition, str] | None = None
        self.on_snapshot = on_snapshot

    def resolve(self) -> tuple[ScenarioDefinition, str]:
        """Load the scenario and pick the base URL it runs against.

        The base URL is the explicit ``base_url``, else the scenario's own,
        else ``fallback_base_url``. The result is cached, so callers may
        resolve early (to report errors or print a banner) before ``run()``.

        Returns:
            Tuple of (scenario definition, base URL).

        Raises:
            ScenarioError: If the scenario cannot be loaded or no scenario
                has the requested name.
        """
        if self._resolved is None:
            scenario = resolve_scenario(
                self._scenario if self._scenario is not None else self.scenario_path,
                self._scenario_name,
            )
            base_url = self._base_url or scenario.base_url or self._fallback_base_url
            self._resolved = (scenario, base_url)
        return self._resolved

    def run(self) -> TestResult:
        """Execute the load test and return results.

        Blocks until the duration expires, every user reaches the
        iteration cap, or SIGINT/SIGTERM is received.

        Returns:
            TestResult containing all snapshots and the final summary.

        Raises:
            ScenarioError: If the scenario file cannot be loaded.
            EngineError: If the test fails to execute.
        """
        setup_logging(level=self._log_level, json_format=self._json_logs)

        scenario, base_url = self.resolve()

        logger.info(
            "Starting load test: scenario=%s, vus=%d, duration=%.1fs, iterations=%s",
            scenario.name,
            self._vus,
            self._duration_seconds,
            self._iterations if self._iterations is not None else "unbounded",
            extra={"scenario": scenario.name},
        )

        async def _run() -> TestResult:
            session = TestSession(
                scenario,
                self._vus,
                self._duration_seconds,
                base_url=base_url,
                iterations=self._iterations,
                pause_seconds=self._pause_seconds,
                tick_interval=self._tick_interval,
                request_timeout=self._request_timeout,
                on_snapshot=self.on_snapshot,
            )
            return await session.run()

        try:
            return asyncio.run(_run())
        except KeyboardInterrupt as exc:
            msg = "Load test interrupted"
            raise EngineError(msg) from exc
