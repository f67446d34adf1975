"""``gatewayload run``: execute a load test scenario with live terminal output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from gatewayload._internal.config import load_config, parse_duration
from gatewayload._internal.errors import GatewayLoadError
from gatewayload.engine.runner import LoadTestRunner
from gatewayload.metrics.export import write_summary_json

if TYPE_CHECKING:
    from gatewayload.metrics.models import MetricSnapshot, TestResult

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Rich live display
# ---------------------------------------------------------------------------


def _make_live_table(snapshot: MetricSnapshot | None) -> Table:
    """Build a Rich table summarising the latest interval.

    Args:
        snapshot: Latest metric snapshot, or None if no data yet.

    Returns:
        Formatted Rich Table.
    """
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    if snapshot is None:
        table.add_row("Status", "Starting...")
        return table

    table.add_row("Elapsed", f"{snapshot.elapsed_seconds:.0f}s")
    table.add_row("Active VUs", str(snapshot.active_users))
    table.add_row("Requests/sec", f"{snapshot.requests_per_second:.1f}")
    table.add_row("p95 Latency", f"{snapshot.latency_p95:.1f}ms")
    table.add_row("Iterations", str(snapshot.iterations))
    table.add_row("Checks Passed", str(snapshot.checks_passed))
    table.add_row("Checks Failed", str(snapshot.checks_failed))

    return table


def _print_summary(result: TestResult) -> None:
    """Print the final summary tables after the test completes.

    Args:
        result: Completed test result.
    """
    summary = result.final_summary
    table = Table(
        title="Test Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Scenario", result.scenario_name)
    table.add_row("VUs", str(result.vus))
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")

    if summary:
        table.add_row("Iterations", str(summary.iterations))
        table.add_row("Avg Iteration", f"{summary.iteration_duration_avg:.1f}ms")
        table.add_row("Total Requests", str(summary.total_requests))
        table.add_row("Avg Requests/sec", f"{summary.requests_per_second:.1f}")
        table.add_row("p50 Latency", f"{summary.latency_p50:.1f}ms")
        table.add_row("p95 Latency", f"{summary.latency_p95:.1f}ms")
        table.add_row("p99 Latency", f"{summary.latency_p99:.1f}ms")
        table.add_row("Request Errors", str(summary.total_errors))
        table.add_row("Checks Passed", str(summary.checks_passed))
        table.add_row("Checks Failed", str(summary.checks_failed))

        if summary.endpoints:
            console.print()
            ep_table = Table(
                title="Per-Endpoint Breakdown",
                show_header=True,
                header_style="bold cyan",
                expand=True,
            )
            ep_table.add_column("Endpoint")
            ep_table.add_column("Requests", justify="right")
            ep_table.add_column("p50", justify="right")
            ep_table.add_column("p95", justify="right")
            ep_table.add_column("Max", justify="right")
            ep_table.add_column("Errors", justify="right")

            for ep in summary.endpoints.values():
                ep_table.add_row(
                    ep.name,
                    str(ep.request_count),
                    f"{ep.latency_p50:.1f}ms",
                    f"{ep.latency_p95:.1f}ms",
                    f"{ep.latency_max:.1f}ms",
                    str(ep.error_count),
                )
            console.print(ep_table)

        if summary.checks:
            check_table = Table(
                title="Checks",
                show_header=True,
                header_style="bold cyan",
                expand=True,
            )
            check_table.add_column("")
            check_table.add_column("Check")
            check_table.add_column("Passes", justify="right")
            check_table.add_column("Fails", justify="right")
            check_table.add_column("Pass Rate", justify="right")

            for c in summary.checks.values():
                mark = "[green]✓[/green]" if c.fails == 0 else "[red]✗[/red]"
                check_table.add_row(
                    mark,
                    c.name,
                    str(c.passes),
                    str(c.fails),
                    f"{c.pass_rate * 100:.2f}%",
                )
            console.print(check_table)

    console.print(table)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    scenario_file: Path | None = typer.Argument(
        None,
        help="Path to a scenario .py file. Defaults to the built-in gateway scenario.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    scenario_name: str | None = typer.Option(
        None,
        "--scenario",
        "-s",
        help="Scenario to run when the file defines several.",
    ),
    vus: int | None = typer.Option(
        None,
        "--vus",
        "-u",
        help="Concurrent virtual users [env: GATEWAYLOAD_VUS, default: 2].",
        min=1,
    ),
    duration: str | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Run duration, e.g. 30, 15s, 5m [env: GATEWAYLOAD_DURATION, default: 15s].",
    ),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Gateway base URL [env: GATEWAYLOAD_BASE_URL, default: http://localhost:8080].",
    ),
    iterations: int | None = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Stop each virtual user after this many iterations.",
        min=1,
    ),
    pause: float | None = typer.Option(
        None,
        "--pause",
        help="Override the scenario's pause between iterations (seconds).",
        min=0.0,
    ),
    summary_export: Path | None = typer.Option(
        None,
        "--summary-export",
        help="Write the final summary to this JSON file.",
    ),
    fail_on_check_rate: float | None = typer.Option(
        None,
        "--fail-on-check-rate",
        help="Exit non-zero if the check failure rate exceeds this threshold (e.g., 0.05).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Emit structured JSON logs.",
    ),
) -> None:
    """Execute a load test scenario with live terminal output."""
    try:
        config = load_config()
        duration_seconds = (
            parse_duration(duration) if duration is not None else config.duration_seconds
        )
    except GatewayLoadError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    run_vus = vus if vus is not None else config.vus
    log_level = logging.DEBUG if verbose else logging.INFO

    try:
        test_runner = LoadTestRunner(
            scenario_file,
            vus=run_vus,
            duration_seconds=duration_seconds,
            scenario_name=scenario_name,
            base_url=base_url,
            fallback_base_url=config.base_url,
            iterations=iterations,
            pause_seconds=pause,
            request_timeout=config.request_timeout,
            log_level=log_level,
            json_logs=log_json,
        )
        scenario, resolved_url = test_runner.resolve()
    except GatewayLoadError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"[bold]Scenario:[/bold] {scenario.name}"
            f" ({scenario_file.name if scenario_file else 'built-in'})\n"
            f"[bold]Base URL:[/bold] {resolved_url}\n"
            f"[bold]VUs:[/bold]      {run_vus}\n"
            f"[bold]Duration:[/bold] {duration_seconds:g}s",
            title="gatewayload",
            border_style="cyan",
        )
    )

    try:
        with Live(
            _make_live_table(None),
            console=console,
            refresh_per_second=2,
            transient=True,
        ) as live:

            def _live_snapshot(snapshot: MetricSnapshot) -> None:
                live.update(_make_live_table(snapshot))

            test_runner.on_snapshot = _live_snapshot
            result = test_runner.run()
    except GatewayLoadError as exc:
        console.print(f"[red]Load test failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_summary(result)

    if summary_export is not None:
        written = write_summary_json(result, summary_export)
        console.print(f"[green]Summary written:[/green] {written}")

    summary = result.final_summary
    if (
        fail_on_check_rate is not None
        and summary is not None
        and summary.check_failure_rate > fail_on_check_rate
    ):
        console.print(
            f"[red]FAIL:[/red] Check failure rate {summary.check_failure_rate * 100:.2f}% "
            f"exceeds threshold {fail_on_check_rate * 100:.2f}%"
        )
        raise typer.Exit(code=1)

    console.print("[green]Load test completed successfully.[/green]")
