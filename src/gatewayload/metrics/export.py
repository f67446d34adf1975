"""JSON export of a finished run's summary."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

from gatewayload._internal.logging import get_logger

if TYPE_CHECKING:
    from gatewayload.metrics.models import TestResult

logger = get_logger("metrics.export")


def summary_to_dict(result: TestResult) -> dict[str, object]:
    """Build the JSON-serialisable summary of a run.

    Interval snapshots are left out; the summary carries the run metadata,
    the cumulative metrics, and per-check pass rates.
    """
    summary = result.final_summary
    data: dict[str, object] = {
        "scenario": result.scenario_name,
        "vus": result.vus,
        "duration_seconds": round(result.duration_seconds, 3),
        "intervals": len(result.snapshots),
    }
    if summary is None:
        return data

    metrics = asdict(summary)
    metrics.pop("timestamp")
    metrics["checks"] = {
        name: {"passes": c.passes, "fails": c.fails, "pass_rate": c.pass_rate}
        for name, c in summary.checks.items()
    }
    metrics["check_failure_rate"] = summary.check_failure_rate
    data["metrics"] = metrics
    return data


def write_summary_json(result: TestResult, path: str | Path) -> Path:
    """Write the run summary to ``path`` as indented JSON.

    Parent directories are created as needed.

    Returns:
        The path written.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(summary_to_dict(result), indent=2) + "\n")
    logger.info("Summary written to %s", target)
    return target
