"""Named response checks."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gatewayload._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from gatewayload._internal.types import Predicate

logger = get_logger("dsl.checks")


@dataclass
class CheckResult:
    """Outcome of one named check against one response.

    Attributes:
        name: Check name (e.g., "service-a hello status is 200").
        passed: Whether the predicate held.
        status_code: Status of the checked response, 0 if there was none.
        timestamp: Monotonic time the check was evaluated.
        worker_id: ID of the worker that evaluated the check.
    """

    name: str
    passed: bool
    status_code: int = 0
    timestamp: float = 0.0
    worker_id: int = 0


def status_is(expected: int) -> Predicate:
    """Return a predicate that holds when ``response.status == expected``."""

    def _predicate(response: object) -> bool:
        return getattr(response, "status", None) == expected

    _predicate.__name__ = f"status_is_{expected}"
    return _predicate


def check(
    response: object | None,
    predicates: Mapping[str, Predicate],
    *,
    callback: Callable[[CheckResult], None],
    worker_id: int = 0,
) -> bool:
    """Evaluate named predicates against a response and record each outcome.

    Every predicate is evaluated and recorded even after one fails. A
    predicate that raises counts as failed. A ``None`` response (the
    request never completed) fails every predicate.

    Args:
        response: The response to check, or None.
        predicates: Mapping of check name to predicate.
        callback: Receives one ``CheckResult`` per predicate.
        worker_id: Worker identifier for tagging.

    Returns:
        True if every predicate passed.
    """
    status_code = int(getattr(response, "status", 0) or 0)
    all_passed = True

    for name, predicate in predicates.items():
        if response is None:
            passed = False
        else:
            try:
                passed = bool(predicate(response))
            except Exception:
                logger.debug("Check %r raised", name, exc_info=True, extra={"check": name})
                passed = False

        callback(
            CheckResult(
                name=name,
                passed=passed,
                status_code=status_code,
                timestamp=time.monotonic(),
                worker_id=worker_id,
            )
        )
        all_passed = all_passed and passed

    return all_passed
