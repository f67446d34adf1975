"""Virtual user helpers shared by the session."""

from __future__ import annotations

import asyncio

from gatewayload._internal.logging import get_logger

logger = get_logger("engine.user_utils")

# Seconds running users get to finish their current iteration on shutdown.
DEFAULT_GRACEFUL_STOP = 5.0


async def shutdown_all_users(
    user_tasks: list[tuple[int, asyncio.Task[None]]],
    stop_event: asyncio.Event,
    graceful_stop: float = DEFAULT_GRACEFUL_STOP,
) -> None:
    """Gracefully shut down all virtual users.

    Sets the stop event, waits up to ``graceful_stop`` seconds for users to
    finish their current iteration, then cancels the rest and waits for
    the cancellation to land.

    Args:
        user_tasks: List of (user_id, task) tuples to shut down.
        stop_event: Event to signal shutdown to running users.
        graceful_stop: Seconds to wait before cancelling.
    """
    stop_event.set()

    if user_tasks:
        tasks = [t for _, t in user_tasks]
        _done, pending = await asyncio.wait(tasks, timeout=graceful_stop)

        for task in pending:
            task.cancel()

        if pending:
            logger.info("Interrupted %d virtual user(s) after graceful stop", len(pending))
            await asyncio.wait(pending, timeout=2.0)

    user_tasks.clear()
    logger.debug("All virtual users shut down")
