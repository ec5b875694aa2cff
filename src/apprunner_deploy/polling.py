"""Deadline-bounded polling shared by every wait in a reconciliation run."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import POLL_INTERVAL_SECONDS
from .errors import StabilizationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    *,
    timeout_seconds: float,
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
    description: str = "Service",
) -> T:
    """Call fetch until is_done accepts its result or the deadline passes.

    The deadline is absolute and is the only bound on the loop, including a
    fetch that is still in flight when it passes. Each iteration
    sleeps for whatever is left of the poll interval after the fetch itself,
    so slow round trips do not stretch the cadence.

    Args:
        fetch: Coroutine factory returning the observed value.
        is_done: Predicate marking the value as terminal.
        timeout_seconds: Wait budget measured from the first call.
        poll_interval_seconds: Target time between fetches.
        description: Subject used in the timeout message.

    Returns:
        The first value accepted by is_done.

    Raises:
        StabilizationTimeoutError: If the deadline passes first.
    """
    started = time.monotonic()
    deadline = started + timeout_seconds

    while True:
        iteration_started = time.monotonic()
        try:
            # A slow fetch must not hold the loop past the deadline
            value = await asyncio.wait_for(
                fetch(), timeout=max(0.0, deadline - iteration_started)
            )
        except TimeoutError:
            break
        if is_done(value):
            return value

        elapsed = time.monotonic() - iteration_started
        remaining = deadline - time.monotonic()
        await asyncio.sleep(max(0.0, min(poll_interval_seconds - elapsed, remaining)))

        if time.monotonic() >= deadline:
            break

    waited = time.monotonic() - started
    logger.warning(
        "Polling deadline exceeded",
        extra={"timeout_seconds": timeout_seconds, "elapsed_seconds": round(waited, 1)},
    )
    raise StabilizationTimeoutError(
        f"{description} did not reach stable state within {timeout_seconds:g} seconds "
        f"(waited {waited:.0f} seconds)",
        elapsed_seconds=waited,
    )
