#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
General utilities for Playlistindex.

Includes the fan-out helper used by the enrichment pipeline, id batching and
a performance timer.
"""

import asyncio
import time
from contextlib import contextmanager
from typing import Any, Awaitable, Iterable, Iterator, List, Sequence, TypeVar

from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

T = TypeVar("T")


# --- Structured fan-out ---

async def run_all(coros: Iterable[Awaitable[T]]) -> List[T]:
    """Run awaitables concurrently and return their results in input order.

    The first failure cancels every sibling that is still running, waits for
    the cancellations to settle and re-raises that failure, so no task
    outlives the call.

    Args:
        coros: Coroutines (or other awaitables) to run.

    Returns:
        list: One result per awaitable, in the order they were given.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        # The caller itself was cancelled; take the children down with it
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failed = [t for t in tasks if t in done and not t.cancelled() and t.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug(f"Cancelled {len(pending)} sibling task(s) after a failure.")
        # Retrieve every exception so asyncio does not warn about unread ones
        for task in failed[1:]:
            task.exception()
        raise failed[0].exception()

    return [t.result() for t in tasks]


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


# --- Performance Timer ---

@contextmanager
def performance_timer(operation_name: str, threshold_ms: float = 100.0, **context: Any):
    """Context manager for timing operations with threshold-based logging.

    Logs at INFO level if the block takes longer than ``threshold_ms``,
    WARNING if it takes more than ten times that, otherwise DEBUG.

    Args:
        operation_name: A descriptive name for the operation being timed.
        threshold_ms: Threshold in milliseconds.
        **context: Extra structured fields for the log record.
    """
    start_time = time.monotonic()
    try:
        yield
    finally:
        duration_ms = (time.monotonic() - start_time) * 1000
        fields = {"operation": operation_name, "duration_ms": round(duration_ms, 2), **context}

        if duration_ms > threshold_ms * 10:
            logger.warning(f"SLOW OPERATION: '{operation_name}' took {duration_ms:.2f}ms", **fields)
        elif duration_ms > threshold_ms:
            logger.info(f"Performance watch: '{operation_name}' took {duration_ms:.2f}ms", **fields)
        else:
            logger.debug(f"Performance: '{operation_name}' completed in {duration_ms:.2f}ms", **fields)
