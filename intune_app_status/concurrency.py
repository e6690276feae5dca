"""
Concurrency utilities for processing applications in parallel.

Provides thread-based concurrency for I/O-bound Graph calls.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


def execute_concurrent(
    func: Callable[[Any], T],
    items: Iterable[Any],
    max_workers: int = 1,
    logger: Optional[logging.Logger] = None,
    description: str = "Processing items",
) -> List[T]:
    """
    Execute a function across items, optionally on a thread pool, failing fast.

    With max_workers <= 1 (or a single item) items run sequentially in the
    calling thread and the first exception propagates immediately, so later
    items are never started.

    With a pool, the first failure cancels every task that has not started;
    tasks already running are allowed to finish and their results are
    discarded. The exception of the earliest-listed item that had failed
    when the pool stopped is re-raised.

    Args:
        func: Function to execute for each item (should accept single argument)
        items: Iterable of items to process
        max_workers: Maximum number of concurrent threads (default: 1)
        logger: Optional logger for progress updates
        description: Description for logging

    Returns:
        List of results in the same order as items

    Examples:
        >>> def process_app(app):
        ...     return client.fetch(f"deviceAppManagement/mobileApps/{app.id}/deviceStatuses")
        >>> statuses = execute_concurrent(process_app, apps, max_workers=4)
    """
    log = logger or logging.getLogger(__name__)
    items_list = list(items)
    total = len(items_list)

    if total == 0:
        return []

    if max_workers <= 1 or total == 1:
        return [func(item) for item in items_list]

    log.debug(f"{description}: processing {total} items with {max_workers} workers")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(func, item) for item in items_list]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            cancelled = sum(1 for f in not_done if f.cancel())
            log.error(f"{description}: aborting after failure, {cancelled} pending items cancelled")
            # Let in-flight work finish before surfacing the error
            wait(not_done)
            raise failed[0].exception()

    log.debug(f"{description}: completed {total}/{total} items")
    return [f.result() for f in futures]
