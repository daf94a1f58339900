"""
Fixed-size worker pool with fail-fast semantics.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def run_parallel(items: Iterable[T], task: Callable[[T], R], workers: int) -> List[R]:
    """
    Run ``task`` for every item on a thread pool.

    The first failing task cancels everything not yet started and its
    exception propagates. Results are returned in item order.
    """
    items = list(items)
    if not items:
        return []

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = [executor.submit(task, item) for item in items]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            logger.debug(f"Task failed, cancelled {len(pending)} pending tasks")
            raise failed[0].exception()

        return [f.result() for f in futures]
