"""
Execution backends for resampling iterations.

Iterations are independent tasks. Results are returned in task order
regardless of completion order, so the worker count never changes the
output. If a task raises, tasks not yet started are cancelled, tasks
already running are allowed to finish (the pool context waits for them),
and the first error in task order is re-raised.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar

from pymlshop.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def _pool(settings: Settings) -> Executor:
    if settings.executor == "process":
        return ProcessPoolExecutor(max_workers=settings.n_jobs)
    return ThreadPoolExecutor(max_workers=settings.n_jobs)


def run_tasks(worker: Callable[[T], R], tasks: Sequence[T], settings: Settings) -> list[R]:
    """
    Run ``worker`` over ``tasks`` and return results in task order.

    Sequential unless settings.executor is "thread" or "process" with
    n_jobs > 1. Process workers require a picklable worker and tasks.
    """
    if settings.executor == "sequential" or settings.n_jobs == 1 or len(tasks) <= 1:
        return [worker(task) for task in tasks]

    logger.debug("running %d tasks on a %s pool with %d workers",
                 len(tasks), settings.executor, settings.n_jobs)
    with _pool(settings) as pool:
        futures = [pool.submit(worker, task) for task in tasks]
        try:
            return [future.result() for future in futures]
        except BaseException:
            n_cancelled = sum(future.cancel() for future in futures)
            logger.debug("cancelled %d pending tasks after a failure", n_cancelled)
            raise
