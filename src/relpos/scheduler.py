from __future__ import annotations
from concurrent.futures import FIRST_EXCEPTION, ProcessPoolExecutor, ThreadPoolExecutor, wait
from typing import Callable, Iterator, Sequence, TypeVar
import logging

from .config import DEFAULT_WORKERS, check_pool

J = TypeVar("J")
R = TypeVar("R")


def schedule(
    jobs: Sequence[J],
    func: Callable[[J], R],
    *,
    workers: int = DEFAULT_WORKERS,
    executor: str = "process",
    logger: logging.Logger | None = None,
) -> Iterator[R]:
    """
    Run func over every job on a bounded pool and yield results as they complete.

    Every job runs exactly once. The first failing job stops the run: pending
    jobs are cancelled and its exception is raised to the consumer, so no
    partial result escapes.
    """
    check_pool(workers, executor)
    if not jobs:
        return
    pool_cls = ProcessPoolExecutor if executor == "process" else ThreadPoolExecutor
    max_workers = min(workers, len(jobs))
    if logger:
        logger.info(f"Dispatching {len(jobs)} jobs to {max_workers} {executor} workers")

    ex = pool_cls(max_workers=max_workers)
    try:
        pending = {ex.submit(func, job) for job in jobs}
        while pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            for fut in done:
                # raises the worker's exception on the consumer side
                yield fut.result()
    except BaseException:
        ex.shutdown(wait=True, cancel_futures=True)
        raise
    else:
        ex.shutdown(wait=True)
