"""Fire-and-forget task queues for advisory background work.

A task handed to a queue has no bearing on the caller's result: its failure is logged and
swallowed by ``run_advisory`` and never propagates back into the request or commit that queued it.
"""

import concurrent.futures
from abc import ABC, abstractmethod
from collections.abc import Callable

from fastapi import BackgroundTasks

from statement_pipeline.core.utils import get_logger

logger = get_logger("statement-pipeline.worker")


def run_advisory(func: Callable[..., object], *args: object) -> None:
    """Run a task, logging (never raising) its failure."""
    name = getattr(func, "__name__", repr(func))
    try:
        func(*args)
    except Exception:
        logger.exception(f"Background task {name} failed; result is advisory and ignored")
    else:
        logger.info(f"Background task {name} finished")


class TaskQueue(ABC):
    """Accepts fire-and-forget work."""

    @abstractmethod
    def submit(self, func: Callable[..., object], *args: object) -> None:
        """Queue ``func(*args)`` without waiting for it."""


class BackgroundTasksQueue(TaskQueue):
    """Queues work on FastAPI BackgroundTasks, executed after the response is sent."""

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        """Wrap the request's BackgroundTasks."""
        self.background_tasks = background_tasks

    def submit(self, func: Callable[..., object], *args: object) -> None:
        """Queue ``func(*args)`` to run after the response."""
        self.background_tasks.add_task(run_advisory, func, *args)


class ThreadPoolTaskQueue(TaskQueue):
    """Queues work on a private thread pool, for use outside a request cycle."""

    def __init__(self, max_workers: int = 2) -> None:
        """Create the worker pool."""
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def submit(self, func: Callable[..., object], *args: object) -> None:
        """Run ``func(*args)`` on the pool."""
        self.executor.submit(run_advisory, func, *args)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the pool, optionally waiting for queued tasks."""
        self.executor.shutdown(wait=wait)


class InlineTaskQueue(TaskQueue):
    """Runs work immediately in the calling thread, still isolating failures."""

    def submit(self, func: Callable[..., object], *args: object) -> None:
        """Run ``func(*args)`` now."""
        run_advisory(func, *args)
