"""Fixed-size thread pool with a bounded pending-task queue."""

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import structlog

from ..core.errors import WorkerPoolSaturated

logger = structlog.get_logger()

DEFAULT_QUEUE_CAPACITY = 100_000


class BoundedWorkerPool:
    """
    ThreadPoolExecutor with backpressure.

    The executor's own queue is unbounded, so in-flight tasks are counted here
    and submissions beyond ``capacity`` raise instead of queueing silently.
    """

    def __init__(self, workers: Optional[int] = None, capacity: int = DEFAULT_QUEUE_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.workers = workers or os.cpu_count() or 1
        self.capacity = capacity
        self._pending = 0
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="centroid")
        logger.debug("Worker pool started", workers=self.workers, capacity=capacity)

    @property
    def pending(self) -> int:
        """Tasks submitted but not yet finished."""
        with self._lock:
            return self._pending

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        with self._lock:
            if self._pending >= self.capacity:
                raise WorkerPoolSaturated(
                    f"Worker pool queue is full ({self.capacity} pending tasks)"
                )
            self._pending += 1
        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except Exception:
            with self._lock:
                self._pending -= 1
            raise
        future.add_done_callback(self._task_done)
        return future

    def _task_done(self, future: Future) -> None:
        with self._lock:
            self._pending -= 1

    def shutdown(self, wait: bool = True) -> None:
        """Cancel queued tasks and stop the workers."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("Worker pool shut down")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
