"""
Background Task Executor

A thread pool with a hard cap on outstanding work, used for queries that
run off the request path (the low-stock report).

Capacity = max_workers running + queue_capacity waiting. A submission
beyond that is rejected immediately with TaskRejectedError instead of
queueing without bound. Submitted tasks cannot be cancelled; each
returned Future resolves exactly once.

Usage:
    future = get_executor().submit(repository.get_low_stock, db, threshold=5)
    books = await asyncio.wrap_future(future)
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from bookapi.config import get_settings
from bookapi.exceptions import TaskRejectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

THREAD_NAME_PREFIX = "bookapi-async"


class BoundedExecutor:
    """ThreadPoolExecutor wrapper that refuses work once full."""

    def __init__(
        self,
        max_workers: int,
        queue_capacity: int,
        thread_name_prefix: str = THREAD_NAME_PREFIX,
    ):
        self.max_workers = max_workers
        self.capacity = max_workers + queue_capacity
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._slots = threading.BoundedSemaphore(self.capacity)
        self._lock = threading.Lock()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Tasks submitted and not yet finished."""
        return self._in_flight

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> "Future[T]":
        """
        Schedule `fn(*args, **kwargs)`.

        Raises:
            TaskRejectedError: When `capacity` tasks are already outstanding
        """
        if not self._slots.acquire(blocking=False):
            logger.warning(f"Rejected task {getattr(fn, '__name__', fn)}: executor at capacity {self.capacity}")
            raise TaskRejectedError()

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError:
            # executor already shut down
            self._slots.release()
            raise

        with self._lock:
            self._in_flight += 1
        future.add_done_callback(self._release)
        return future

    def _release(self, _future: Future) -> None:
        with self._lock:
            self._slots.release()
            self._in_flight -= 1

    def stats(self) -> dict:
        return {
            "max_workers": self.max_workers,
            "capacity": self.capacity,
            "in_flight": self.in_flight,
        }

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_executor: Optional[BoundedExecutor] = None
_executor_lock = threading.Lock()


def get_executor() -> BoundedExecutor:
    """Process-wide executor, created from settings on first use."""
    global _executor

    with _executor_lock:
        if _executor is None:
            settings = get_settings()
            _executor = BoundedExecutor(
                max_workers=settings.async_max_workers,
                queue_capacity=settings.async_queue_capacity,
            )
            logger.info(
                f"Async executor started: {settings.async_max_workers} workers, "
                f"capacity {_executor.capacity}"
            )
        return _executor


def shutdown_executor() -> None:
    """Wait for running tasks and discard the executor."""
    global _executor

    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=True)
            _executor = None
            logger.info("Async executor stopped")
