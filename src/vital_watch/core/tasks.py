"""
Detached background work that must not hold up a request.

Used for compensating actions: the request that triggers one gets its
response immediately while the action runs on a worker thread.
"""
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Optional
import logging

logger = logging.getLogger(__name__)

class BackgroundTaskRunner:
    """
    Fire-and-forget task runner backed by a thread pool.

    The pool is created on first use and shut down with the application.
    Tasks are expected to handle their own failures; anything that escapes
    is logged at CRITICAL.
    """

    def __init__(self, max_workers: int = 2, thread_name_prefix: str = "background"):
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = Lock()

    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """
        Schedule `func(*args, **kwargs)` and return without waiting for it.

        Args:
            func: Callable to run on a worker thread
        """
        future = self._get_executor().submit(func, *args, **kwargs)
        future.add_done_callback(self._log_failure)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks; by default waits for queued ones to finish."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix=self.thread_name_prefix
                )
            return self._executor

    @staticmethod
    def _log_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.critical(f"Background task failed with an unhandled error: {exc!r}")
