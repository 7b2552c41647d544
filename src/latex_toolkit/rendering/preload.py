"""
Module: rendering.preload

Purpose:
    Background queue for fire-and-forget render work (cache warm-ups and
    session preloads), so callers are never blocked.

Key Classes:
    - PreloadQueue: Thread pool-based background task queue

Dependencies:
    - concurrent.futures: Thread pool execution

Used By:
    - latex_toolkit.rendering.pipeline: RenderPipeline.preload
    - latex_toolkit.session: RenderSession.preload
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class PreloadQueue:
    """
    Thread pool-based background queue.

    Failures of queued tasks are logged, never raised to the submitter;
    the returned Future still carries the exception for callers that
    wait on it.

    Usage:
        queue = PreloadQueue(max_workers=2)
        try:
            queue.submit(pipeline.render_blocks, blocks, options)
            queue.wait_all()
        finally:
            queue.shutdown()

    Attributes:
        max_workers: Maximum concurrent background threads.
    """

    def __init__(self, max_workers: int = 2):
        """
        Initialize preload queue.

        Args:
            max_workers: Maximum concurrent background threads.
        """
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="latex-preload",
        )
        self._futures: List[Future] = []
        self._succeeded = 0
        self._lock = threading.Lock()
        self._enabled = True

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Queue a task.

        Returns:
            Future for the task. Already completed if the queue is disabled.
        """
        if not self._enabled:
            # Synchronous fallback
            future: Future = Future()
            try:
                future.set_result(self._run(fn, args, kwargs))
            except Exception as e:
                logger.error(f"Preload failed: {e}")
                future.set_exception(e)
            return future

        future = self._executor.submit(self._run, fn, args, kwargs)
        with self._lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)
        future.add_done_callback(self._task_done)
        return future

    def wait_all(self, timeout: Optional[float] = None) -> int:
        """
        Wait for all queued tasks to complete.

        Args:
            timeout: Max seconds to wait per task (None = indefinite).

        Returns:
            Number of tasks that completed successfully since the last call.
        """
        with self._lock:
            futures, self._futures = self._futures, []
        for future in futures:
            try:
                future.result(timeout=timeout)
            except Exception:
                # Already logged by _task_done
                pass
        with self._lock:
            completed, self._succeeded = self._succeeded, 0
        return completed

    def shutdown(self, cancel_pending: bool = False) -> None:
        """Shutdown the thread pool."""
        self._executor.shutdown(wait=True, cancel_futures=cancel_pending)

    def disable(self) -> None:
        """Disable background execution (run tasks synchronously)."""
        self._enabled = False

    def __enter__(self) -> "PreloadQueue":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        result = fn(*args, **kwargs)
        # Counted before the future resolves so wait_all never misses it
        with self._lock:
            self._succeeded += 1
        return result

    def _task_done(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Preload failed: {error}")
