"""
Module: transform.queue

Purpose:
    Background execution of raster transforms. Jobs are keyed (by item
    id); jobs sharing a key run strictly in submission order while jobs
    for different keys run in parallel. Callers get a Future back
    immediately and never block on decoding.

Key Classes:
    - TransformQueue: Thread pool with per-key ordering

Dependencies:
    - concurrent.futures: Thread pool execution

Used By:
    - session.PhotoSession: Rotate/flip/crop/background requests
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TransformQueue:
    """
    Thread pool-based transform queue with per-key ordering.

    Each submission waits for the previous submission with the same
    key before it starts, whether that one succeeded or failed.

    Usage:
        queue = TransformQueue(max_workers=2)
        try:
            future = queue.submit(item.id, bake, item.id)
            queue.wait_all()
        finally:
            queue.shutdown()

    Attributes:
        max_workers: Maximum concurrent transform threads.
    """

    def __init__(self, max_workers: int = 2):
        """
        Initialize transform queue.

        Args:
            max_workers: Maximum concurrent transform threads.
        """
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="photo-transform"
        )
        self._tails: Dict[str, Future] = {}
        self._futures: List[Future] = []
        self._lock = threading.Lock()
        self._enabled = True

    @property
    def is_async(self) -> bool:
        return self._enabled

    def submit(self, key: str, fn: Callable[..., Any], *args: Any) -> Future:
        """
        Queue `fn(*args)` behind earlier jobs for `key`.

        Returns:
            Future resolving to fn's return value or raising its exception.
        """
        if not self._enabled:
            # Synchronous fallback
            return _run_inline(fn, args)

        with self._lock:
            previous = self._tails.get(key)
            future = self._executor.submit(_run_after, previous, fn, args)
            self._tails[key] = future
            self._futures.append(future)
        future.add_done_callback(lambda done: self._release(key, done))
        return future

    def pending_for(self, key: str) -> bool:
        """True while a job for `key` is queued or running."""
        with self._lock:
            tail = self._tails.get(key)
        return tail is not None and not tail.done()

    def wait_all(self, timeout: Optional[float] = None) -> int:
        """
        Wait for all queued transforms to complete.

        Args:
            timeout: Max seconds to wait per job (None = indefinite).

        Returns:
            Number of jobs that completed without error.
        """
        with self._lock:
            futures = list(self._futures)
            self._futures.clear()
        completed = 0
        for future in futures:
            try:
                future.result(timeout=timeout)
                completed += 1
            except Exception as e:
                logger.error(f"Transform failed: {e}")
        return completed

    def shutdown(self) -> None:
        """Wait for outstanding jobs, then stop the thread pool."""
        self.wait_all()
        self._executor.shutdown(wait=True)

    def disable(self) -> None:
        """Run jobs inline on the caller's thread (synchronous mode)."""
        self._enabled = False

    def _release(self, key: str, done: Future) -> None:
        with self._lock:
            if self._tails.get(key) is done:
                del self._tails[key]

    def __enter__(self) -> "TransformQueue":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


def _run_after(previous: Optional[Future], fn: Callable[..., Any], args: tuple) -> Any:
    """Wait for `previous` (ignoring its outcome), then run fn."""
    if previous is not None:
        wait([previous])
    return fn(*args)


def _run_inline(fn: Callable[..., Any], args: tuple) -> Future:
    future: Future = Future()
    try:
        future.set_result(fn(*args))
    except Exception as e:
        future.set_exception(e)
    return future
