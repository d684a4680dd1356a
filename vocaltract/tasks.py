# Created on 2026-10-18
# Description: Single-shot background render and analysis tasks.
"""Single-shot background tasks.

Renders and analyses run on a small thread pool. Every submission under a
channel (``"render"``, ``"analysis"`` ...) gets a generation number; when a
task finishes after a newer one was submitted on the same channel, its
callback is skipped and the result dropped.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

__all__ = ["TaskRunner"]


class TaskRunner:
    """Submit callables to a worker pool, keeping only the newest result per channel.

    Callbacks normally run on the worker thread that finished the task, or on
    the submitting thread when the task is already done. Callers own the
    hand-off: marshal results back to the interactive thread before
    calling :class:`~vocaltract.workspace.TractWorkspace` methods; only that
    thread changes the tracks.
    """

    def __init__(self, max_workers: int = 2) -> None:
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max(1, int(max_workers))
        self._generations: Dict[str, int] = {}

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="vocaltract"
            )
        return self._executor

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def generation(self, channel: str) -> int:
        with self._lock:
            return self._generations.get(channel, 0)

    def is_current(self, channel: str, generation: int) -> bool:
        return self.generation(channel) == generation

    def submit(
        self,
        channel: str,
        fn: Callable[..., Any],
        *args: Any,
        callback: Optional[Callable[[Any], None]] = None,
        error_callback: Optional[Callable[[BaseException], None]] = None,
        **kwargs: Any,
    ) -> Future:
        """Run ``fn(*args, **kwargs)`` in the pool.

        Args:
            channel (str): Requests on the same channel supersede each other.
            fn (Callable): Work to run; it must only touch immutable inputs.
            callback (Callable, optional): Called with the result if still current.
            error_callback (Callable, optional): Called with the exception if still current.

        Returns:
            Future: Resolves to ``fn``'s result (superseded or not).
        """
        with self._lock:
            generation = self._generations.get(channel, 0) + 1
            self._generations[channel] = generation
            executor = self._ensure_executor()
        future = executor.submit(fn, *args, **kwargs)
        future.add_done_callback(
            lambda done: self._finish(channel, generation, done, callback, error_callback)
        )
        return future

    def _finish(
        self,
        channel: str,
        generation: int,
        future: Future,
        callback: Optional[Callable[[Any], None]],
        error_callback: Optional[Callable[[BaseException], None]],
    ) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Task on %r failed", channel, exc_info=error)
        if not self.is_current(channel, generation):
            logger.info("Discarding superseded %r result (generation %d)", channel, generation)
            return
        try:
            if error is not None:
                if error_callback is not None:
                    error_callback(error)
            elif callback is not None:
                callback(future.result())
        except Exception:
            logger.exception("Callback for %r raised", channel)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the pool."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self) -> "TaskRunner":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()
