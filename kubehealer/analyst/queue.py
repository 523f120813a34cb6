"""Bounded async work queue for diagnosis jobs.

Replaces unbounded fire-and-forget dispatch: jobs go into a fixed-capacity
queue drained by a fixed pool of workers. Overflow policy is reject-newest:
``submit`` raises QueueFullError and the caller decides what to do with the
dropped trigger.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import diagnosis_queue_depth

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = get_logger("diagnosis_queue")

DEFAULT_CAPACITY: int = 100
DEFAULT_WORKERS: int = 4


class QueueFullError(Exception):
    """Raised when a job is rejected because the queue is at capacity."""

    def __init__(self, key: str, capacity: int) -> None:
        super().__init__(f"diagnosis queue is full ({capacity} jobs); rejected {key}")
        self.key = key
        self.capacity = capacity


@dataclass
class _Job:
    key: str
    run: Callable[[], Awaitable[object]]
    enqueued_at: float = field(default_factory=time.monotonic)


class DiagnosisQueue:
    """Fixed-capacity queue with a fixed worker pool.

    A slow or failing job occupies one worker only; failures are logged and
    the worker moves on to the next job.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, workers: int = DEFAULT_WORKERS) -> None:
        self._capacity = max(1, capacity)
        self._num_workers = max(1, workers)
        # Initialized in start(); not usable before start() is called
        self._queue: asyncio.Queue[_Job | None] | None = None
        self._workers: list[asyncio.Task[None]] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def depth(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        """Start worker tasks. Must be called before submit()."""
        if self._workers:
            return
        self._queue = asyncio.Queue(maxsize=self._capacity)
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"diagnosis_worker_{i}") for i in range(self._num_workers)
        ]
        _logger.info("diagnosis_queue_started", workers=self._num_workers, capacity=self._capacity)

    async def stop(self) -> None:
        """Let workers finish queued jobs, then stop them. Safe to call before start()."""
        if not self._workers or self._queue is None:
            return
        for _ in self._workers:
            await self._queue.put(None)
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        _logger.info("diagnosis_queue_stopped")

    def submit(self, key: str, run: Callable[[], Awaitable[object]]) -> None:
        """Enqueue ``run`` without waiting. Raises QueueFullError at capacity."""
        if self._queue is None:
            raise RuntimeError("DiagnosisQueue.submit() called before start()")
        try:
            self._queue.put_nowait(_Job(key=key, run=run))
        except asyncio.QueueFull:
            raise QueueFullError(key, self._capacity) from None
        diagnosis_queue_depth.set(self._queue.qsize())
        _logger.debug("job_enqueued", key=key, depth=self._queue.qsize())

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def _worker(self, worker_id: int) -> None:
        assert self._queue is not None
        _logger.debug("worker_started", worker_id=worker_id)
        while True:
            job = await self._queue.get()
            if job is None:
                self._queue.task_done()
                break

            diagnosis_queue_depth.set(self._queue.qsize())
            try:
                await job.run()
            except Exception as exc:
                _logger.error(
                    "worker_job_error",
                    worker_id=worker_id,
                    key=job.key,
                    error=str(exc),
                    exc_info=True,
                )
            else:
                _logger.debug(
                    "job_complete",
                    worker_id=worker_id,
                    key=job.key,
                    elapsed_ms=round((time.monotonic() - job.enqueued_at) * 1000.0, 1),
                )
            finally:
                self._queue.task_done()
        _logger.debug("worker_stopped", worker_id=worker_id)
