"""Fixed-size worker pool consuming a bounded job queue."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

from .errors import ConfigurationError, PoolClosedError

logger = logging.getLogger(__name__)

Job = Callable[[], object]

DEFAULT_QUEUE_FACTOR = 10

_SHUTDOWN = object()


class WorkerPool:
    """Thread based worker pool for zero-argument jobs.

    Every worker thread is started by the constructor and blocks on a shared
    FIFO queue of ``queue_size`` slots. :meth:`submit` blocks while the queue is
    full. :meth:`wait` stops accepting jobs, lets the workers drain everything
    already accepted and joins them.
    """

    def __init__(self, workers: int, queue_size: int | None = None, *, name: str = "trapool") -> None:
        if workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {workers}")
        if queue_size is None:
            queue_size = workers * DEFAULT_QUEUE_FACTOR
        if queue_size < 1:
            raise ConfigurationError(f"queue_size must be >= 1, got {queue_size}")

        self._workers = workers
        self._queue_size = queue_size
        self._jobs: queue.Queue[object] = queue.Queue(maxsize=queue_size)
        self._state = threading.Condition()
        self._closed = False
        self._pending_submits = 0
        self._stats_lock = threading.Lock()
        self._completed = 0
        self._failed = 0
        self._threads = [
            threading.Thread(target=self._run, name=f"{name}-worker-{index}", daemon=True)
            for index in range(workers)
        ]
        for thread in self._threads:
            thread.start()
        logger.debug("Started pool %s with %s workers (queue_size=%s)", name, workers, queue_size)

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def queue_size(self) -> int:
        return self._queue_size

    @property
    def closed(self) -> bool:
        with self._state:
            return self._closed

    @property
    def completed(self) -> int:
        """Number of jobs that returned normally."""

        with self._stats_lock:
            return self._completed

    @property
    def failed(self) -> int:
        """Number of jobs that raised."""

        with self._stats_lock:
            return self._failed

    def submit(self, job: Job) -> None:
        """Queue ``job`` for a worker, blocking while the queue is full."""

        with self._state:
            if self._closed:
                raise PoolClosedError("cannot submit to a pool that is shutting down")
            self._pending_submits += 1
        try:
            self._jobs.put(job)
        finally:
            with self._state:
                self._pending_submits -= 1
                if not self._pending_submits:
                    self._state.notify_all()

    def wait(self) -> None:
        """Close the pool and block until every accepted job has run.

        Calling it again after the pool is closed only re-joins the already
        finished workers.
        """

        with self._state:
            first_call = not self._closed
            self._closed = True
            # submitters that passed the closed check must finish enqueueing
            # before the sentinels go in behind them
            while self._pending_submits:
                self._state.wait()
        if first_call:
            for _ in self._threads:
                self._jobs.put(_SHUTDOWN)
        for thread in self._threads:
            thread.join()
        if first_call:
            logger.debug(
                "Pool drained (completed=%s, failed=%s)", self.completed, self.failed
            )

    shutdown = wait

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wait()

    def __repr__(self) -> str:
        return (
            f"WorkerPool(workers={self._workers}, queue_size={self._queue_size}, "
            f"closed={self.closed})"
        )

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            try:
                if job is _SHUTDOWN:
                    return
                try:
                    job()  # type: ignore[operator]
                except BaseException:  # noqa: BLE001
                    logger.exception("Job failed on %s", threading.current_thread().name)
                    with self._stats_lock:
                        self._failed += 1
                else:
                    with self._stats_lock:
                        self._completed += 1
            finally:
                self._jobs.task_done()
