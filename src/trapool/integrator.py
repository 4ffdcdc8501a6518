"""Composite trapezoidal rule computed as a parallel reduction over the pool."""

from __future__ import annotations

import enum
import functools
import logging
import math
import os
import queue
from dataclasses import dataclass

from .errors import ConfigurationError, IntegrationError, PoolClosedError
from .functions import Evaluator
from .partition import WorkRange, plan
from .workers import WorkerPool

logger = logging.getLogger(__name__)

DEFAULT_TASKS_PER_WORKER = 4


class IntegrationState(enum.Enum):
    NOT_STARTED = "not_started"
    DISPATCHING = "dispatching"
    COLLECTING = "collecting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PartialSumTask:
    """Everything one task needs, passed by value at submission time."""

    index: int
    evaluate: Evaluator
    a: float
    h: float
    work_range: WorkRange

    def compute(self) -> float:
        total = 0.0
        for i in self.work_range:
            total += self.evaluate(self.a + i * self.h)
        return total


@dataclass(frozen=True, slots=True)
class PartialResult:
    index: int
    value: float = 0.0
    error: BaseException | None = None


class ResultCollector:
    """Counted collection point for exactly ``expected`` partial results."""

    def __init__(self, expected: int) -> None:
        self.expected = expected
        self._results: queue.Queue[PartialResult] = queue.Queue(maxsize=expected)

    def deliver(self, result: PartialResult) -> None:
        # capacity equals the task count, so a duplicate delivery raises queue.Full
        self._results.put_nowait(result)

    def collect(self) -> list[PartialResult]:
        """Block until every task has delivered, then return results by task index."""

        received = [self._results.get() for _ in range(self.expected)]
        received.sort(key=lambda result: result.index)
        return received


def _run_task(task: PartialSumTask, collector: ResultCollector) -> None:
    try:
        value = task.compute()
    except BaseException as exc:  # noqa: BLE001 - handed to the aggregator
        collector.deliver(PartialResult(task.index, error=exc))
    else:
        collector.deliver(PartialResult(task.index, value=value))


def _validate(a: float, b: float, n: int, num_tasks: int) -> None:
    if not (math.isfinite(a) and math.isfinite(b)):
        raise ConfigurationError(f"bounds must be finite, got a={a}, b={b}")
    if a >= b:
        raise ConfigurationError(f"lower bound must be below upper bound, got a={a}, b={b}")
    if n < 1:
        raise ConfigurationError(f"n must be >= 1, got {n}")
    if num_tasks < 1:
        raise ConfigurationError(f"number of tasks must be >= 1, got {num_tasks}")


def _endpoint_sum(evaluate: Evaluator, a: float, b: float) -> float:
    try:
        return 0.5 * (evaluate(a) + evaluate(b))
    except Exception as exc:  # noqa: BLE001
        raise IntegrationError(f"evaluator failed at an endpoint: {exc}") from exc


class ParallelIntegrator:
    """Run trapezoidal passes on a worker pool.

    The pool is either supplied by the caller, who keeps ownership, or created
    here and shut down by :meth:`close`. Reusing one integrator across many
    passes keeps the same worker threads alive for all of them.
    """

    def __init__(
        self,
        pool: WorkerPool | None = None,
        *,
        workers: int | None = None,
        queue_size: int | None = None,
        tasks_per_worker: int = DEFAULT_TASKS_PER_WORKER,
    ) -> None:
        if tasks_per_worker < 1:
            raise ConfigurationError(f"tasks_per_worker must be >= 1, got {tasks_per_worker}")
        self._owns_pool = pool is None
        if pool is None:
            if workers is None:
                workers = os.cpu_count() or 1
            pool = WorkerPool(workers, queue_size)
        self._pool = pool
        self._tasks_per_worker = tasks_per_worker
        self.last_state = IntegrationState.NOT_STARTED

    @property
    def pool(self) -> WorkerPool:
        return self._pool

    @property
    def default_tasks(self) -> int:
        return self._pool.workers * self._tasks_per_worker

    def integrate(
        self,
        evaluate: Evaluator,
        a: float,
        b: float,
        n: int,
        num_tasks: int | None = None,
    ) -> float:
        """Approximate the integral of ``evaluate`` over ``[a, b]`` with ``n`` intervals.

        Uses ``h * (0.5 * (f(a) + f(b)) + sum(partials))``, which is the usual
        ``h / 2 * (f(a) + f(b) + 2 * sum(f(x_i)))``. Partial sums are added in
        task order so the result does not depend on which worker finished first.
        """

        if num_tasks is None:
            num_tasks = self.default_tasks
        _validate(a, b, n, num_tasks)
        self.last_state = IntegrationState.NOT_STARTED

        h = (b - a) / n
        total = _endpoint_sum(evaluate, a, b)
        ranges = plan(n, num_tasks)
        collector = ResultCollector(len(ranges))

        self.last_state = IntegrationState.DISPATCHING
        try:
            for index, work_range in enumerate(ranges):
                task = PartialSumTask(index, evaluate, a, h, work_range)
                self._pool.submit(functools.partial(_run_task, task, collector))
        except PoolClosedError:
            self.last_state = IntegrationState.FAILED
            raise

        self.last_state = IntegrationState.COLLECTING
        results = collector.collect()
        for result in results:
            if result.error is not None:
                self.last_state = IntegrationState.FAILED
                raise IntegrationError(
                    f"task {result.index} failed on range "
                    f"{ranges[result.index].start}..{ranges[result.index].end}: {result.error}",
                    task_index=result.index,
                ) from result.error
            total += result.value

        self.last_state = IntegrationState.DONE
        estimate = total * h
        logger.debug("n=%s tasks=%s estimate=%.12f", n, num_tasks, estimate)
        return estimate

    def close(self) -> None:
        if self._owns_pool:
            self._pool.wait()

    def __enter__(self) -> "ParallelIntegrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def integrate(evaluate: Evaluator, a: float, b: float, n: int, concurrency: int) -> float:
    """One-shot pass with ``concurrency`` workers and as many tasks."""

    _validate(a, b, n, concurrency)
    with ParallelIntegrator(workers=concurrency) as integrator:
        return integrator.integrate(evaluate, a, b, n, num_tasks=concurrency)


def integrate_sequential(evaluate: Evaluator, a: float, b: float, n: int) -> float:
    """Single-threaded reference implementation of the same rule."""

    _validate(a, b, n, 1)
    h = (b - a) / n
    total = _endpoint_sum(evaluate, a, b)
    for i in range(1, n):
        total += evaluate(a + i * h)
    return total * h
