"""Numerical and lifecycle tests for the parallel trapezoidal integrator."""

from __future__ import annotations

import math
import queue
import threading

import pytest

from trapool.errors import ConfigurationError, IntegrationError, PoolClosedError
from trapool.functions import SAMPLE_POLYNOMIAL
from trapool.integrator import (
    IntegrationState,
    ParallelIntegrator,
    PartialResult,
    ResultCollector,
    integrate,
    integrate_sequential,
)
from trapool.workers import WorkerPool

EXACT = 5931.0


def test_polynomial_matches_exact_value() -> None:
    area = integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 10_000, 4)

    assert abs(area - EXACT) < 1e-3


def test_error_does_not_grow_with_resolution() -> None:
    with ParallelIntegrator(workers=4) as integrator:
        errors = [
            abs(integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, n) - EXACT)
            for n in (100, 1_000, 10_000, 100_000)
        ]

    assert errors == sorted(errors, reverse=True)


def test_result_independent_of_concurrency() -> None:
    single = integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 20_000, 1)
    many = integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 20_000, 8)

    assert many == pytest.approx(single, rel=1e-9)


def test_parallel_matches_sequential_reference() -> None:
    sequential = integrate_sequential(math.sin, 0.0, math.pi, 5_000)
    with ParallelIntegrator(workers=3) as integrator:
        parallel = integrator.integrate(math.sin, 0.0, math.pi, 5_000, num_tasks=7)

    assert parallel == pytest.approx(sequential, rel=1e-12)
    assert parallel == pytest.approx(2.0, abs=1e-6)


def test_repeated_passes_are_bit_identical() -> None:
    with ParallelIntegrator(workers=4) as integrator:
        results = {integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 3_001, 16) for _ in range(5)}

    assert len(results) == 1


def test_single_interval_is_two_point_estimate() -> None:
    area = integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 1, 1)
    h = 18.0

    assert area == pytest.approx(h / 2 * (SAMPLE_POLYNOMIAL(2.0) + SAMPLE_POLYNOMIAL(20.0)))
    assert area == 7875.0


def test_more_tasks_than_points_contribute_nothing_extra() -> None:
    with ParallelIntegrator(workers=2) as integrator:
        area = integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 3, num_tasks=8)

    assert area == pytest.approx(integrate_sequential(SAMPLE_POLYNOMIAL, 2.0, 20.0, 3))


def test_small_queue_applies_backpressure_without_deadlock() -> None:
    with ParallelIntegrator(workers=2, queue_size=1) as integrator:
        area = integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 10_000, num_tasks=50)

    assert abs(area - EXACT) < 1e-3


def test_shared_pool_survives_integrator_close() -> None:
    pool = WorkerPool(2)
    integrator = ParallelIntegrator(pool)
    first = integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 1_000)
    integrator.close()
    second = ParallelIntegrator(pool).integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 1_000)
    pool.wait()

    assert first == second
    assert not integrator.pool.failed
    assert pool.completed == 2 * 2 * 4


def test_states_follow_a_pass() -> None:
    with ParallelIntegrator(workers=2) as integrator:
        assert integrator.last_state is IntegrationState.NOT_STARTED
        integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 100)
        assert integrator.last_state is IntegrationState.DONE


def test_faulting_evaluator_aborts_the_pass() -> None:
    def fragile(x: float) -> float:
        if 10.0 < x < 11.0:
            raise ArithmeticError("singular")
        return x

    with ParallelIntegrator(workers=4) as integrator:
        with pytest.raises(IntegrationError) as excinfo:
            integrator.integrate(fragile, 2.0, 20.0, 1_000, num_tasks=8)
        assert integrator.last_state is IntegrationState.FAILED
        assert isinstance(excinfo.value.__cause__, ArithmeticError)
        assert excinfo.value.task_index is not None

        # the pool keeps serving passes after a failure
        area = integrator.integrate(lambda x: 1.0, 2.0, 20.0, 100)
    assert area == pytest.approx(18.0)


def test_endpoint_fault_is_reported() -> None:
    def bad_endpoint(x: float) -> float:
        if x == 20.0:
            raise ValueError("undefined at b")
        return x

    with pytest.raises(IntegrationError):
        integrate(bad_endpoint, 2.0, 20.0, 10, 2)


@pytest.mark.parametrize(
    "a, b, n, concurrency",
    [
        (2.0, 2.0, 10, 1),
        (5.0, 1.0, 10, 1),
        (0.0, 1.0, 0, 1),
        (0.0, 1.0, 10, 0),
        (float("nan"), 1.0, 10, 1),
        (0.0, float("inf"), 10, 1),
    ],
)
def test_configuration_errors_fail_fast(a: float, b: float, n: int, concurrency: int) -> None:
    calls: list[float] = []

    def spy(x: float) -> float:
        calls.append(x)
        return x

    with pytest.raises(ConfigurationError):
        integrate(spy, a, b, n, concurrency)
    assert calls == []


def test_collector_rejects_extra_delivery() -> None:
    collector = ResultCollector(2)
    collector.deliver(PartialResult(1, value=2.0))
    collector.deliver(PartialResult(0, value=1.0))

    with pytest.raises(queue.Full):
        collector.deliver(PartialResult(0, value=1.0))
    assert [result.index for result in collector.collect()] == [0, 1]


def test_evaluator_raising_system_exit_fails_the_pass() -> None:
    def quitting(x: float) -> float:
        if 10.0 < x < 11.0:
            raise SystemExit("evaluator gave up")
        return x

    outcome: list[BaseException] = []
    pool = WorkerPool(2)
    integrator = ParallelIntegrator(pool)

    def run_pass() -> None:
        try:
            integrator.integrate(quitting, 2.0, 20.0, 100, num_tasks=4)
        except BaseException as exc:  # noqa: BLE001
            outcome.append(exc)

    runner = threading.Thread(target=run_pass, daemon=True)
    runner.start()
    runner.join(timeout=10)
    assert not runner.is_alive(), "integration pass never returned"
    pool.wait()

    assert len(outcome) == 1
    assert isinstance(outcome[0], IntegrationError)
    assert isinstance(outcome[0].__cause__, SystemExit)
    assert integrator.last_state is IntegrationState.FAILED
    assert pool.completed == 4


@pytest.mark.parametrize("workers", [0, -2])
def test_explicit_non_positive_workers_rejected(workers: int) -> None:
    with pytest.raises(ConfigurationError):
        ParallelIntegrator(workers=workers)


def test_closed_shared_pool_marks_pass_failed() -> None:
    pool = WorkerPool(2)
    pool.wait()
    integrator = ParallelIntegrator(pool)

    with pytest.raises(PoolClosedError):
        integrator.integrate(SAMPLE_POLYNOMIAL, 2.0, 20.0, 100)
    assert integrator.last_state is IntegrationState.FAILED
