"""Refine the grid until successive trapezoidal estimates stop moving."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import ConfigurationError, ConvergenceError
from .functions import Evaluator
from .integrator import ParallelIntegrator
from .utils import stopwatch


@dataclass(slots=True)
class ConvergenceStep:
    n: int
    estimate: float
    delta: float | None
    elapsed_ms: float


@dataclass(slots=True)
class ConvergenceResult:
    converged: bool
    estimate: float
    n: int
    steps: list[ConvergenceStep] = field(default_factory=list)
    exact: float | None = None

    @property
    def absolute_error(self) -> float | None:
        if self.exact is None:
            return None
        return abs(self.estimate - self.exact)


@dataclass(slots=True)
class ConvergencePolicy:
    """How ``n`` grows between passes and when to stop.

    ``factor`` takes precedence over ``increment`` when set.
    """

    start_n: int = 1
    increment: int = 50
    factor: int | None = None
    tolerance: float = 1e-9
    max_iterations: int = 2000
    max_n: int | None = None

    def validate(self) -> None:
        if self.start_n < 1:
            raise ConfigurationError(f"start_n must be >= 1, got {self.start_n}")
        if self.factor is None and self.increment < 1:
            raise ConfigurationError(f"increment must be >= 1, got {self.increment}")
        if self.factor is not None and self.factor < 2:
            raise ConfigurationError(f"factor must be >= 2, got {self.factor}")
        if self.tolerance <= 0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations}")

    def next_n(self, n: int) -> int:
        if self.factor is not None:
            return n * self.factor
        return n + self.increment


class ConvergenceDriver:
    """Call the integrator with a growing ``n`` until the estimate settles."""

    def __init__(
        self,
        integrator: ParallelIntegrator,
        policy: ConvergencePolicy | None = None,
        *,
        num_tasks: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._integrator = integrator
        self._policy = policy or ConvergencePolicy()
        self._policy.validate()
        self._num_tasks = num_tasks
        self._logger = logger or logging.getLogger(__name__)

    @property
    def policy(self) -> ConvergencePolicy:
        return self._policy

    def run(
        self,
        evaluate: Evaluator,
        a: float,
        b: float,
        *,
        exact: float | None = None,
        strict: bool = False,
    ) -> ConvergenceResult:
        policy = self._policy
        steps: list[ConvergenceStep] = []
        previous: float | None = None
        n = policy.start_n
        converged = False

        for _ in range(policy.max_iterations):
            if policy.max_n is not None and n > policy.max_n:
                self._logger.info("Reached max_n=%s before converging", policy.max_n)
                break
            with stopwatch() as elapsed:
                estimate = self._integrator.integrate(evaluate, a, b, n, self._num_tasks)
            delta = None if previous is None else abs(estimate - previous)
            steps.append(ConvergenceStep(n=n, estimate=estimate, delta=delta, elapsed_ms=elapsed.ms))
            self._logger.info(
                "n=%-8s estimate=%.12f delta=%s",
                n,
                estimate,
                "-" if delta is None else f"{delta:.3e}",
            )

            if delta is not None and delta < policy.tolerance:
                converged = True
                break
            previous = estimate
            n = policy.next_n(n)

        if not steps:
            raise ConvergenceError("no integration pass was run; check start_n against max_n")

        last = steps[-1]
        result = ConvergenceResult(
            converged=converged, estimate=last.estimate, n=last.n, steps=steps, exact=exact
        )
        if converged:
            self._logger.info("Estimate stabilised at n=%s: %.12f", last.n, last.estimate)
        else:
            self._logger.warning("Estimate did not stabilise after %s passes", len(steps))
            if strict:
                raise ConvergenceError(
                    f"no convergence within {len(steps)} passes (last delta={last.delta})"
                )
        if exact is not None:
            self._logger.info("Absolute error against exact value: %.3e", result.absolute_error)
        return result
