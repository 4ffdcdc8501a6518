"""Sequential versus pooled timing over a decade sweep of ``n``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import ConfigurationError
from .functions import Evaluator
from .integrator import ParallelIntegrator, integrate_sequential
from .utils import stopwatch

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BenchmarkRow:
    n: int
    sequential: float
    parallel: float
    sequential_ms: float
    parallel_ms: float

    @property
    def speedup(self) -> float:
        if self.parallel_ms <= 0:
            return float("inf")
        return self.sequential_ms / self.parallel_ms


def decade_sizes(start: int = 10, max_n: int = 1_000_000) -> list[int]:
    if start < 1 or max_n < start:
        raise ConfigurationError(f"invalid sweep start={start} max_n={max_n}")
    sizes: list[int] = []
    n = start
    while n <= max_n:
        sizes.append(n)
        n *= 10
    return sizes


def run_benchmark(
    integrator: ParallelIntegrator,
    evaluate: Evaluator,
    a: float,
    b: float,
    sizes: Iterable[int],
    *,
    num_tasks: int | None = None,
) -> list[BenchmarkRow]:
    rows: list[BenchmarkRow] = []
    for n in sizes:
        with stopwatch() as seq_time:
            sequential = integrate_sequential(evaluate, a, b, n)
        with stopwatch() as par_time:
            parallel = integrator.integrate(evaluate, a, b, n, num_tasks)
        row = BenchmarkRow(
            n=n,
            sequential=sequential,
            parallel=parallel,
            sequential_ms=seq_time.ms,
            parallel_ms=par_time.ms,
        )
        logger.info(
            "n=%s sequential=%.3fms parallel=%.3fms speedup=%.2fx",
            n,
            row.sequential_ms,
            row.parallel_ms,
            row.speedup,
        )
        rows.append(row)
    return rows


def format_table(rows: Sequence[BenchmarkRow]) -> str:
    header = f"{'n':>10}  {'area':>18}  {'sequential':>12}  {'parallel':>12}  {'speedup':>8}"
    lines = [header, "-" * len(header)]
    for row in rows:
        lines.append(
            f"{row.n:>10}  {row.parallel:>18.6f}  {row.sequential_ms:>10.3f}ms  "
            f"{row.parallel_ms:>10.3f}ms  {row.speedup:>7.2f}x"
        )
    return "\n".join(lines)
