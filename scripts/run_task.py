"""Run the convergence loop on one of the integrands under ``tasks/``."""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
for candidate in (SRC_ROOT, REPO_ROOT):
    if str(candidate) not in sys.path:
        sys.path.insert(0, str(candidate))

from trapool.convergence import ConvergenceDriver, ConvergencePolicy
from trapool.integrator import ParallelIntegrator

TASKS = ("runge", "damped_cosine")


def main() -> None:
    parser = argparse.ArgumentParser(description="Integrate a bundled task until it converges")
    parser.add_argument("--task", choices=TASKS, required=True)
    parser.add_argument("-a", type=float, default=-1.0)
    parser.add_argument("-b", type=float, default=1.0)
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--tolerance", type=float, default=1e-8)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    module = importlib.import_module(f"tasks.{args.task}.integrand")
    print(module.TASK_DESCRIPTION)

    policy = ConvergencePolicy(start_n=10, factor=2, tolerance=args.tolerance, max_iterations=30)
    with ParallelIntegrator(workers=args.workers) as integrator:
        driver = ConvergenceDriver(integrator, policy)
        result = driver.run(module.integrand, args.a, args.b, exact=module.exact(args.a, args.b))

    print(f"n={result.n} area={result.estimate:.12f} abs_error={result.absolute_error:.3e}")


if __name__ == "__main__":
    main()
