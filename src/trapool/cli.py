"""Command line interface for trapool."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

from .benchmark import decade_sizes, format_table, run_benchmark
from .config import IntegrationConfig, load_config, load_settings
from .convergence import ConvergenceDriver, ConvergencePolicy
from .errors import TrapoolError
from .functions import exact_integral_for, resolve_function
from .integrator import ParallelIntegrator
from .store import RunStore
from .viz import plot_convergence

logger = logging.getLogger(__name__)


def _build_config(args: argparse.Namespace) -> dict[str, Any]:
    integration = {
        key: value
        for key, value in {
            "function": args.function,
            "a": args.a,
            "b": args.b,
            "n": getattr(args, "n", None),
            "tasks": args.tasks,
        }.items()
        if value is not None
    }
    pool = {key: value for key, value in {"workers": args.workers}.items() if value is not None}
    return load_config(args.config, overrides={"integration": integration, "pool": pool})


def _integrator_from(cfg: dict[str, Any]) -> ParallelIntegrator:
    settings = load_settings()
    pool_cfg = cfg.get("pool", {})
    workers = pool_cfg.get("workers")
    workers = int(workers) if workers is not None else settings.workers
    queue_size = pool_cfg.get("queue_size")
    if queue_size is None:
        queue_size = max(workers, 1) * settings.queue_factor
    tasks_per_worker = int(pool_cfg.get("tasks_per_worker") or settings.tasks_per_worker)
    return ParallelIntegrator(
        workers=workers, queue_size=int(queue_size), tasks_per_worker=tasks_per_worker
    )


def cmd_integrate(args: argparse.Namespace) -> None:
    cfg = _build_config(args)
    params = IntegrationConfig.from_config(cfg)
    evaluate = resolve_function(params.function)
    with _integrator_from(cfg) as integrator:
        area = integrator.integrate(evaluate, params.a, params.b, params.n, params.tasks)
        tasks = params.tasks or integrator.default_tasks
        print(f"n={params.n} workers={integrator.pool.workers} tasks={tasks}: area={area:.12f}")
    exact = exact_integral_for(params.function, params.a, params.b)
    if exact is not None:
        print(f"exact={exact:.12f} abs_error={abs(area - exact):.3e}")


def cmd_converge(args: argparse.Namespace) -> None:
    cfg = _build_config(args)
    params = IntegrationConfig.from_config(cfg)
    conv_cfg = dict(cfg.get("convergence", {}))
    for key in ("start_n", "increment", "factor", "tolerance", "max_iterations", "max_n"):
        value = getattr(args, key, None)
        if value is not None:
            conv_cfg[key] = value
    if args.increment is not None:
        conv_cfg["factor"] = None
    policy = ConvergencePolicy(**conv_cfg)
    evaluate = resolve_function(params.function)
    exact = exact_integral_for(params.function, params.a, params.b)

    with _integrator_from(cfg) as integrator:
        driver = ConvergenceDriver(integrator, policy, num_tasks=params.tasks)
        result = driver.run(evaluate, params.a, params.b, exact=exact, strict=args.strict)
        workers = integrator.pool.workers

    status = "stabilised" if result.converged else "did not stabilise"
    print(f"{status} after {len(result.steps)} passes: n={result.n} area={result.estimate:.12f}")
    if result.absolute_error is not None:
        print(f"exact={result.exact:.12f} abs_error={result.absolute_error:.12f}")

    if args.record:
        run_id = args.run_id or str(uuid.uuid4())
        store = RunStore(args.db or cfg["db_path"])
        try:
            store.record_convergence(
                run_id,
                result,
                function=params.function,
                a=params.a,
                b=params.b,
                workers=workers,
                tasks=params.tasks,
            )
        finally:
            store.close()
        print(f"Recorded run {run_id}")


def cmd_bench(args: argparse.Namespace) -> None:
    cfg = _build_config(args)
    params = IntegrationConfig.from_config(cfg)
    bench_cfg = cfg.get("benchmark", {})
    max_n = args.max_n or int(bench_cfg.get("max_n", 1_000_000))
    sizes = decade_sizes(int(bench_cfg.get("start_n", 10)), max_n)
    evaluate = resolve_function(params.function)
    with _integrator_from(cfg) as integrator:
        print(f"Pool of {integrator.pool.workers} workers, {params.function} on [{params.a}, {params.b}]")
        rows = run_benchmark(integrator, evaluate, params.a, params.b, sizes, num_tasks=params.tasks)
    print(format_table(rows))


def cmd_history(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    store = RunStore(args.db or cfg["db_path"])
    try:
        runs = store.list_runs(args.limit)
    finally:
        store.close()
    for run in runs:
        flag = "yes" if run.converged else "no"
        print(
            f"{run.run_id} {run.function} [{run.a}, {run.b}] workers={run.workers} "
            f"n={run.final_n} area={run.estimate:.12f} converged={flag}"
        )


def cmd_plot(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    store = RunStore(args.db or cfg["db_path"])
    try:
        plot_convergence(args.run_id, store, Path(args.out))
    finally:
        store.close()
    print(f"Plot written to {args.out}")


def _add_integration_args(parser: argparse.ArgumentParser, *, with_n: bool = True) -> None:
    parser.add_argument("--function", help="Registered integrand or module:attr")
    parser.add_argument("-a", type=float, help="Lower bound")
    parser.add_argument("-b", type=float, help="Upper bound")
    if with_n:
        parser.add_argument("-n", type=int, help="Number of intervals")
    parser.add_argument("--workers", type=int, help="Worker threads in the pool")
    parser.add_argument("--tasks", type=int, help="Partial-sum tasks per pass")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trapool", description="Parallel trapezoidal integration")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--db", help="History database path")
    parser.add_argument("--log-level", help="Logging level (default from TRAPOOL_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_integrate = sub.add_parser("integrate", help="Run a single integration pass")
    _add_integration_args(p_integrate)
    p_integrate.set_defaults(func=cmd_integrate)

    p_converge = sub.add_parser("converge", help="Refine n until the estimate stabilises")
    _add_integration_args(p_converge, with_n=False)
    p_converge.add_argument("--start-n", dest="start_n", type=int)
    growth = p_converge.add_mutually_exclusive_group()
    growth.add_argument("--increment", type=int)
    growth.add_argument("--factor", type=int)
    p_converge.add_argument("--tolerance", type=float)
    p_converge.add_argument("--max-iterations", dest="max_iterations", type=int)
    p_converge.add_argument("--max-n", dest="max_n", type=int)
    p_converge.add_argument("--strict", action="store_true", help="Fail when not converged")
    p_converge.add_argument("--record", action="store_true", help="Store the run in the history database")
    p_converge.add_argument("--run-id")
    p_converge.set_defaults(func=cmd_converge)

    p_bench = sub.add_parser("bench", help="Compare sequential and pooled timings")
    _add_integration_args(p_bench, with_n=False)
    p_bench.add_argument("--max-n", dest="max_n", type=int)
    p_bench.set_defaults(func=cmd_bench)

    p_history = sub.add_parser("history", help="List recorded runs")
    p_history.add_argument("--limit", type=int, default=20)
    p_history.set_defaults(func=cmd_history)

    p_plot = sub.add_parser("plot", help="Plot a recorded run")
    p_plot.add_argument("--run-id", required=True)
    p_plot.add_argument("--out", default="artifacts/convergence.png")
    p_plot.set_defaults(func=cmd_plot)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = args.log_level or load_settings().log_level
        logging.basicConfig(level=level.upper())
        args.func(args)
    except TrapoolError as exc:
        logger.debug("Command failed", exc_info=True)
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
