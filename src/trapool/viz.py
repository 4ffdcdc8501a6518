"""Visualization helpers for convergence runs."""

from __future__ import annotations

from pathlib import Path

try:  # pragma: no cover - optional dependency
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
except Exception:  # pragma: no cover - optional
    plt = None

from .errors import PlotError
from .store import RunStore


def plot_convergence(run_id: str, store: RunStore, out_path: Path) -> None:
    """Plot estimate against ``n`` and, when the exact value is known, the error."""

    if plt is None:
        raise PlotError("matplotlib is required for visualisation")
    run = store.get_run(run_id)
    if run is None:
        raise PlotError(f"Run {run_id} not found")
    steps = store.get_steps(run_id)
    if not steps:
        raise PlotError("No data to plot")

    ns = [step.n for step in steps]
    if run.exact is not None:
        values = [abs(step.estimate - run.exact) for step in steps]
        ylabel = "absolute error"
    else:
        values = [step.estimate for step in steps]
        ylabel = "estimate"

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.plot(ns, values, marker="o", markersize=3)
    ax.set_xscale("log")
    if run.exact is not None and all(value > 0 for value in values):
        ax.set_yscale("log")
    ax.set_xlabel("n")
    ax.set_ylabel(ylabel)
    ax.set_title(f"Run {run_id}: {run.function} on [{run.a}, {run.b}]")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
