from __future__ import annotations

from pathlib import Path

from trapool.convergence import ConvergenceResult, ConvergenceStep
from trapool.store import RunStore


def _result() -> ConvergenceResult:
    steps = [
        ConvergenceStep(n=10, estimate=5950.44, delta=None, elapsed_ms=0.4),
        ConvergenceStep(n=100, estimate=5931.1944, delta=19.2456, elapsed_ms=0.9),
    ]
    return ConvergenceResult(converged=False, estimate=5931.1944, n=100, steps=steps, exact=5931.0)


def test_record_and_read_back(tmp_path: Path) -> None:
    store = RunStore(tmp_path / "nested" / "history.db")
    store.record_convergence("run-1", _result(), function="poly", a=2.0, b=20.0, workers=4)

    run = store.get_run("run-1")
    assert run is not None
    assert run.final_n == 100
    assert run.exact == 5931.0
    assert not run.converged

    steps = store.get_steps("run-1")
    assert [step.n for step in steps] == [10, 100]
    assert steps[0].delta is None
    assert steps[1].delta == 19.2456

    assert store.get_run("missing") is None
    store.close()


def test_list_runs_newest_first(tmp_path: Path) -> None:
    store = RunStore(tmp_path / "history.db")
    for run_id in ("first", "second", "third"):
        store.record_convergence(run_id, _result(), function="poly", a=2.0, b=20.0, workers=2)

    assert [run.run_id for run in store.list_runs(limit=2)] == ["third", "second"]
    store.close()
