"""Export the steps of a recorded convergence run as JSON."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from trapool.store import RunStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a trapool convergence run")
    parser.add_argument("run_id")
    parser.add_argument("out")
    parser.add_argument("--db", default=".trapool/history.db")
    args = parser.parse_args()

    store = RunStore(args.db)
    run = store.get_run(args.run_id)
    if run is None:
        raise SystemExit(f"Run {args.run_id} not found")
    payload = {
        "run": run.model_dump(mode="json"),
        "steps": [step.model_dump(mode="json") for step in store.get_steps(args.run_id)],
    }
    store.close()
    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    with Path(args.out).open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)


if __name__ == "__main__":  # pragma: no cover
    main()
