"""Utility helpers."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator


@dataclass(slots=True)
class Elapsed:
    ms: float = 0.0


@contextmanager
def stopwatch() -> Iterator[Elapsed]:
    """Measure wall-clock time of the block in milliseconds."""

    elapsed = Elapsed()
    start = time.perf_counter()
    try:
        yield elapsed
    finally:
        elapsed.ms = (time.perf_counter() - start) * 1000
