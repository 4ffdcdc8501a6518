"""Split the interior sample indices of a trapezoidal grid into task ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class WorkRange:
    """Inclusive index bounds ``start..end``; empty when ``start > end``."""

    start: int
    end: int

    @property
    def empty(self) -> bool:
        return self.start > self.end

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))


def plan(n: int, num_tasks: int) -> list[WorkRange]:
    """Return ``num_tasks`` contiguous ranges covering indices ``1..n-1``.

    Indices ``0`` and ``n`` are the endpoints and are left to the caller. Each
    range holds ``(n - 1) // num_tasks`` indices and the last one absorbs the
    remainder. With fewer interior points than tasks the leading ranges come
    out empty.
    """

    if n < 1:
        raise ConfigurationError(f"n must be >= 1, got {n}")
    if num_tasks < 1:
        raise ConfigurationError(f"num_tasks must be >= 1, got {num_tasks}")

    block = (n - 1) // num_tasks
    ranges: list[WorkRange] = []
    for task in range(num_tasks):
        start = task * block + 1
        end = n - 1 if task == num_tasks - 1 else (task + 1) * block
        ranges.append(WorkRange(start, end))
    return ranges


def interior_indices(ranges: Iterable[WorkRange]) -> Iterator[int]:
    """Yield every index covered by ``ranges`` in order."""

    for work_range in ranges:
        yield from work_range
