from __future__ import annotations

import pytest

from trapool.errors import ConfigurationError
from trapool.partition import WorkRange, interior_indices, plan


@pytest.mark.parametrize(
    "n, num_tasks",
    [(2, 1), (10, 3), (11, 5), (101, 7), (1000, 32), (17, 16), (64, 63)],
)
def test_ranges_cover_interior_exactly_once(n: int, num_tasks: int) -> None:
    ranges = plan(n, num_tasks)

    assert len(ranges) == num_tasks
    covered = list(interior_indices(ranges))
    assert covered == list(range(1, n))
    assert len(set(covered)) == len(covered)


def test_last_range_absorbs_remainder() -> None:
    ranges = plan(11, 3)

    assert ranges == [WorkRange(1, 3), WorkRange(4, 6), WorkRange(7, 10)]
    assert [len(r) for r in ranges] == [3, 3, 4]


def test_more_tasks_than_interior_points_yields_empty_ranges() -> None:
    ranges = plan(3, 5)

    assert [r.empty for r in ranges] == [True, True, True, True, False]
    assert list(interior_indices(ranges)) == [1, 2]
    assert sum(len(r) for r in ranges) == 2


def test_single_interval_has_no_interior_points() -> None:
    ranges = plan(1, 4)

    assert all(r.empty for r in ranges)
    assert list(interior_indices(ranges)) == []


def test_plan_is_deterministic() -> None:
    assert plan(12345, 17) == plan(12345, 17)


@pytest.mark.parametrize("n, num_tasks", [(0, 1), (10, 0), (-5, 2)])
def test_invalid_arguments(n: int, num_tasks: int) -> None:
    with pytest.raises(ConfigurationError):
        plan(n, num_tasks)
