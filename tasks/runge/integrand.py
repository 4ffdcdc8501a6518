"""Runge's function, smooth but sharply peaked around zero."""

from __future__ import annotations

import math

TASK_DESCRIPTION = "Integrate 1 / (1 + 25x^2) over a symmetric interval."


def integrand(x: float) -> float:
    return 1.0 / (1.0 + 25.0 * x * x)


def exact(a: float, b: float) -> float:
    return (math.atan(5.0 * b) - math.atan(5.0 * a)) / 5.0
