"""Exponentially damped cosine."""

from __future__ import annotations

import math

TASK_DESCRIPTION = "Integrate exp(-x) * cos(x); the tail contributes almost nothing."


def integrand(x: float) -> float:
    return math.exp(-x) * math.cos(x)


def exact(a: float, b: float) -> float:
    def primitive(x: float) -> float:
        return math.exp(-x) * (math.sin(x) - math.cos(x)) / 2.0

    return primitive(b) - primitive(a)
