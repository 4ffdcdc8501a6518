"""Integrands: the evaluator type, a polynomial helper and a named registry."""

from __future__ import annotations

import importlib
import math
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from .errors import ConfigurationError

Evaluator = Callable[[float], float]


@dataclass(frozen=True, slots=True)
class Polynomial:
    """Polynomial with coefficients ordered from the constant term upwards."""

    coefficients: Sequence[float]

    def __call__(self, x: float) -> float:
        # Horner
        total = 0.0
        for coefficient in reversed(self.coefficients):
            total = total * x + coefficient
        return total

    def antiderivative(self, x: float) -> float:
        total = 0.0
        for power in range(len(self.coefficients), 0, -1):
            total = total * x + self.coefficients[power - 1] / power
        return total * x

    def exact_integral(self, a: float, b: float) -> float:
        return self.antiderivative(b) - self.antiderivative(a)


# 2x^2 + 3x + 0.5
SAMPLE_POLYNOMIAL = Polynomial((0.5, 3.0, 2.0))


def gaussian(x: float) -> float:
    return math.exp(-x * x)


def abs_sin(x: float) -> float:
    return abs(math.sin(x))


FUNCTIONS: dict[str, Evaluator] = {
    "poly": SAMPLE_POLYNOMIAL,
    "sin": math.sin,
    "cos": math.cos,
    "exp": math.exp,
    "gaussian": gaussian,
    "abs_sin": abs_sin,
}


def _abs_sin_integral(a: float, b: float) -> float:
    def primitive(x: float) -> float:
        # each half period contributes 2
        periods = math.floor(x / math.pi)
        return 2.0 * periods + (1.0 - math.cos(x - periods * math.pi))

    return primitive(b) - primitive(a)


EXACT_INTEGRALS: Mapping[str, Callable[[float, float], float]] = {
    "poly": SAMPLE_POLYNOMIAL.exact_integral,
    "sin": lambda a, b: math.cos(a) - math.cos(b),
    "cos": lambda a, b: math.sin(b) - math.sin(a),
    "exp": lambda a, b: math.exp(b) - math.exp(a),
    "gaussian": lambda a, b: math.sqrt(math.pi) / 2.0 * (math.erf(b) - math.erf(a)),
    "abs_sin": _abs_sin_integral,
}


def resolve_function(name: str) -> Evaluator:
    """Return a registered integrand or import one from ``package.module:attr``."""

    if name in FUNCTIONS:
        return FUNCTIONS[name]
    if ":" not in name:
        known = ", ".join(sorted(FUNCTIONS))
        raise ConfigurationError(f"Unknown function {name!r}; expected one of {known} or module:attr")
    module_name, _, attr = name.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import module {module_name!r}: {exc}") from exc
    func = getattr(module, attr, None)
    if not callable(func):
        raise ConfigurationError(f"{name!r} does not name a callable")
    return func


def exact_integral_for(name: str, a: float, b: float) -> float | None:
    """Closed-form integral of a registered integrand, ``None`` when unknown."""

    exact = EXACT_INTEGRALS.get(name)
    if exact is None:
        return None
    return exact(a, b)
