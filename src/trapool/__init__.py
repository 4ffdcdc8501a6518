"""trapool public package exports."""

from .config import TrapoolSettings, load_config, load_settings
from .convergence import ConvergenceDriver, ConvergencePolicy, ConvergenceResult
from .errors import (
    ConfigurationError,
    ConvergenceError,
    IntegrationError,
    PoolClosedError,
    TrapoolError,
)
from .functions import SAMPLE_POLYNOMIAL, Polynomial, resolve_function
from .integrator import ParallelIntegrator, integrate, integrate_sequential
from .partition import WorkRange, plan
from .workers import WorkerPool

__all__ = [
    "ConfigurationError",
    "ConvergenceDriver",
    "ConvergenceError",
    "ConvergencePolicy",
    "ConvergenceResult",
    "IntegrationError",
    "ParallelIntegrator",
    "PoolClosedError",
    "Polynomial",
    "SAMPLE_POLYNOMIAL",
    "TrapoolError",
    "TrapoolSettings",
    "WorkRange",
    "WorkerPool",
    "integrate",
    "integrate_sequential",
    "load_config",
    "load_settings",
    "plan",
    "resolve_function",
]
