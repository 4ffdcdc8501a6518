"""Exception hierarchy shared by the pool and the integrator."""

from __future__ import annotations


class TrapoolError(Exception):
    """Base class for every error raised by trapool."""


class ConfigurationError(TrapoolError, ValueError):
    """Invalid arguments detected before any work is scheduled."""


class PoolClosedError(TrapoolError, RuntimeError):
    """A job was submitted after the pool started shutting down."""


class IntegrationError(TrapoolError, RuntimeError):
    """A partial-sum task failed, so the whole pass was aborted."""

    def __init__(self, message: str, task_index: int | None = None) -> None:
        super().__init__(message)
        self.task_index = task_index


class ConvergenceError(TrapoolError):
    """The convergence loop ran out of iterations without stabilising."""


class PlotError(TrapoolError, RuntimeError):
    """A recorded run could not be plotted."""
