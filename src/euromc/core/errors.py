"""Exception hierarchy raised by the pricing engines."""
from __future__ import annotations

__all__ = [
    "ArithmeticOverflowError",
    "InvalidParameterError",
    "NumericDegeneracyError",
    "PricingError",
    "SimulationTimeoutError",
]


class PricingError(Exception):
    """Base class for all pricing failures."""


class InvalidParameterError(PricingError, ValueError):
    """Raised before any sampling when market or simulation inputs are invalid."""


class NumericDegeneracyError(PricingError, ArithmeticError):
    """Raised when a variate generator cannot produce an acceptable sample."""


class ArithmeticOverflowError(PricingError, OverflowError):
    """Raised when simulated prices or payoff sums stop being finite."""


class SimulationTimeoutError(PricingError, TimeoutError):
    """Raised when a simulation exceeds its deadline at a chunk boundary."""

    def __init__(self, completed: int, requested: int, timeout: float):
        super().__init__(
            f"Simulation exceeded {timeout:g}s after {completed} of {requested} paths"
        )
        self.completed = completed
        self.requested = requested
        self.timeout = timeout
