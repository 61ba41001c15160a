"""European vanilla option pricing by Monte Carlo simulation."""

from __future__ import annotations

from euromc.core import (
    ArithmeticOverflowError,
    InvalidParameterError,
    KeySeq,
    MarketParameters,
    MCConfig,
    MonteCarloPricer,
    NumericDegeneracyError,
    OptionKind,
    PolarNormalGenerator,
    PriceEstimate,
    PricingError,
    SimulationTimeoutError,
    call_price,
    price_vanilla_mc,
    put_price,
)

__version__ = "0.1.0"

__all__ = [
    "ArithmeticOverflowError",
    "InvalidParameterError",
    "KeySeq",
    "MCConfig",
    "MarketParameters",
    "MonteCarloPricer",
    "NumericDegeneracyError",
    "OptionKind",
    "PolarNormalGenerator",
    "PriceEstimate",
    "PricingError",
    "SimulationTimeoutError",
    "call_price",
    "price_vanilla_mc",
    "put_price",
]
