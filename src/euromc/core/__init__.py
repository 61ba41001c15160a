"""Core computational infrastructure.

This module provides the variate generator, the Monte Carlo engine, the
error taxonomy and precision/parallel utilities.
"""

from . import utils
from .engine import (
    Array,
    MarketParameters,
    MCConfig,
    MonteCarloPricer,
    OptionKind,
    PriceEstimate,
    call_price,
    discount_factor,
    price_vanilla_mc,
    put_price,
    terminal_prices,
    validate_market,
    vanilla_payoff,
)
from .errors import (
    ArithmeticOverflowError,
    InvalidParameterError,
    NumericDegeneracyError,
    PricingError,
    SimulationTimeoutError,
)
from .rng import KeySeq, PolarNormalGenerator, UniformSource, split_key
from .rng import uniform as rng_uniform

__all__ = [
    "Array",
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
    "UniformSource",
    "call_price",
    "discount_factor",
    "price_vanilla_mc",
    "put_price",
    "rng_uniform",
    "split_key",
    "terminal_prices",
    "utils",
    "validate_market",
    "vanilla_payoff",
]
