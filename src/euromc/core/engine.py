"""Core Monte Carlo pricing engine for European vanilla options.

This module provides:
- Market and simulation parameter containers with up-front validation
- Terminal-price sampling under risk-neutral geometric Brownian motion
- Chunked, optionally worker-parallel estimation of the discounted payoff
"""
from __future__ import annotations

import logging
import math
import numbers
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import jax.numpy as jnp
import numpy as np

from euromc.core.errors import (
    ArithmeticOverflowError,
    InvalidParameterError,
    SimulationTimeoutError,
)
from euromc.core.rng import KeySeq, PolarNormalGenerator
from euromc.core.utils.parallel import iter_chunks, map_shares, split_evenly
from euromc.core.utils.precision import canonicalize_dtype

logger = logging.getLogger(__name__)

Array = jnp.ndarray

__all__ = [
    "Array",
    "MCConfig",
    "MarketParameters",
    "MonteCarloPricer",
    "OptionKind",
    "PriceEstimate",
    "call_price",
    "discount_factor",
    "price_vanilla_mc",
    "put_price",
    "terminal_prices",
    "validate_market",
    "vanilla_payoff",
]


class OptionKind(str, Enum):
    """Payoff direction of a vanilla option."""

    CALL = "call"
    PUT = "put"

    @classmethod
    def parse(cls, value: "OptionKind | str") -> "OptionKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidParameterError(
                f"Unknown option kind {value!r}; expected 'call' or 'put'"
            ) from None


def validate_market(S: float, K: float, r: float, v: float, T: float) -> None:
    """Raise :class:`InvalidParameterError` unless the inputs are admissible."""
    values = {"spot": S, "strike": K, "rate": r, "volatility": v, "maturity": T}
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    if S <= 0.0:
        raise InvalidParameterError(f"spot must be > 0, got {S!r}")
    if K <= 0.0:
        raise InvalidParameterError(f"strike must be > 0, got {K!r}")
    if v < 0.0:
        raise InvalidParameterError(f"volatility must be >= 0, got {v!r}")
    if T <= 0.0:
        raise InvalidParameterError(f"maturity must be > 0, got {T!r}")


@dataclass(frozen=True)
class MarketParameters:
    """Inputs of a single pricing run; immutable once constructed."""

    spot: float
    strike: float
    rate: float
    volatility: float
    maturity: float

    def __post_init__(self) -> None:
        for name in ("spot", "strike", "rate", "volatility", "maturity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
            object.__setattr__(self, name, float(value))
        validate_market(self.spot, self.strike, self.rate, self.volatility, self.maturity)

    @property
    def drift_adjusted_spot(self) -> float:
        """``S * exp(T * (r - v^2 / 2))``, the median of the terminal price."""
        v = self.volatility
        return self.spot * math.exp(self.maturity * (self.rate - 0.5 * v * v))

    @property
    def discount(self) -> float:
        return discount_factor(self.rate, self.maturity)


@dataclass(frozen=True)
class MCConfig:
    """Configuration for Monte Carlo simulations.

    ``paths`` is split into ``workers`` shares, each processed in chunks of at
    most ``chunk_size`` paths.  ``timeout`` (seconds) is checked between
    chunks.
    """

    paths: int
    chunk_size: int = 1_000_000
    workers: int = 1
    dtype: Any = None
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("paths", "chunk_size", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidParameterError(f"MCConfig.{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidParameterError(f"MCConfig.{name} must be >= 1, got {value!r}")
            object.__setattr__(self, name, int(value))
        if self.timeout is not None and not self.timeout > 0.0:
            raise InvalidParameterError("MCConfig.timeout must be > 0 when given.")
        object.__setattr__(self, "dtype", canonicalize_dtype(self.dtype))


@dataclass(frozen=True)
class PriceEstimate:
    """Discounted sample mean of the simulated payoffs."""

    price: float
    std_error: float
    paths: int
    kind: OptionKind

    def confidence_interval(self, z: float = 1.96) -> tuple[float, float]:
        """Symmetric normal-approximation interval around :attr:`price`."""
        half_width = z * self.std_error
        return self.price - half_width, self.price + half_width

    def __float__(self) -> float:
        return self.price


@dataclass
class _PayoffSums:
    total: float = 0.0
    total_sq: float = 0.0
    count: int = 0

    def merge(self, other: "_PayoffSums") -> "_PayoffSums":
        return _PayoffSums(
            self.total + other.total, self.total_sq + other.total_sq, self.count + other.count
        )


def discount_factor(r: float, t: float) -> float:
    """Return the discount factor ``e^{-r t}``."""
    return math.exp(-r * t)


def terminal_prices(
    s_adj: float, vol_sqrt_t: float, normals: Array | np.ndarray, *, dtype: Any = None
) -> Array:
    """Map standard normal draws to terminal prices ``s_adj * exp(vol_sqrt_t * z)``."""
    comp_dtype = canonicalize_dtype(dtype)
    z = jnp.asarray(normals, dtype=comp_dtype)
    return s_adj * jnp.exp(vol_sqrt_t * z)


def vanilla_payoff(terminal: Array, strike: float, kind: OptionKind | str) -> Array:
    """Intrinsic value at maturity: ``max(S_T - K, 0)`` or ``max(K - S_T, 0)``."""
    kind = OptionKind.parse(kind)
    if kind is OptionKind.CALL:
        return jnp.maximum(terminal - strike, 0.0)
    return jnp.maximum(strike - terminal, 0.0)


class MonteCarloPricer:
    """Estimate European option prices by simulating terminal prices.

    Each run is independent: no state is kept between calls except the
    optional caller-owned generator, which keeps advancing its stream.
    """

    def __init__(self, config: MCConfig, *, seed: int = 0) -> None:
        self.config = config
        self.seed = int(seed)

    def price(
        self,
        market: MarketParameters,
        kind: OptionKind | str = OptionKind.CALL,
        *,
        generator: PolarNormalGenerator | None = None,
    ) -> PriceEstimate:
        """Run the simulation and return the discounted mean payoff.

        Parameters
        ----------
        market
            Validated market inputs.
        kind
            ``"call"`` or ``"put"``.
        generator
            Optional caller-owned normal generator.  Only valid with a single
            worker; otherwise each worker receives a generator derived from
            ``seed``.
        """
        kind = OptionKind.parse(kind)
        cfg = self.config
        if generator is not None and cfg.workers > 1:
            raise InvalidParameterError("An injected generator requires workers == 1")

        try:
            s_adj = market.drift_adjusted_spot
        except OverflowError as exc:
            raise ArithmeticOverflowError(f"Drift-adjusted spot overflowed: {exc}") from exc
        if not math.isfinite(s_adj):
            raise ArithmeticOverflowError(
                f"Drift-adjusted spot overflowed for volatility={market.volatility}, "
                f"maturity={market.maturity}"
            )
        vol_sqrt_t = market.volatility * math.sqrt(market.maturity)

        shares = split_evenly(cfg.paths, cfg.workers)
        if generator is not None:
            generators = [generator]
        elif len(shares) == 1:
            generators = [PolarNormalGenerator(KeySeq(seed=self.seed), dtype=cfg.dtype)]
        else:
            generators = [
                PolarNormalGenerator(stream, dtype=cfg.dtype)
                for stream in KeySeq(seed=self.seed).spawn(len(shares))
            ]

        logger.debug(
            "Pricing %s: paths=%d workers=%d chunk_size=%d",
            kind.value,
            cfg.paths,
            len(shares),
            cfg.chunk_size,
        )
        deadline = time.monotonic() + cfg.timeout if cfg.timeout is not None else None

        def _run(share: tuple[PolarNormalGenerator, int]) -> _PayoffSums:
            gen, n_paths = share
            return self._simulate(gen, n_paths, market.strike, s_adj, vol_sqrt_t, kind, deadline)

        partials = map_shares(_run, list(zip(generators, shares)), workers=cfg.workers)
        sums = _PayoffSums()
        for partial in partials:
            sums = sums.merge(partial)

        discount = market.discount
        mean = sums.total / sums.count
        price = discount * mean
        if sums.count > 1:
            variance = max(sums.total_sq / sums.count - mean * mean, 0.0)
            variance *= sums.count / (sums.count - 1)
            std_error = discount * math.sqrt(variance / sums.count)
        else:
            std_error = float("nan")

        logger.info(
            "%s price %.6f (std error %.6f, %d paths)", kind.value, price, std_error, sums.count
        )
        return PriceEstimate(price=price, std_error=std_error, paths=sums.count, kind=kind)

    def _simulate(
        self,
        generator: PolarNormalGenerator,
        n_paths: int,
        strike: float,
        s_adj: float,
        vol_sqrt_t: float,
        kind: OptionKind,
        deadline: float | None,
    ) -> _PayoffSums:
        sums = _PayoffSums()
        for chunk in iter_chunks(n_paths, self.config.chunk_size):
            if deadline is not None and time.monotonic() > deadline:
                raise SimulationTimeoutError(sums.count, n_paths, self.config.timeout)
            normals = generator.sample(chunk)
            terminal = terminal_prices(s_adj, vol_sqrt_t, normals, dtype=self.config.dtype)
            payoff = vanilla_payoff(terminal, strike, kind)
            total = float(jnp.sum(payoff))
            total_sq = float(jnp.sum(payoff * payoff))
            if not (math.isfinite(total) and math.isfinite(total_sq)):
                raise ArithmeticOverflowError(
                    "Simulated payoffs are not finite; volatility * sqrt(maturity) "
                    f"= {vol_sqrt_t:g} is too large for {np.dtype(self.config.dtype).name}"
                )
            sums.total += total
            sums.total_sq += total_sq
            sums.count += chunk
        return sums


def price_vanilla_mc(
    N: int,
    S: float,
    K: float,
    r: float,
    v: float,
    T: float,
    kind: OptionKind | str = OptionKind.CALL,
    *,
    seed: int = 0,
    generator: PolarNormalGenerator | None = None,
    chunk_size: int = 1_000_000,
    workers: int = 1,
    dtype: Any = None,
    timeout: float | None = None,
) -> float:
    """Monte Carlo price of a European vanilla option under GBM dynamics.

    Parameters
    ----------
    N : Number of simulated paths
    S : Spot price
    K : Strike price
    r : Risk-free rate
    v : Volatility
    T : Time to maturity (years)
    kind : "call" or "put"
    seed : Seed of the uniform source when no ``generator`` is given

    Returns
    -------
    price : Discounted sample mean of the payoffs
    """
    market = MarketParameters(S, K, r, v, T)
    cfg = MCConfig(paths=N, chunk_size=chunk_size, workers=workers, dtype=dtype, timeout=timeout)
    estimate = MonteCarloPricer(cfg, seed=seed).price(market, kind, generator=generator)
    return estimate.price


def call_price(N: int, S: float, K: float, r: float, v: float, T: float, **kwargs: Any) -> float:
    return price_vanilla_mc(N, S, K, r, v, T, OptionKind.CALL, **kwargs)


def put_price(N: int, S: float, K: float, r: float, v: float, T: float, **kwargs: Any) -> float:
    return price_vanilla_mc(N, S, K, r, v, T, OptionKind.PUT, **kwargs)
