"""Closed-form Black-Scholes pricing and finite-difference sensitivities.

The analytic price is the reference the Monte Carlo engine converges to.
Delta and Gamma are obtained by bumping the spot of the closed-form price.
"""
from __future__ import annotations

from functools import partial
from typing import Dict, Tuple

import jax
import jax.numpy as jnp
from jax.scipy.stats import norm

from euromc.core.engine import OptionKind, validate_market
from euromc.core.errors import InvalidParameterError

__all__ = ["delta_fd", "fd_greeks", "gamma_fd", "greeks", "price"]

DEFAULT_BUMP = 1e-3


@jax.jit
def _d1d2(S, K, r, sigma, T):
    # A zero volatility collapses d1/d2 to +-inf, giving the discounted intrinsic value.
    vol = jnp.maximum(sigma, 1e-12)
    sqrtT = jnp.sqrt(T)
    d1 = (jnp.log(S / K) + (r + 0.5 * vol**2) * T) / (vol * sqrtT)
    d2 = d1 - vol * sqrtT
    return d1, d2


@partial(jax.jit, static_argnames=("kind",))
def _price(S, K, r, sigma, T, kind="call"):
    d1, d2 = _d1d2(S, K, r, sigma, T)
    if kind == "call":
        return S * norm.cdf(d1) - jnp.exp(-r * T) * K * norm.cdf(d2)
    return jnp.exp(-r * T) * K * norm.cdf(-d2) - S * norm.cdf(-d1)


@partial(jax.jit, static_argnames=("kind",))
def _greeks(S, K, r, sigma, T, kind="call"):
    d1, _ = _d1d2(S, K, r, sigma, T)
    vol = jnp.maximum(sigma, 1e-12)
    nd1 = jnp.exp(-0.5 * d1 * d1) / jnp.sqrt(2.0 * jnp.pi)
    delta = norm.cdf(d1) if kind == "call" else norm.cdf(d1) - 1.0
    gamma = nd1 / (S * vol * jnp.sqrt(T))
    return delta, gamma


def price(
    S: float, K: float, r: float, sigma: float, T: float, kind: OptionKind | str = "call"
) -> float:
    """Black-Scholes price of a European call or put."""
    validate_market(S, K, r, sigma, T)
    kind = OptionKind.parse(kind)
    return float(_price(float(S), float(K), float(r), float(sigma), float(T), kind=kind.value))


def greeks(
    S: float, K: float, r: float, sigma: float, T: float, kind: OptionKind | str = "call"
) -> Tuple[float, float]:
    """Analytic ``(delta, gamma)``."""
    validate_market(S, K, r, sigma, T)
    kind = OptionKind.parse(kind)
    delta, gamma = _greeks(float(S), float(K), float(r), float(sigma), float(T), kind=kind.value)
    return float(delta), float(gamma)


def _check_bump(S: float, h: float, *, central: bool) -> None:
    if not h > 0.0:
        raise InvalidParameterError(f"bump must be > 0, got {h!r}")
    if central and S - h <= 0.0:
        raise InvalidParameterError(f"bump {h!r} must be smaller than spot {S!r}")


def delta_fd(
    S: float,
    K: float,
    r: float,
    sigma: float,
    T: float,
    kind: OptionKind | str = "call",
    h: float = DEFAULT_BUMP,
) -> float:
    """Forward-difference Delta: ``(C(S + h) - C(S)) / h``."""
    _check_bump(S, h, central=False)
    return (price(S + h, K, r, sigma, T, kind) - price(S, K, r, sigma, T, kind)) / h


def gamma_fd(
    S: float,
    K: float,
    r: float,
    sigma: float,
    T: float,
    kind: OptionKind | str = "call",
    h: float = DEFAULT_BUMP,
) -> float:
    """Central-difference Gamma: ``(C(S + h) - 2 C(S) + C(S - h)) / h^2``."""
    _check_bump(S, h, central=True)
    up = price(S + h, K, r, sigma, T, kind)
    mid = price(S, K, r, sigma, T, kind)
    down = price(S - h, K, r, sigma, T, kind)
    return (up - 2.0 * mid + down) / (h * h)


def fd_greeks(
    S: float,
    K: float,
    r: float,
    sigma: float,
    T: float,
    kind: OptionKind | str = "call",
    h: float = DEFAULT_BUMP,
) -> Dict[str, float]:
    """Price plus bumped Delta and Gamma in a single mapping."""
    return {
        "price": price(S, K, r, sigma, T, kind),
        "delta": delta_fd(S, K, r, sigma, T, kind, h),
        "gamma": gamma_fd(S, K, r, sigma, T, kind, h),
    }
