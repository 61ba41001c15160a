"""Precision management for the simulation kernels.

Pricing runs in 64-bit floating point by default, which requires JAX's x64
mode. The switch is flipped when this module is imported so that every array
created by the package honours the configured dtype. ``float32`` remains
available for quick, lower-accuracy runs.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

__all__ = [
    "PrecisionState",
    "SUPPORTED_DTYPES",
    "canonicalize_dtype",
    "get_compute_dtype",
    "get_precision_state",
    "precision_scope",
    "set_global_precision",
]

SUPPORTED_DTYPES: Dict[str, jnp.dtype] = {
    "float32": jnp.dtype("float32"),
    "float64": jnp.dtype("float64"),
}


@dataclass(frozen=True)
class PrecisionState:
    """Container describing the global precision configuration."""

    compute_dtype: jnp.dtype = SUPPORTED_DTYPES["float64"]

    def __post_init__(self) -> None:
        object.__setattr__(self, "compute_dtype", canonicalize_dtype(self.compute_dtype))


def canonicalize_dtype(dtype: Any | None) -> jnp.dtype:
    """Return a supported dtype.

    Parameters
    ----------
    dtype:
        ``None`` uses the currently configured global compute dtype.  ``str``
        inputs (case insensitive) and ``numpy``/``jax`` dtype objects are also
        accepted.  Only ``float32`` and ``float64`` are supported.
    """

    if dtype is None:
        return _GLOBAL_STATE.compute_dtype

    if isinstance(dtype, str):
        key = dtype.lower()
    else:
        try:
            key = jnp.dtype(dtype).name
        except TypeError as exc:
            raise TypeError(f"Unsupported dtype specification: {dtype!r}") from exc

    if key not in SUPPORTED_DTYPES:
        raise ValueError(
            f"Unsupported dtype '{dtype}'. Allowed values: {tuple(SUPPORTED_DTYPES)}"
        )
    return SUPPORTED_DTYPES[key]


def get_compute_dtype(dtype: Any | None = None) -> jnp.dtype:
    """Return the dtype to use for computations."""

    return canonicalize_dtype(dtype)


_GLOBAL_STATE = PrecisionState()


def get_precision_state() -> PrecisionState:
    """Return the current global precision state."""

    return _GLOBAL_STATE


def set_global_precision(*, compute_dtype: Any | None = None) -> PrecisionState:
    """Update the global precision configuration."""

    global _GLOBAL_STATE
    state = _GLOBAL_STATE
    if compute_dtype is not None:
        state = replace(state, compute_dtype=canonicalize_dtype(compute_dtype))
    _GLOBAL_STATE = state
    return state


@contextmanager
def precision_scope(*, compute_dtype: Any | None = None) -> Iterator[PrecisionState]:
    """Temporarily override the global precision configuration."""

    previous = get_precision_state()
    try:
        yield set_global_precision(compute_dtype=compute_dtype)
    finally:
        set_global_precision(compute_dtype=previous.compute_dtype)
