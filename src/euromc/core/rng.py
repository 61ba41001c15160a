"""Random number sources for Monte Carlo pricing.

Two layers live here:

* :class:`KeySeq` wraps a seeded stream of JAX PRNG keys and acts as the
  uniform source.  It can be split into independent child streams, one per
  worker.
* :class:`PolarNormalGenerator` turns any :class:`UniformSource` into a
  stream of standard normal variates with the Marsaglia polar method.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Protocol, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from euromc.core.errors import NumericDegeneracyError
from euromc.core.utils.precision import canonicalize_dtype

KeyArray = jax.Array

__all__ = [
    "KeySeq",
    "PolarNormalGenerator",
    "UniformSource",
    "split_key",
    "uniform",
]


def split_key(key: KeyArray, n: int) -> Tuple[KeyArray, ...]:
    """Split a key into ``n`` sub-keys without mutating the original key."""
    if n < 1:
        return tuple()
    keys = jax.random.split(key, n + 1)
    return tuple(keys[1:])


def uniform(
    key: KeyArray,
    shape: Iterable[int],
    *,
    minval: float = 0.0,
    maxval: float = 1.0,
    dtype: Any = None,
) -> jnp.ndarray:
    """Uniform samples U[minval, maxval) for a given key and shape."""
    comp_dtype = canonicalize_dtype(dtype)
    return jax.random.uniform(
        key, tuple(shape), minval=minval, maxval=maxval, dtype=comp_dtype
    )


class UniformSource(Protocol):
    """Anything able to fill an array with uniform samples."""

    def uniform(
        self,
        shape: Iterable[int],
        *,
        minval: float = 0.0,
        maxval: float = 1.0,
        dtype: Any = None,
    ) -> Any:
        ...


@dataclass
class KeySeq:
    """Stateful helper that manages a deterministic stream of PRNG keys."""

    seed: int = 0
    _key: KeyArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._key = jax.random.PRNGKey(self.seed)

    @classmethod
    def from_config(cls, config: Any) -> "KeySeq":
        """Instantiate a ``KeySeq`` using the configuration ``seed``."""
        seed = getattr(config, "seed", None) if hasattr(config, "seed") else None
        if seed is None and isinstance(config, Mapping):
            seed = config.get("seed")
        if seed is None:
            raise ValueError("Configuration does not define a 'seed' entry")
        return cls(seed=int(seed))

    @classmethod
    def from_key(cls, key: KeyArray, *, seed: int = 0) -> "KeySeq":
        """Wrap an existing key; ``seed`` is kept only for bookkeeping."""
        seq = cls(seed=seed)
        seq._key = key
        return seq

    @property
    def key(self) -> KeyArray:
        """Return the current master key (without consuming it)."""
        return self._key

    def next(self) -> KeyArray:
        """Return the next sub-key and update the internal state."""
        self._key, sub = jax.random.split(self._key)
        return sub

    def split(self, n: int) -> Tuple[KeyArray, ...]:
        """Return ``n`` sub-keys and update the internal state."""
        if n < 1:
            return tuple()
        keys = jax.random.split(self._key, n + 1)
        self._key = keys[0]
        return tuple(keys[1:])

    def spawn(self, n: int) -> Tuple["KeySeq", ...]:
        """Return ``n`` independent child streams, e.g. one per worker."""
        return tuple(KeySeq.from_key(key, seed=self.seed) for key in self.split(n))

    def uniform(
        self,
        shape: Iterable[int],
        *,
        minval: float = 0.0,
        maxval: float = 1.0,
        dtype: Any = None,
    ) -> jnp.ndarray:
        """Convenience wrapper for drawing uniform samples."""
        return uniform(self.next(), shape, minval=minval, maxval=maxval, dtype=dtype)


class PolarNormalGenerator:
    """Standard normal variates from the Marsaglia polar method.

    Candidate points ``(x, y)`` are drawn uniformly on ``[-1, 1)^2`` from the
    injected ``source``.  A point is accepted when ``0 < s < 1`` with
    ``s = x^2 + y^2`` and yields the variate ``x * sqrt(-2 ln(s) / s)``.
    Points with ``s == 0`` or ``s >= 1`` are redrawn, so the logarithm and the
    division never see a degenerate radius.

    Candidates are drawn ``batch_size`` pairs at a time and the accepted
    variates are buffered in draw order.  The output stream therefore depends
    only on the source and ``batch_size``: calling :meth:`next` ``n`` times
    returns exactly the values a single :meth:`sample` call of size ``n``
    would.

    Parameters
    ----------
    source
        Uniform source, typically a :class:`KeySeq`.
    batch_size
        Number of candidate pairs requested from ``source`` per draw.
    dtype
        Floating point dtype of the produced variates.
    max_empty_batches
        The source is expected to land inside the unit disk with probability
        close to pi/4 per pair.  If this many consecutive batches produce no
        accepted pair, :class:`~euromc.core.errors.NumericDegeneracyError` is
        raised instead of looping forever.
    """

    def __init__(
        self,
        source: UniformSource,
        *,
        batch_size: int = 1 << 16,
        dtype: Any = None,
        max_empty_batches: int = 64,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if max_empty_batches < 1:
            raise ValueError("max_empty_batches must be >= 1")
        self.source = source
        self.batch_size = int(batch_size)
        self.dtype = np.dtype(canonicalize_dtype(dtype))
        self.max_empty_batches = int(max_empty_batches)
        self._buffer = np.empty(0, dtype=self.dtype)
        self._pos = 0

    @classmethod
    def from_seed(cls, seed: int, **kwargs: Any) -> "PolarNormalGenerator":
        return cls(KeySeq(seed=seed), **kwargs)

    def __iter__(self) -> Iterator[float]:
        return self

    def __next__(self) -> float:
        return self.next()

    @property
    def buffered(self) -> int:
        """Number of accepted variates drawn but not yet handed out."""
        return self._buffer.size - self._pos

    def next(self) -> float:
        """Return one standard normal variate."""
        if self._pos >= self._buffer.size:
            self._refill()
        value = self._buffer[self._pos]
        self._pos += 1
        return float(value)

    def sample(self, n: int) -> np.ndarray:
        """Return the next ``n`` variates of the stream as an array."""
        if n < 0:
            raise ValueError("n must be non-negative")
        out = np.empty(n, dtype=self.dtype)
        filled = 0
        while filled < n:
            if self._pos >= self._buffer.size:
                self._refill()
            take = min(n - filled, self._buffer.size - self._pos)
            out[filled : filled + take] = self._buffer[self._pos : self._pos + take]
            self._pos += take
            filled += take
        return out

    def _refill(self) -> None:
        for _ in range(self.max_empty_batches):
            points = jnp.asarray(
                self.source.uniform(
                    (2, self.batch_size), minval=-1.0, maxval=1.0, dtype=self.dtype
                ),
                dtype=self.dtype,
            )
            x, y = points[0], points[1]
            s = x * x + y * y
            accepted = (s > 0.0) & (s < 1.0)
            mask = np.asarray(accepted)
            if not mask.any():
                continue
            radius = jnp.where(accepted, s, 1.0)
            values = x * jnp.sqrt(-2.0 * jnp.log(radius) / radius)
            self._buffer = np.asarray(values, dtype=self.dtype)[mask]
            self._pos = 0
            return
        raise NumericDegeneracyError(
            f"No point fell inside the unit disk in {self.max_empty_batches} "
            f"batches of {self.batch_size} pairs; the uniform source looks degenerate"
        )
