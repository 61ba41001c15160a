"""Utility helpers shared by the pricing engines."""

from .parallel import iter_chunks, map_shares, split_evenly
from .precision import canonicalize_dtype, get_compute_dtype, precision_scope, set_global_precision

__all__ = [
    "canonicalize_dtype",
    "get_compute_dtype",
    "iter_chunks",
    "map_shares",
    "precision_scope",
    "set_global_precision",
    "split_evenly",
]
