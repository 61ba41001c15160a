"""Work partitioning helpers for path-parallel Monte Carlo runs.

Paths are independent, so a run of ``N`` paths can be split into worker
shares, each owning a private generator and accumulator.  Inside a share the
paths are processed in fixed-size chunks, which bounds memory use and gives
the engine a place to check deadlines.  Only the final reduction touches
shared data, once per worker.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Sequence, TypeVar

__all__ = ["iter_chunks", "map_shares", "split_evenly"]

T = TypeVar("T")
R = TypeVar("R")


def split_evenly(total: int, parts: int) -> list[int]:
    """Split ``total`` items into ``parts`` near-equal, non-empty shares.

    The first ``total % parts`` shares receive one extra item.  When there are
    fewer items than parts, only ``total`` shares of size one are returned.
    """
    if total < 0:
        raise ValueError("total must be non-negative")
    if parts < 1:
        raise ValueError("parts must be >= 1")
    parts = min(parts, total) if total else 1
    base, extra = divmod(total, parts)
    return [base + (1 if i < extra else 0) for i in range(parts)]


def iter_chunks(total: int, chunk_size: int) -> Iterator[int]:
    """Yield chunk lengths covering ``total`` items, at most ``chunk_size`` each."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    remaining = total
    while remaining > 0:
        current = min(chunk_size, remaining)
        yield current
        remaining -= current


def map_shares(fn: Callable[[T], R], shares: Sequence[T], *, workers: int = 1) -> list[R]:
    """Apply ``fn`` to every share and return results in share order.

    With a single worker (or a single share) the calls run inline on the
    calling thread.  Otherwise a thread pool of ``workers`` threads is used;
    the first exception raised by any share propagates to the caller.
    """
    if workers < 1:
        raise ValueError("workers must be >= 1")
    if workers == 1 or len(shares) <= 1:
        return [fn(share) for share in shares]
    with ThreadPoolExecutor(max_workers=min(workers, len(shares))) as pool:
        futures = [pool.submit(fn, share) for share in shares]
        return [future.result() for future in futures]
