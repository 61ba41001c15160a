"""Tests for work partitioning helpers."""
import threading

import pytest

from euromc.core.utils.parallel import iter_chunks, map_shares, split_evenly


@pytest.mark.parametrize(
    "total, parts, expected",
    [
        (10, 3, [4, 3, 3]),
        (9, 3, [3, 3, 3]),
        (2, 5, [1, 1]),
        (1, 1, [1]),
        (0, 4, [0]),
    ],
)
def test_split_evenly(total, parts, expected):
    shares = split_evenly(total, parts)

    assert shares == expected
    assert sum(shares) == total


def test_split_evenly_rejects_bad_input():
    with pytest.raises(ValueError):
        split_evenly(-1, 2)
    with pytest.raises(ValueError):
        split_evenly(10, 0)


def test_iter_chunks_covers_total():
    assert list(iter_chunks(25, 10)) == [10, 10, 5]
    assert list(iter_chunks(10, 10)) == [10]
    assert list(iter_chunks(0, 10)) == []
    with pytest.raises(ValueError):
        list(iter_chunks(5, 0))


def test_map_shares_keeps_order_across_threads():
    seen_threads = set()

    def work(value):
        seen_threads.add(threading.get_ident())
        return value * value

    assert map_shares(work, [1, 2, 3, 4], workers=4) == [1, 4, 9, 16]
    assert map_shares(work, [5], workers=4) == [25]


def test_map_shares_runs_inline_for_one_worker():
    caller = threading.get_ident()

    assert map_shares(lambda _: threading.get_ident(), [0, 1], workers=1) == [caller, caller]


def test_map_shares_propagates_errors():
    def work(value):
        if value == 2:
            raise RuntimeError("boom")
        return value

    with pytest.raises(RuntimeError, match="boom"):
        map_shares(work, [1, 2, 3], workers=3)
    with pytest.raises(ValueError):
        map_shares(work, [1], workers=0)
