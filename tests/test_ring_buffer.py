import pytest

from sliding_quantiles.errors import (
    InvalidCapacityError,
    InvalidDurationError,
    InvalidFractionError,
    InvalidRangeError,
    NoDataError,
    ValueOutOfRangeError,
)
from sliding_quantiles.metrics import Histogram, SlidingWindowRingBuffer


def test_construction_errors() -> None:
    with pytest.raises(InvalidCapacityError):
        SlidingWindowRingBuffer(0, 10, 0, 100)
    with pytest.raises(InvalidDurationError):
        SlidingWindowRingBuffer(3, 0, 0, 100)
    with pytest.raises(InvalidDurationError):
        SlidingWindowRingBuffer(3, -5, 0, 100)
    with pytest.raises(InvalidRangeError):
        SlidingWindowRingBuffer(3, 10, 100, 0)


def test_fresh_buffer_state() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    assert ring.current == 0
    assert not ring.initialized
    assert ring.window_start is None
    assert len(ring.windows) == 3
    assert all(w.total == 0 for w in ring.windows)
    with pytest.raises(NoDataError):
        ring.estimate_quantile(0.5)


def test_advance_on_window_boundary() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(1, 0)
    ring.insert(2, 5)
    ring.insert(3, 5)
    assert ring.current == 0
    ring.insert(3, 100)
    assert ring.current == 1
    assert ring.window_start == 100


def test_boundary_is_half_open() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(1, 0)
    ring.insert(2, 9)
    assert ring.current == 0
    ring.insert(3, 10)
    assert ring.current == 1
    assert ring.window_start == 10


def test_first_insert_anchors_grid() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(1, 37)
    assert ring.initialized
    assert ring.window_start == 30
    neg = SlidingWindowRingBuffer(3, 10, 0, 100)
    neg.insert(1, -5)
    assert neg.window_start == -10


def test_long_jump_matches_stepwise_advance() -> None:
    stepped = SlidingWindowRingBuffer(3, 10, 0, 100)
    stepped.insert(1, 0)
    for ts in range(10, 480, 10):
        stepped.insert(1, ts)
    jumped = SlidingWindowRingBuffer(3, 10, 0, 100)
    jumped.insert(1, 0)
    jumped.insert(1, 470)
    assert jumped.current == stepped.current == 47 % 3
    assert jumped.window_start == stepped.window_start == 470


def test_merge_matches_single_histogram_without_eviction() -> None:
    values = [(7, 0), (3, 4), (99, 11), (50, 15), (50, 22), (1, 29), (64, 29)]
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    hist = Histogram(0, 100)
    for value, ts in values:
        ring.insert(value, ts)
        hist.add_value(value)
    for f in (0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 0.99, 1.0):
        assert ring.estimate_quantile(f) == hist.estimate_quantile(f)
    assert ring.total == hist.total


def test_evicted_windows_no_longer_count() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 1000)
    ring.insert(1000, 0)
    ring.insert(1, 29)
    assert ring.estimate_quantile(1.0) == 1000
    ring.insert(2, 30)
    assert ring.estimate_quantile(1.0) == 2
    assert ring.estimate_quantile(0.0) == 1
    assert ring.total == 2


def test_far_jump_clears_everything_but_new_value() -> None:
    ring = SlidingWindowRingBuffer(4, 5, 0, 100)
    for ts in range(0, 20):
        ring.insert(90, ts)
    ring.insert(10, 10_000_000)
    assert ring.total == 1
    assert ring.estimate_quantile(0.5) == 10


def test_late_timestamp_counts_in_active_window() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(5, 25)
    ring.insert(7, 3)
    assert ring.current == 0
    assert ring.window_start == 20
    assert ring.windows[0].total == 2


def test_rejected_value_still_advances_time() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(1, 0)
    with pytest.raises(ValueOutOfRangeError):
        ring.insert(500, 15)
    assert ring.current == 1
    assert ring.window_start == 10
    assert ring.total == 1


def test_rejected_first_insert_still_initializes() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    with pytest.raises(ValueOutOfRangeError):
        ring.insert(-1, 42)
    assert ring.initialized
    assert ring.window_start == 40
    assert ring.total == 0


def test_invalid_fraction_on_buffer() -> None:
    ring = SlidingWindowRingBuffer(2, 10, 0, 100)
    with pytest.raises(InvalidFractionError):
        ring.estimate_quantile(1.1)
    ring.insert(4, 0)
    with pytest.raises(InvalidFractionError):
        ring.estimate_quantile(-0.01)


def test_query_is_idempotent() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    for i, v in enumerate([9, 1, 4, 4, 7, 30]):
        ring.insert(v, i * 4)
    first = ring.percentiles([50, 90, 99])
    assert ring.percentiles([50, 90, 99]) == first
    assert ring.estimate_quantile(0.5) == ring.estimate_quantile(0.5)


def test_snapshot_is_independent() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(10, 0)
    snap = ring.snapshot()
    ring.insert(20, 1)
    ring.insert(30, 15)
    assert snap.total == 1
    assert snap.current == 0
    assert snap.window_start == 0
    assert ring.total == 3
    assert ring.current == 1


def test_reset_returns_to_uninitialized() -> None:
    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    ring.insert(10, 5)
    ring.insert(20, 15)
    ring.reset()
    assert ring.current == 0
    assert not ring.initialized
    assert ring.total == 0
    ring.insert(3, 123)
    assert ring.window_start == 120
    assert ring.current == 0


def test_single_window_buffer() -> None:
    ring = SlidingWindowRingBuffer(1, 10, 0, 100)
    ring.insert(50, 0)
    ring.insert(60, 9)
    assert ring.total == 2
    ring.insert(70, 10)
    assert ring.current == 0
    assert ring.total == 1
    assert ring.estimate_quantile(0.0) == 70
