from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import math

from .errors import (
    DomainTooLargeError,
    InvalidCapacityError,
    InvalidDurationError,
    InvalidFractionError,
    InvalidRangeError,
    NoDataError,
    QuantileNotFoundError,
    ValueOutOfRangeError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DOMAIN_SIZE = 10_000_000


def _round_half_away(x: float) -> int:
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def _check_fraction(fraction: float) -> float:
    # NaN fails both comparisons
    if not (0.0 <= fraction <= 1.0):
        raise InvalidFractionError(f"Fraction must be between 0 and 1, got {fraction}")
    return float(fraction)


def nearest_rank(counts: Sequence[int], total: int, fraction: float, start: int) -> int:
    """Return the value at the nearest rank of `fraction` within `counts`.

    The target rank is round(fraction * total - 1), halves away from zero,
    clamped into [0, total - 1]. Counts are scanned in increasing value order
    and the first index whose cumulative sum exceeds the rank is returned,
    offset by `start`.
    """
    fraction = _check_fraction(fraction)
    if total <= 0:
        raise NoDataError("No values observed")
    rank = _round_half_away(fraction * total - 1.0)
    rank = min(max(rank, 0), total - 1)
    cumulative = 0
    for idx, count in enumerate(counts):
        if count <= 0:
            continue
        cumulative += count
        if cumulative > rank:
            return start + idx
    logger.error("Cumulative scan exhausted: total=%d rank=%d sum=%d", total, rank, cumulative)
    raise QuantileNotFoundError(f"No quantile found for fraction {fraction} (total={total}, scanned={cumulative})")


class Histogram:
    """Exact counting histogram over a closed integer domain [start, end].

    Keeps one counter per discrete value so inserts are O(1) and nearest-rank
    quantiles are an O(range) scan. Memory is proportional to the domain size,
    which is bounded by `max_size` at construction.
    """

    start: int
    end: int
    _counts: List[int]
    _total: int

    def __init__(self, start: int, end: int, max_size: int = DEFAULT_MAX_DOMAIN_SIZE) -> None:
        """Allocate zeroed counters for every value in [start, end]."""
        if end < start:
            raise InvalidRangeError(f"Invalid range: end ({end}) < start ({start})")
        size = end - start + 1
        if size > max_size:
            raise DomainTooLargeError(f"Domain [{start}, {end}] needs {size} counters, maximum is {max_size}")
        self.start = int(start)
        self.end = int(end)
        self._counts = [0] * size
        self._total = 0

    def __repr__(self) -> str:
        return f"Histogram(start={self.start}, end={self.end}, total={self._total})"

    @property
    def total(self) -> int:
        return self._total

    @property
    def size(self) -> int:
        return len(self._counts)

    @property
    def counts(self) -> Tuple[int, ...]:
        """Return a read-only copy of the per-value counters."""
        return tuple(self._counts)

    def _check_value(self, value: int) -> None:
        if value < self.start or value > self.end:
            raise ValueOutOfRangeError(f"Value {value} out of range [{self.start}, {self.end}]")

    def add_value(self, value: int) -> None:
        """Record one observation of `value`."""
        self._check_value(value)
        self._counts[value - self.start] += 1
        self._total += 1

    def count_of(self, value: int) -> int:
        """Return how many times `value` has been observed."""
        self._check_value(value)
        return self._counts[value - self.start]

    def estimate_quantile(self, fraction: float) -> int:
        """Return the nearest-rank quantile for a fraction in [0, 1]."""
        return nearest_rank(self._counts, self._total, fraction, self.start)

    def min_value(self) -> int:
        return self.estimate_quantile(0.0)

    def max_value(self) -> int:
        return self.estimate_quantile(1.0)

    def percentiles(self, qs: Iterable[float]) -> Dict[float, int]:
        """Compute requested percentiles (0–100) over the recorded values."""
        return {q: self.estimate_quantile(_check_percent(q)) for q in qs}

    def same_domain(self, other: "Histogram") -> bool:
        return self.start == other.start and self.end == other.end

    def copy(self) -> "Histogram":
        clone = Histogram.__new__(Histogram)
        clone.start = self.start
        clone.end = self.end
        clone._counts = list(self._counts)
        clone._total = self._total
        return clone

    @classmethod
    def merge(cls, histograms: Sequence["Histogram"]) -> "Histogram":
        """Sum several histograms over the same domain into a new one."""
        if not histograms:
            raise InvalidRangeError("At least one histogram is required to merge")
        first = histograms[0]
        merged = first.copy()
        for hist in histograms[1:]:
            if not first.same_domain(hist):
                raise InvalidRangeError(
                    f"Cannot merge domain [{hist.start}, {hist.end}] into [{first.start}, {first.end}]"
                )
            if hist._total == 0:
                continue
            counts = merged._counts
            for idx, count in enumerate(hist._counts):
                if count:
                    counts[idx] += count
            merged._total += hist._total
        return merged


def _check_percent(q: float) -> float:
    if not (0.0 <= q <= 100.0):
        raise InvalidFractionError(f"Percentile must be between 0 and 100, got {q}")
    return q / 100.0


class SlidingWindowRingBuffer:
    """Fixed ring of histograms, one per `duration`-long time window.

    Windows advance lazily from insert timestamps: the first insert anchors the
    grid at a multiple of `duration`, and any insert at or past the end of the
    active window moves `current` forward one slot per elapsed window,
    replacing that slot with an empty histogram. The slot being replaced is the
    oldest retained window, so the buffer always holds at most `capacity`
    windows of data. Quantile queries run over the merge of every slot.

    Not safe for concurrent mutation; callers serialize writes.
    """

    capacity: int
    duration: int
    start: int
    end: int
    _max_size: int
    _windows: List[Histogram]
    _current: int
    _window_start: int
    _initialized: bool

    def __init__(
            self,
            capacity: int,
            duration: int,
            start: int,
            end: int,
            max_size: int = DEFAULT_MAX_DOMAIN_SIZE,
    ) -> None:
        """Pre-build `capacity` empty histograms over [start, end]."""
        if capacity < 1:
            raise InvalidCapacityError(f"Capacity must be at least 1, got {capacity}")
        if duration <= 0:
            raise InvalidDurationError(f"Duration must be greater than zero, got {duration}")
        self.capacity = int(capacity)
        self.duration = int(duration)
        self.start = int(start)
        self.end = int(end)
        self._max_size = max_size
        # Validates the domain before any further allocation
        first = Histogram(start, end, max_size=max_size)
        self._windows = [first] + [self._fresh() for _ in range(self.capacity - 1)]
        self._current = 0
        self._window_start = 0
        self._initialized = False

    def __repr__(self) -> str:
        return (
            f"SlidingWindowRingBuffer(capacity={self.capacity}, duration={self.duration}, "
            f"start={self.start}, end={self.end}, current={self._current})"
        )

    def _fresh(self) -> Histogram:
        return Histogram(self.start, self.end, max_size=self._max_size)

    @property
    def current(self) -> int:
        return self._current

    @property
    def window_start(self) -> Optional[int]:
        """Start timestamp of the active window, None before the first insert."""
        return self._window_start if self._initialized else None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def windows(self) -> Tuple[Histogram, ...]:
        return tuple(self._windows)

    @property
    def total(self) -> int:
        return sum(w.total for w in self._windows)

    def _advance_to(self, timestamp: int) -> None:
        if timestamp < self._window_start + self.duration:
            return
        steps = (timestamp - self._window_start) // self.duration
        # Past `capacity` steps every slot has been replaced once; the rest
        # only move the index and the window start.
        for k in range(min(steps, self.capacity)):
            self._windows[(self._current + 1 + k) % self.capacity] = self._fresh()
        previous = self._current
        self._current = (self._current + steps) % self.capacity
        self._window_start += steps * self.duration
        logger.debug(
            "Advanced %d window(s): slot %d -> %d, window_start=%d",
            steps, previous, self._current, self._window_start,
        )

    def insert(self, value: int, timestamp: int) -> None:
        """Record `value` in the window that `timestamp` falls into.

        Timestamps earlier than the active window are counted in the active
        window. Time-based advancement happens even if `value` is rejected.
        """
        if not self._initialized:
            self._window_start = timestamp - (timestamp % self.duration)
            self._initialized = True
        self._advance_to(timestamp)
        self._windows[self._current].add_value(value)

    def merged(self) -> Histogram:
        """Return a new histogram holding the counts of every retained window."""
        return Histogram.merge(self._windows)

    def estimate_quantile(self, fraction: float) -> int:
        """Return the nearest-rank quantile over all retained windows."""
        _check_fraction(fraction)
        return self.merged().estimate_quantile(fraction)

    def percentiles(self, qs: Iterable[float]) -> Dict[float, int]:
        """Compute requested percentiles (0–100) over all retained windows."""
        qs = list(qs)
        for q in qs:
            _check_percent(q)
        return self.merged().percentiles(qs)

    def snapshot(self) -> "SlidingWindowRingBuffer":
        """Return an independent copy suitable for reading outside a lock."""
        clone = SlidingWindowRingBuffer.__new__(SlidingWindowRingBuffer)
        clone.capacity = self.capacity
        clone.duration = self.duration
        clone.start = self.start
        clone.end = self.end
        clone._max_size = self._max_size
        clone._windows = [w.copy() for w in self._windows]
        clone._current = self._current
        clone._window_start = self._window_start
        clone._initialized = self._initialized
        return clone

    def reset(self) -> None:
        """Drop all data and return to the uninitialized state."""
        self._windows = [self._fresh() for _ in range(self.capacity)]
        self._current = 0
        self._window_start = 0
        self._initialized = False
