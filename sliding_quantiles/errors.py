"""
Exception types raised by the histogram and sliding-window buffer.

Caller errors derive from QuantileError so they can be handled as a group.
QuantileNotFoundError is an internal invariant failure and is not part of
that hierarchy.
"""


class QuantileError(Exception):
    """Base exception for recoverable caller errors."""

    pass


class InvalidRangeError(QuantileError, ValueError):
    """Raised when a value domain has end < start."""

    pass


class DomainTooLargeError(InvalidRangeError):
    """Raised when a value domain needs more counters than allowed."""

    pass


class InvalidCapacityError(QuantileError, ValueError):
    """Raised when a ring buffer is built with fewer than one window."""

    pass


class InvalidDurationError(QuantileError, ValueError):
    """Raised when a ring buffer is built with a non-positive window duration."""

    pass


class ValueOutOfRangeError(QuantileError, ValueError):
    """Raised when an observation falls outside the declared domain."""

    pass


class InvalidFractionError(QuantileError, ValueError):
    """Raised when a quantile fraction is outside [0, 1]."""

    pass


class NoDataError(QuantileError, LookupError):
    """Raised when a quantile is requested with zero observations."""

    pass


class QuantileNotFoundError(RuntimeError):
    """The cumulative scan ran past the end of the counts.

    Unreachable while total == sum(counts) holds.
    """

    pass
