from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ObservationIn(BaseModel):
    """Single observation accepted by the ingest endpoint.

    `timestamp` is in the same unit as the configured window duration
    (seconds for the service). When omitted, the server clock is used.
    """
    value: int
    timestamp: Optional[int] = None


class ObservationOut(BaseModel):
    """Acknowledgement of an accepted observation.

    Reports the ring slot that received the value and the start timestamp of
    that active window.
    """
    accepted: bool
    current: int
    window_start: int


class BatchIn(BaseModel):
    """Batch of observations inserted under one lock acquisition."""
    observations: List[ObservationIn] = Field(default_factory=list)


class BatchOut(BaseModel):
    """Batch ingest result with per-item errors for rejected observations."""
    accepted: int
    rejected: int
    errors: List[Dict[str, Union[int, str]]]


class QuantileOut(BaseModel):
    """Single nearest-rank quantile over all retained windows."""
    fraction: float
    value: int
    count: int


class QuantilesOut(BaseModel):
    """Several percentiles at once, keyed by e.g. "p50" or "p99.9"."""
    count: int
    window_seconds: int
    windows: int
    percentiles: Dict[str, int]


class BufferOut(BaseModel):
    """Ring buffer layout and per-window observation totals."""
    capacity: int
    duration: int
    start: int
    end: int
    initialized: bool
    current: int
    window_start: Optional[int]
    window_totals: List[int]
    total: int
    rejected: int


class HealthOut(BaseModel):
    """Service health and buffer configuration."""
    status: str
    uptime_seconds: float
    config: Dict[str, Union[str, int, float, bool]]
