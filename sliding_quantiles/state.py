from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import time

from .config import ServiceConfig
from .errors import QuantileError
from .metrics import SlidingWindowRingBuffer

logger = logging.getLogger(__name__)


class AppState:
    """Centralized application state for the sliding quantile service.

    Owns the single sliding-window ring buffer and the lock that serializes
    every access to it. Writers mutate the live buffer under the lock; readers
    take a snapshot under the lock and compute quantiles on the copy.
    """

    _config: ServiceConfig
    _buffer: Optional[SlidingWindowRingBuffer] = None
    _lock: Optional[Lock] = None

    def __init__(self, config: Optional[ServiceConfig] = None) -> None:
        """Initialize state and build the ring buffer from config."""
        self._config = config or ServiceConfig()
        self._buffer = self._config.build_buffer()
        self._lock = Lock()
        self._start_time = time.time()
        self._rejected = 0
        logger.info(
            "Ring buffer ready: %d windows x %ds over [%d, %d]",
            self._config.capacity, self._config.duration, self._config.start, self._config.end,
        )

    def get_config(self) -> ServiceConfig:
        return self._config

    def uptime_seconds(self) -> float:
        return max(0.0, time.time() - self._start_time)

    def rejected_count(self) -> int:
        """Return the number of observations rejected since start or reset."""
        return self._rejected

    @staticmethod
    def now() -> int:
        """Current server timestamp in whole seconds."""
        return int(time.time())

    def observe(self, value: int, timestamp: Optional[int] = None) -> Tuple[int, int]:
        """Insert one observation; returns (current slot, active window start)."""
        ts = self.now() if timestamp is None else int(timestamp)
        with self._lock:  # type: ignore[union-attr]
            buf = self._buffer
            try:
                buf.insert(value, ts)  # type: ignore[union-attr]
            except QuantileError:
                self._rejected += 1
                logger.info("Rejected observation value=%s timestamp=%s", value, ts)
                raise
            return buf.current, buf.window_start  # type: ignore[union-attr,return-value]

    def observe_many(self, items: Iterable[Tuple[int, Optional[int]]]) -> Tuple[int, List[Dict[str, Any]]]:
        """Insert a batch under one lock acquisition.

        Returns the accepted count and one error record per rejected item;
        rejected items do not stop the batch.
        """
        accepted = 0
        errors: List[Dict[str, Any]] = []
        default_ts = self.now()
        with self._lock:  # type: ignore[union-attr]
            for idx, (value, timestamp) in enumerate(items):
                ts = default_ts if timestamp is None else int(timestamp)
                try:
                    self._buffer.insert(value, ts)  # type: ignore[union-attr]
                    accepted += 1
                except QuantileError as exc:
                    self._rejected += 1
                    errors.append({"index": idx, "value": value, "detail": str(exc)})
        if errors:
            logger.info("Rejected %d of %d observations in batch", len(errors), accepted + len(errors))
        return accepted, errors

    def snapshot(self) -> SlidingWindowRingBuffer:
        """Return a consistent copy of the buffer taken under the lock."""
        with self._lock:  # type: ignore[union-attr]
            return self._buffer.snapshot()  # type: ignore[union-attr]

    def reset(self) -> None:
        """Drop all recorded observations."""
        with self._lock:  # type: ignore[union-attr]
            self._buffer.reset()  # type: ignore[union-attr]
            self._rejected = 0
        logger.warning("Ring buffer reset; all windows cleared")

    def buffer_info(self) -> Dict[str, Any]:
        """Return the buffer layout and per-window totals for dashboards."""
        with self._lock:  # type: ignore[union-attr]
            snap = self._buffer.snapshot()  # type: ignore[union-attr]
            rejected = self._rejected
        return {
            "capacity": snap.capacity,
            "duration": snap.duration,
            "start": snap.start,
            "end": snap.end,
            "initialized": snap.initialized,
            "current": snap.current,
            "window_start": snap.window_start,
            "window_totals": [w.total for w in snap.windows],
            "total": snap.total,
            "rejected": rejected,
        }
