from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
import logging
import os

from .metrics import DEFAULT_MAX_DOMAIN_SIZE, SlidingWindowRingBuffer

DEFAULT_WINDOW_COUNT = 6
DEFAULT_WINDOW_SECONDS = 10
DEFAULT_VALUE_MIN = 0
DEFAULT_VALUE_MAX = 60_000
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ADMIN_RESET_MIN_INTERVAL = 10.0

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def setup_logging(log_level: str = DEFAULT_LOG_LEVEL) -> None:
    """Set up root logging once with a stream handler."""
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"invalid log level: {log_level}")
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class ServiceConfig:
    """Runtime settings for the quantile service.

    Values come from environment variables (see `from_env`); every field has
    a default so an empty environment yields a working service with one
    minute of history split into six ten-second windows.
    """

    capacity: int = DEFAULT_WINDOW_COUNT
    duration: int = DEFAULT_WINDOW_SECONDS
    start: int = DEFAULT_VALUE_MIN
    end: int = DEFAULT_VALUE_MAX
    max_domain_size: int = DEFAULT_MAX_DOMAIN_SIZE
    log_level: str = DEFAULT_LOG_LEVEL
    admin_enabled: bool = False
    admin_token: str = ""
    admin_reset_min_interval: float = DEFAULT_ADMIN_RESET_MIN_INTERVAL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        def read(name: str, parse: Callable[[str], Any], default: Any) -> Any:
            raw = env.get(name)
            if raw is None or str(raw).strip() == "":
                return default
            try:
                return parse(str(raw).strip())
            except ValueError as exc:
                raise ValueError(f"invalid value for {name}: {raw!r}") from exc

        return cls(
            capacity=read("SQ_WINDOW_COUNT", int, DEFAULT_WINDOW_COUNT),
            duration=read("SQ_WINDOW_SECONDS", int, DEFAULT_WINDOW_SECONDS),
            start=read("SQ_VALUE_MIN", int, DEFAULT_VALUE_MIN),
            end=read("SQ_VALUE_MAX", int, DEFAULT_VALUE_MAX),
            max_domain_size=read("SQ_MAX_DOMAIN_SIZE", int, DEFAULT_MAX_DOMAIN_SIZE),
            log_level=read("SQ_LOG_LEVEL", str, DEFAULT_LOG_LEVEL),
            admin_enabled=read("ENABLE_ADMIN", _parse_bool, False),
            admin_token=read("ADMIN_TOKEN", str, ""),
            admin_reset_min_interval=read(
                "ADMIN_RESET_MIN_INTERVAL", float, DEFAULT_ADMIN_RESET_MIN_INTERVAL
            ),
        )

    def build_buffer(self) -> SlidingWindowRingBuffer:
        """Construct the ring buffer described by this config."""
        return SlidingWindowRingBuffer(
            self.capacity,
            self.duration,
            self.start,
            self.end,
            max_size=self.max_domain_size,
        )
