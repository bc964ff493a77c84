from typing import Optional, Any
import logging
import time
from fastapi import FastAPI, Request
from .config import ServiceConfig, setup_logging
from .state import AppState
from .routers.health import HealthRouter
from .routers.ingest import IngestRouter
from .routers.quantiles import QuantileRouter
from .routers.admin import AdminRouter

DEFAULT_TITLE = "Sliding Window Quantiles"
DEFAULT_VERSION = "1.0.0"

"""FastAPI application factory and bootstrapper for the quantile service.

Responsible for constructing the FastAPI app from a ServiceConfig, attaching
request-timing middleware, and registering API routers for health, ingest,
quantile queries and administration.
"""

logger = logging.getLogger(__name__)


class Application:
    """Builder for the FastAPI app with middleware and routers."""

    def __init__(
            self,
            title: str = DEFAULT_TITLE,
            version: str = DEFAULT_VERSION,
            config: Optional[ServiceConfig] = None,
    ) -> None:
        self.title = title
        self.version = version
        self.config = config or ServiceConfig.from_env()
        self.app: Optional[FastAPI] = None
        self.state: Optional[AppState] = None

    def build(self) -> "Application":
        """Construct the FastAPI app instance and wire core middleware."""
        setup_logging(self.config.log_level)
        self.app = FastAPI(title=self.title, version=self.version)
        self.state = AppState(config=self.config)
        self.app.state.quantiles = self.state
        self._add_timing_middleware()
        return self

    def include_routers(self) -> "Application":
        """Register API routers for health, ingest, quantiles, and admin."""
        assert self.app is not None and self.state is not None
        health = HealthRouter(self.state)
        ingest = IngestRouter(self.state)
        quantiles = QuantileRouter(self.state)
        admin = AdminRouter(self.state)
        self.app.include_router(health.router)
        self.app.include_router(ingest.router)
        self.app.include_router(quantiles.router)
        self.app.include_router(admin.router)
        return self

    def _add_timing_middleware(self) -> None:
        assert self.app is not None

        @self.app.middleware("http")
        async def timing_middleware(request: Request, call_next):  # type: ignore[override]
            t0_ns = time.perf_counter_ns()
            response = await call_next(request)
            dt_ms = (time.perf_counter_ns() - t0_ns) / 1_000_000.0
            logger.debug("%s %s -> %d in %.3fms", request.method, request.url.path, response.status_code, dt_ms)
            return response


def create_app(config: Optional[ServiceConfig] = None) -> Any:
    """Create and configure the FastAPI application instance."""
    app = Application(config=config).build().include_routers()
    return app.app  # type: ignore[return-value]
