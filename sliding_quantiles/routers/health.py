from typing import Any, Dict
from fastapi import APIRouter
from ..state import AppState
from ..schemas import HealthOut

"""
Health endpoint router.

Provides a GET /health endpoint reporting service status, uptime and the
ring buffer configuration for monitoring and readiness checks.
"""


class HealthRouter:
    """Router encapsulating health-check related endpoints."""

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.router = APIRouter()
        self.router.add_api_route("/health", self.get_health, methods=["GET"], response_model=HealthOut)

    def get_health(self) -> HealthOut:
        """Return service health status and buffer configuration."""
        cfg = self.state.get_config()
        info: Dict[str, Any] = {
            "capacity": cfg.capacity,
            "duration": cfg.duration,
            "start": cfg.start,
            "end": cfg.end,
            "admin_enabled": cfg.admin_enabled,
        }
        return HealthOut(status="ok", uptime_seconds=self.state.uptime_seconds(), config=info)
