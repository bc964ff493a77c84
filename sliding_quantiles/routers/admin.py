from typing import Any, Dict
import time
from fastapi import APIRouter, HTTPException, Header
from ..state import AppState


class AdminRouter:
    """Administrative endpoints guarded by a static token and config toggle.

    Provides a POST /admin/reset endpoint that clears every window of the ring
    buffer. Rate-limited to avoid abuse.
    """

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.router = APIRouter()
        self._last_reset_ts: float = 0.0
        self._min_interval_seconds: float = float(state.get_config().admin_reset_min_interval)
        self.router.add_api_route("/admin/reset", self.reset_now, methods=["POST"])

    def _check_enabled(self) -> None:
        if not self.state.get_config().admin_enabled:
            raise HTTPException(status_code=403, detail="Admin endpoints disabled")

    def _check_token(self, token: str | None) -> None:
        expected = self.state.get_config().admin_token
        if not expected or token != expected:
            raise HTTPException(status_code=401, detail="Unauthorized")

    def reset_now(self, x_admin_token: str | None = Header(default=None)) -> Dict[str, Any]:
        """Clear all recorded observations if allowed."""
        self._check_enabled()
        self._check_token(x_admin_token)
        now = time.time()
        if now - self._last_reset_ts < self._min_interval_seconds:
            raise HTTPException(status_code=429, detail="Too many requests")
        self._last_reset_ts = now
        self.state.reset()
        return {"status": "reset", "reset_at": now}
