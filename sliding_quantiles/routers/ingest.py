from fastapi import APIRouter, HTTPException
from ..errors import QuantileError
from ..state import AppState
from ..schemas import BatchIn, BatchOut, ObservationIn, ObservationOut

"""
Ingest endpoint router.

Provides POST /observe for a single observation and POST /observe/batch for
many. Values outside the configured domain are rejected with 422 and leave
the recorded counts untouched.
"""


class IngestRouter:
    """Router encapsulating observation ingest endpoints."""

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.router = APIRouter()
        self.router.add_api_route("/observe", self.observe, methods=["POST"], response_model=ObservationOut)
        self.router.add_api_route("/observe/batch", self.observe_batch, methods=["POST"], response_model=BatchOut)

    def observe(self, payload: ObservationIn) -> ObservationOut:
        """Record one observation in the window its timestamp falls into."""
        try:
            current, window_start = self.state.observe(payload.value, payload.timestamp)
        except QuantileError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return ObservationOut(accepted=True, current=current, window_start=window_start)

    def observe_batch(self, payload: BatchIn) -> BatchOut:
        """Record a batch; rejected items are reported, not fatal."""
        items = [(o.value, o.timestamp) for o in payload.observations]
        accepted, errors = self.state.observe_many(items)
        return BatchOut(accepted=accepted, rejected=len(errors), errors=errors)
