from typing import Dict, List
import logging
from fastapi import APIRouter, HTTPException, Query
from ..errors import InvalidFractionError, NoDataError, QuantileNotFoundError
from ..state import AppState
from ..schemas import BufferOut, QuantileOut, QuantilesOut

"""
Quantile endpoint router.

Provides GET /quantile for one fraction, GET /quantiles for a set of
percentiles (p50/p90/p95/p99 by default), and GET /buffer exposing the ring
layout. All reads run on a snapshot of the buffer.

Outputs:
- 422 for fractions outside [0, 1] or percents outside [0, 100]
- 404 while no observation is retained
"""

DEFAULT_PERCENTILES = [50.0, 90.0, 95.0, 99.0]

logger = logging.getLogger(__name__)


def _percent_key(q: float) -> str:
    return f"p{q:g}"


class QuantileRouter:
    """Router encapsulating quantile query endpoints."""

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.router = APIRouter()
        self.router.add_api_route("/quantile", self.get_quantile, methods=["GET"], response_model=QuantileOut)
        self.router.add_api_route("/quantiles", self.get_quantiles, methods=["GET"], response_model=QuantilesOut)
        self.router.add_api_route("/buffer", self.get_buffer, methods=["GET"], response_model=BufferOut)

    def get_quantile(self, fraction: float) -> QuantileOut:
        """Return the nearest-rank quantile over all retained windows."""
        snap = self.state.snapshot()
        try:
            value = snap.estimate_quantile(fraction)
        except InvalidFractionError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except NoDataError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except QuantileNotFoundError:
            logger.exception("Quantile scan failed for fraction=%s", fraction)
            raise HTTPException(status_code=500, detail="Internal quantile error")
        return QuantileOut(fraction=fraction, value=value, count=snap.total)

    def get_quantiles(self, qs: List[float] = Query(default=DEFAULT_PERCENTILES)) -> QuantilesOut:
        """Return several percentiles (0–100) in one call."""
        snap = self.state.snapshot()
        try:
            values = snap.percentiles(qs)
        except InvalidFractionError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except NoDataError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except QuantileNotFoundError:
            logger.exception("Quantile scan failed for percentiles=%s", qs)
            raise HTTPException(status_code=500, detail="Internal quantile error")
        out: Dict[str, int] = {_percent_key(q): v for q, v in values.items()}
        return QuantilesOut(
            count=snap.total,
            window_seconds=snap.duration,
            windows=snap.capacity,
            percentiles=out,
        )

    def get_buffer(self) -> BufferOut:
        """Return ring layout, active slot and per-window totals."""
        return BufferOut(**self.state.buffer_info())
