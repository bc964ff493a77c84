from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List

import pandas as pd

from sliding_quantiles.config import setup_logging
from sliding_quantiles.errors import ValueOutOfRangeError
from sliding_quantiles.metrics import SlidingWindowRingBuffer
from scripts.common import load_observations, percentile_report

"""
Offline replay of a timestamp,value CSV through a sliding-window ring buffer.

Rows are replayed in timestamp order; rows whose value falls outside the
domain are counted and skipped. Prints the final window quantiles as JSON,
optionally with a per-window trace of the quantiles after each advance.
"""

logger = logging.getLogger(__name__)


def replay(
        df: pd.DataFrame,
        capacity: int,
        duration: int,
        start: int,
        end: int,
        qs: List[float],
        trace: bool = False,
) -> Dict[str, Any]:
    ring = SlidingWindowRingBuffer(capacity, duration, start, end)
    accepted = 0
    rejected = 0
    points: List[Dict[str, Any]] = []
    for ts, value in zip(df["timestamp"].tolist(), df["value"].tolist()):
        ts = int(ts)
        if trace and ring.initialized and ts >= ring.window_start + ring.duration:
            # quantiles as they stood when the active window closed
            points.append({"window_end": ring.window_start + ring.duration, **percentile_report(ring, qs)})
        try:
            ring.insert(int(value), ts)
        except ValueOutOfRangeError:
            rejected += 1
            continue
        accepted += 1
    if rejected:
        logger.info("Skipped %d out-of-range rows", rejected)
    out: Dict[str, Any] = {
        "rows": int(len(df)),
        "accepted": accepted,
        "retained": ring.total,
        "rejected": rejected,
        "current": ring.current,
        "window_start": ring.window_start,
        "percentiles": percentile_report(ring, qs),
    }
    if trace:
        out["trace"] = points
    return out


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a timestamp,value CSV through a sliding quantile buffer")
    parser.add_argument("path", type=str, help="CSV with 'timestamp' and 'value' columns")
    parser.add_argument("--capacity", type=int, default=6, help="number of retained windows")
    parser.add_argument("--duration", type=int, default=10, help="window length in timestamp units")
    parser.add_argument("--start", type=int, default=0, help="lowest accepted value")
    parser.add_argument("--end", type=int, default=60_000, help="highest accepted value")
    parser.add_argument("--qs", type=str, default="50,90,99", help="comma-separated percentiles")
    parser.add_argument("--trace", action="store_true", help="emit percentiles as windows advance")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args()
    setup_logging(args.log_level)
    qs = [float(x.strip()) for x in args.qs.split(",") if x.strip()]
    df = load_observations(args.path)
    result = replay(df, args.capacity, args.duration, args.start, args.end, qs, trace=args.trace)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
