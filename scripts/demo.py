from __future__ import annotations

import json
from typing import Any, Dict

from sliding_quantiles.metrics import Histogram, SlidingWindowRingBuffer
from scripts.common import percentile_report

"""
Usage demonstration for the histogram and the sliding-window ring buffer.

Feeds 0..=101 into a histogram over [0, 1000] and (i, 2i) for i in 0..11 into
a 3-window, 10-unit ring buffer, then prints p50/p99 of each as JSON.
"""


def run_demo() -> Dict[str, Any]:
    hist = Histogram(0, 1000)
    for i in range(102):
        hist.add_value(i)

    ring = SlidingWindowRingBuffer(3, 10, 0, 1000)
    for i in range(11):
        ring.insert(i, i * 2)

    return {
        "histogram": {"count": hist.total, **percentile_report(hist, [50, 99])},
        "ring_buffer": {
            "count": ring.total,
            "current": ring.current,
            "window_start": ring.window_start,
            **percentile_report(ring, [50, 99]),
        },
    }


def main() -> None:
    print(json.dumps(run_demo(), indent=2))


if __name__ == "__main__":
    main()
