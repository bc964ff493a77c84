from __future__ import annotations

import argparse
import json
import random
import statistics
import threading
import time
from queue import Queue, Empty
from typing import Any, Dict, List

import requests

from sliding_quantiles.metrics import Histogram

"""
Load generator for the /observe endpoint.

Posts random observations from [--min, --max] and reports client-side
request latency percentiles. Latencies are bucketed to whole milliseconds in
a Histogram (capped at MAX_LATENCY_MS) so the reported tails are exact
nearest-rank values over those buckets.
"""

MAX_LATENCY_MS = 10_000


def worker(url: str, lo: int, hi: int, out_q: Queue, stop_at: float, seed: int) -> None:
    session = requests.Session()
    rng = random.Random(seed)
    while time.time() < stop_at:
        payload = {"value": rng.randint(lo, hi)}
        t0 = time.perf_counter_ns()
        try:
            r = session.post(url, json=payload, timeout=10)
            r.raise_for_status()
        except requests.RequestException:
            continue
        out_q.put((time.perf_counter_ns() - t0) / 1_000_000.0)


def summarize(latencies_ms: List[float], duration: float) -> Dict[str, float]:
    if not latencies_ms:
        return {"count": 0.0, "p50_ms": 0.0, "p95_ms": 0.0, "p99_ms": 0.0, "rps": 0.0}
    hist = Histogram(0, MAX_LATENCY_MS)
    for ms in latencies_ms:
        hist.add_value(min(max(int(round(ms)), 0), MAX_LATENCY_MS))
    p = hist.percentiles([50, 95, 99])
    return {
        "count": float(len(latencies_ms)),
        "p50_ms": float(p[50]),
        "p95_ms": float(p[95]),
        "p99_ms": float(p[99]),
        "max_ms": float(hist.max_value()),
        "mean_ms": statistics.fmean(latencies_ms),
        "rps": len(latencies_ms) / duration,
    }


def run_load(host: str, port: int, concurrency: int, duration: float, lo: int, hi: int) -> Dict[str, float]:
    url = f"http://{host}:{port}/observe"
    stop_at = time.time() + duration
    out_q: Queue = Queue()
    threads: List[threading.Thread] = []
    for i in range(concurrency):
        th = threading.Thread(target=worker, args=(url, lo, hi, out_q, stop_at, i), daemon=True)
        th.start()
        threads.append(th)
    latencies: List[float] = []
    while any(th.is_alive() for th in threads) or not out_q.empty():
        try:
            latencies.append(float(out_q.get(timeout=0.2)))
        except Empty:
            pass
        if time.time() >= stop_at and all(not th.is_alive() for th in threads):
            break
    for th in threads:
        th.join(timeout=0.5)
    return summarize(latencies, duration)


def fetch_quantiles(host: str, port: int) -> Dict[str, Any]:
    r = requests.get(f"http://{host}:{port}/quantiles", timeout=10)
    if r.status_code == 404:
        return {}
    r.raise_for_status()
    return r.json()


def main() -> None:
    parser = argparse.ArgumentParser(description="Simple /observe load tester")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--concurrency", type=int, default=8)
    parser.add_argument("--duration", type=float, default=10.0, help="seconds")
    parser.add_argument("--min", dest="lo", type=int, default=0, help="lowest value to send")
    parser.add_argument("--max", dest="hi", type=int, default=1000, help="highest value to send")
    args = parser.parse_args()
    if args.hi < args.lo:
        raise SystemExit("--max must be >= --min")
    result = run_load(args.host, args.port, args.concurrency, args.duration, args.lo, args.hi)
    print(json.dumps({"client": result, "server": fetch_quantiles(args.host, args.port)}, indent=2))


if __name__ == "__main__":
    main()
