from pathlib import Path

import pandas as pd
import pytest

from scripts.bench_load import MAX_LATENCY_MS, summarize
from scripts.common import load_observations
from scripts.demo import run_demo
from scripts.replay_csv import replay
from sliding_quantiles.metrics import SlidingWindowRingBuffer


def test_demo_output() -> None:
    out = run_demo()
    assert out["histogram"] == {"count": 102, "p50": 50, "p99": 100}
    ring = out["ring_buffer"]
    assert ring["count"] == 11
    assert ring["current"] == 2
    assert ring["window_start"] == 20
    assert ring["p50"] == 5
    assert ring["p99"] == 10


def _write_csv(tmp_path: Path, rows) -> Path:
    path = tmp_path / "obs.csv"
    pd.DataFrame(rows, columns=["timestamp", "value"]).to_csv(path, index=False)
    return path


def test_load_observations_sorts_by_timestamp(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, [(20, 3), (0, 1), (10, 2)])
    df = load_observations(str(path))
    assert df["timestamp"].tolist() == [0, 10, 20]
    assert df["value"].tolist() == [1, 2, 3]


def test_load_observations_requires_columns(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("ts,v\n1,2\n")
    with pytest.raises(ValueError):
        load_observations(str(path))
    with pytest.raises(FileNotFoundError):
        load_observations(str(tmp_path / "missing.csv"))


def test_replay_matches_direct_inserts(tmp_path: Path) -> None:
    rows = [(ts, (ts * 7) % 90) for ts in range(0, 60)] + [(59, 1000)]
    df = load_observations(str(_write_csv(tmp_path, rows)))
    result = replay(df, capacity=3, duration=10, start=0, end=100, qs=[50, 99], trace=True)

    ring = SlidingWindowRingBuffer(3, 10, 0, 100)
    for ts, value in rows[:-1]:
        ring.insert(value, ts)
    assert result["rows"] == 61
    assert result["accepted"] == 60
    assert result["rejected"] == 1
    assert result["retained"] == ring.total
    assert result["percentiles"] == {"p50": ring.estimate_quantile(0.5), "p99": ring.estimate_quantile(0.99)}
    assert [p["window_end"] for p in result["trace"]] == [10, 20, 30, 40, 50]


def test_bench_summary_buckets_to_milliseconds() -> None:
    out = summarize([1.2, 2.0, 3.7, 20_000.0], duration=2.0)
    assert out["count"] == 4.0
    assert out["p50_ms"] == 2.0
    assert out["p99_ms"] == float(MAX_LATENCY_MS)
    assert out["max_ms"] == float(MAX_LATENCY_MS)
    assert out["rps"] == 2.0
    assert summarize([], duration=1.0)["count"] == 0.0
