from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List
import pandas as pd

from sliding_quantiles.errors import NoDataError

REQUIRED_COLUMNS = ("timestamp", "value")


def load_observations(path: str | None = None) -> pd.DataFrame:
    """Load a timestamp,value CSV and sort it by timestamp (stable)."""
    if path is None:
        path = "data/observations.csv"
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Observations not found at {csv_path}.")
    df = pd.read_csv(csv_path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV must contain {list(REQUIRED_COLUMNS)} columns, missing {missing}.")
    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    df = df.astype({"timestamp": "int64", "value": "int64"})
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def percentile_report(estimator, qs: Iterable[float]) -> Dict[str, int | None]:
    """Map p-labels to values; None for every label when nothing is recorded."""
    qs_list: List[float] = list(qs)
    try:
        values = estimator.percentiles(qs_list)
    except NoDataError:
        return {f"p{q:g}": None for q in qs_list}
    return {f"p{q:g}": int(v) for q, v in values.items()}
