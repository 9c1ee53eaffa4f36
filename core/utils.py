from __future__ import annotations

from typing import Iterable, List, Mapping, Union

import numpy as np
import pandas as pd

RawTable = Union[pd.DataFrame, Iterable[Mapping]]


def missing_columns(df: pd.DataFrame, cols: Iterable[str]) -> List[str]:
    return [c for c in cols if c not in df.columns]


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = missing_columns(df, cols)
    if missing:
        raise KeyError(f"Missing required columns: {missing}")


def as_frame(raw: RawTable) -> pd.DataFrame:
    """Accept a DataFrame or any iterable of row mappings; always returns a copy."""
    if isinstance(raw, pd.DataFrame):
        return raw.copy()
    return pd.DataFrame.from_records(list(raw))


def logit(p: float, eps: float = 1e-6) -> float:
    """log(p / (1 - p)) with p clipped away from 0 and 1."""
    p = float(np.clip(p, eps, 1.0 - eps))
    return float(np.log(p / (1.0 - p)))


def readonly(arr) -> np.ndarray:
    """Return a float copy of arr that cannot be written to."""
    out = np.array(arr, dtype=float, copy=True)
    out.setflags(write=False)
    return out
