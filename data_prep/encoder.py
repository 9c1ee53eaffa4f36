"""
Encode validated promotion rows into the analysis dataset.

Derived columns:
  performance_rank   Poor=0, Fair=1, Good=2, Very Good=3
  performance_score  rank + 1, the linear treatment of the ordinal predictor
  stepFairPlus       1 if performance is at least Fair
  stepGoodPlus       1 if performance is at least Good
  stepVGoodPlus      1 if performance is Very Good

All three step indicators are thresholds on the same rank column, so
stepVGoodPlus => stepGoodPlus => stepFairPlus for every row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from core.config import AnalysisConfig
from core.errors import EmptyDatasetError
from core.schema import (
    OUTCOME_COLUMN,
    PERFORMANCE_LEVELS,
    PERFORMANCE_RANKS,
    RANK_COLUMN,
    REQUIRED_COLUMNS,
    SCORE_COLUMN,
    STEP_THRESHOLDS,
    canonical_performance_label,
    promoted_code,
)
from core.utils import RawTable, as_frame, require_columns

from .validators import blank_to_na, validate_observations

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EncodedDataset:
    """
    Complete, encoded observations ready for diagnostics and model fits.

    The frame is private to the dataset: column() hands out read-only arrays
    and with_columns() returns a new dataset, so one instance can be shared
    by concurrent fits.
    """
    frame: pd.DataFrame
    n_raw: int
    n_excluded: int

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def columns(self) -> list:
        return list(self.frame.columns)

    @property
    def outcome(self) -> np.ndarray:
        return self.column(OUTCOME_COLUMN)

    def column(self, name: str) -> np.ndarray:
        if name not in self.frame.columns:
            raise KeyError(f"Unknown column {name!r}; available: {self.columns}")
        arr = self.frame[name].to_numpy(dtype=float, copy=True)
        arr.setflags(write=False)
        return arr

    def with_columns(self, **columns: Iterable[float]) -> "EncodedDataset":
        """Return a new dataset with extra (or replaced) numeric columns."""
        frame = self.frame.copy()
        for name, values in columns.items():
            values = np.asarray(values, dtype=float)
            if values.shape != (len(frame),):
                raise ValueError(
                    f"Column {name!r} has shape {values.shape}, expected ({len(frame)},)"
                )
            frame[name] = values
        return EncodedDataset(frame=frame, n_raw=self.n_raw, n_excluded=self.n_excluded)

    def summary(self) -> pd.DataFrame:
        """Counts and promotion rate per performance level."""
        grp = self.frame.groupby("performance", observed=False)[OUTCOME_COLUMN]
        out = pd.DataFrame({"n": grp.size(), "promoted_rate": grp.mean()})
        return out.reindex(list(PERFORMANCE_LEVELS))


def encode_performance(labels: pd.Series) -> pd.Series:
    """Map performance labels to ordinal ranks {0,1,2,3}; unknown labels become NaN."""
    canon = labels.map(canonical_performance_label)
    return canon.map(PERFORMANCE_RANKS).astype(float)


def step_indicators(rank: pd.Series) -> pd.DataFrame:
    """Staircase indicators from ordinal ranks (cumulative 'at least' thresholds)."""
    rank = rank.astype(int)
    return pd.DataFrame(
        {name: (rank >= threshold).astype(int) for name, threshold in STEP_THRESHOLDS.items()},
        index=rank.index,
    )


def prepare_dataset(
    raw: RawTable,
    *,
    config: Optional[AnalysisConfig] = None,
) -> EncodedDataset:
    """
    Validate and encode raw rows.

    Parameters
    ----------
    raw : pd.DataFrame or iterable of mappings
        Must contain sales, customer_rate, performance and promoted.
        Additional columns are ignored.
    config : AnalysisConfig, optional
        Only the customer_rate bounds are used here (for warnings).

    Returns
    -------
    EncodedDataset with incomplete rows dropped.

    Raises
    ------
    ValidationError
        Missing columns or invalid values (see validate_observations).
    EmptyDatasetError
        No complete rows remain.
    """
    frame = as_frame(raw)
    result = validate_observations(frame, config=config)
    result.raise_if_invalid()

    require_columns(frame, REQUIRED_COLUMNS)
    frame = blank_to_na(frame[list(REQUIRED_COLUMNS)])
    n_raw = len(frame)

    complete = frame.dropna(how="any")
    n_excluded = n_raw - len(complete)
    if len(complete) == 0:
        raise EmptyDatasetError(
            f"All {n_raw} rows were excluded for missing fields; nothing to analyse."
        )

    rank = encode_performance(complete["performance"]).astype(int)
    out = pd.DataFrame(
        {
            "sales": pd.to_numeric(complete["sales"]).astype(float),
            "customer_rate": pd.to_numeric(complete["customer_rate"]).astype(float),
            "performance": pd.Categorical(
                [PERFORMANCE_LEVELS[r] for r in rank],
                categories=list(PERFORMANCE_LEVELS),
                ordered=True,
            ),
            RANK_COLUMN: rank,
            SCORE_COLUMN: rank + 1,
            OUTCOME_COLUMN: complete[OUTCOME_COLUMN].map(promoted_code).astype(int),
        },
        index=complete.index,
    )
    out = pd.concat([out, step_indicators(rank)], axis=1).reset_index(drop=True)

    logger.info(
        "Prepared dataset: %d rows kept, %d excluded for missing fields",
        len(out), n_excluded,
    )
    return EncodedDataset(frame=out, n_raw=n_raw, n_excluded=n_excluded)
