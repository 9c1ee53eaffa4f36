"""
VIF (Variance Inflation Factor) analysis for multicollinearity among predictors.

VIF_i = 1 / (1 - R²_i), where R²_i comes from regressing predictor i on all
the other predictors in the set (ordinary least squares with intercept).

Conventional reading:
- VIF < 5: low multicollinearity
- 5 ≤ VIF < 10: moderate (suspect)
- VIF ≥ 10: high

Advisory only: nothing downstream blocks on a high VIF.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from core.errors import DomainError
from data_prep.encoder import EncodedDataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VIFResult:
    predictor: str
    vif: float
    r_squared: float
    suspect: bool


def _r_squared(target: np.ndarray, others: np.ndarray) -> float:
    lr = LinearRegression()
    lr.fit(others, target)
    return float(lr.score(others, target))


def compute_vif(
    dataset: EncodedDataset,
    predictors: Sequence[str],
    *,
    threshold: float = 5.0,
) -> List[VIFResult]:
    """
    Compute the VIF of every predictor against the rest of the set.

    Parameters
    ----------
    dataset : EncodedDataset
    predictors : sequence of str
        Numeric columns (the linear-treated ordinal included, e.g. performance_score).
    threshold : float
        VIF at or above which a predictor is flagged as suspect.

    Returns
    -------
    One VIFResult per predictor, in input order.

    Raises
    ------
    DomainError
        A predictor has zero variance, so its R² is undefined.
    """
    names = list(predictors)
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate predictors: {names}")
    if not names:
        return []

    X = np.column_stack([dataset.column(p) for p in names])
    constant = [p for p, sd in zip(names, X.std(axis=0)) if sd == 0.0]
    if constant:
        raise DomainError(f"Cannot compute VIF for constant predictors {constant}.")

    results = []
    for i, name in enumerate(names):
        if len(names) == 1:
            r2 = 0.0
        else:
            r2 = _r_squared(X[:, i], np.delete(X, i, axis=1))
        r2 = min(max(r2, 0.0), 1.0)
        vif = np.inf if r2 >= 1.0 else 1.0 / (1.0 - r2)
        suspect = bool(vif >= threshold)
        if suspect:
            logger.warning("VIF for %s is %.2f (threshold %.1f)", name, vif, threshold)
        results.append(VIFResult(predictor=name, vif=float(vif), r_squared=r2, suspect=suspect))
    return results


def vif_frame(results: Sequence[VIFResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"predictor": r.predictor, "vif": r.vif, "r_squared": r.r_squared, "suspect": r.suspect}
            for r in results
        ],
        columns=["predictor", "vif", "r_squared", "suspect"],
    )
