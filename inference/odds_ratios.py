"""
Odds-ratio transformation of fitted logistic coefficients.

  odds ratio  = exp(b)
  Wald bounds = exp(b ± z * se),  z = Φ⁻¹((1 + confidence) / 2)

Pure functions of a FittedModel; the model is never modified.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from models.logistic import INTERCEPT, FittedModel


@dataclass(frozen=True)
class OddsRatio:
    term: str
    coefficient: float
    std_error: float
    odds_ratio: float
    ci_lower: float
    ci_upper: float


def _critical_value(confidence: float) -> float:
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    return float(sp_stats.norm.ppf(0.5 + confidence / 2.0))


def _rows(model: FittedModel, confidence: float, include_intercept: bool) -> List[OddsRatio]:
    z = _critical_value(confidence)
    b = model.coefficients
    se = model.std_errors
    rows = []
    for j, name in enumerate(model.names):
        if name == INTERCEPT and not include_intercept:
            continue
        rows.append(
            OddsRatio(
                term=name,
                coefficient=float(b[j]),
                std_error=float(se[j]),
                odds_ratio=float(np.exp(b[j])),
                ci_lower=float(np.exp(b[j] - z * se[j])),
                ci_upper=float(np.exp(b[j] + z * se[j])),
            )
        )
    return rows


def odds_ratios(model: FittedModel, confidence: float = 0.95) -> List[OddsRatio]:
    """Odds ratio and Wald interval for every non-intercept coefficient, in term order."""
    return _rows(model, confidence, include_intercept=False)


def coefficient_table(model: FittedModel, confidence: float = 0.95) -> pd.DataFrame:
    """
    Reporting table: term, coefficient, std_error, odds_ratio, ci_lower, ci_upper.
    The intercept row is included; its odds ratio is the baseline odds.
    """
    rows = _rows(model, confidence, include_intercept=True)
    return pd.DataFrame(
        [asdict(r) for r in rows],
        columns=["term", "coefficient", "std_error", "odds_ratio", "ci_lower", "ci_upper"],
    )
