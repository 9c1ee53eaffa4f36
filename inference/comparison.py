"""
Nested model comparison by likelihood-ratio test.

For a reduced model whose terms are a subset of the full model's:

    chi2 = deviance_reduced - deviance_full     (deviance = -2 log L)
    df   = |full.terms| - |reduced.terms|
    p    = P(Chi2_df >= chi2)

Nesting is checked on the Term Sets themselves, and both models must have been
fit on the same rows. Comparing against the intercept-only model is the same
operation with an empty reduced Term Set.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Sequence

import pandas as pd
from scipy import stats as sp_stats

from core.errors import NotNestedError
from models.logistic import FittedModel

logger = logging.getLogger(__name__)

# Deviance differences this small are rounding noise around zero.
_NEGATIVE_TOLERANCE = 1e-6


@dataclass(frozen=True)
class ComparisonResult:
    reduced: str
    full: str
    statistic: float
    df: int
    p_value: float
    deviance_reduced: float
    deviance_full: float


def _label(model: FittedModel) -> str:
    return model.name or repr(model.terms)


def likelihood_ratio_test(reduced: FittedModel, full: FittedModel) -> ComparisonResult:
    """
    Likelihood-ratio chi-square test of reduced against full.

    Raises
    ------
    NotNestedError
        reduced's terms are not all in full, or the models were fit on
        different numbers of observations.
    """
    if not reduced.terms.is_nested_in(full.terms):
        extra = [t.name for t in reduced.terms if t.key not in full.terms.closure()]
        raise NotNestedError(
            f"{_label(reduced)} is not nested in {_label(full)}: terms {extra} are missing "
            f"from the full model."
        )
    if reduced.n_obs != full.n_obs:
        raise NotNestedError(
            f"Models were fit on different data ({reduced.n_obs} vs {full.n_obs} rows)."
        )

    df = len(full.terms) - len(reduced.terms)
    stat = reduced.deviance - full.deviance
    if stat < 0.0:
        if stat < -_NEGATIVE_TOLERANCE * (abs(full.deviance) + 1.0):
            logger.warning(
                "Full model %s has lower log-likelihood than %s (diff %.3g); "
                "check convergence.", _label(full), _label(reduced), stat,
            )
        stat = 0.0

    if df == 0:
        stat, p_value = 0.0, 1.0
    else:
        p_value = float(sp_stats.chi2.sf(stat, df))

    result = ComparisonResult(
        reduced=_label(reduced),
        full=_label(full),
        statistic=float(stat),
        df=int(df),
        p_value=p_value,
        deviance_reduced=float(reduced.deviance),
        deviance_full=float(full.deviance),
    )
    logger.info(
        "LRT %s vs %s: chi2=%.4f, df=%d, p=%.4g",
        result.reduced, result.full, result.statistic, result.df, result.p_value,
    )
    return result


def compare_sequence(models: Sequence[FittedModel]) -> List[ComparisonResult]:
    """Analysis of deviance for a chain of nested models, smallest first."""
    if len(models) < 2:
        raise ValueError("Need at least two models to compare.")
    return [likelihood_ratio_test(a, b) for a, b in zip(models[:-1], models[1:])]


def comparison_frame(results: Sequence[ComparisonResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [asdict(r) for r in results],
        columns=[
            "reduced", "full", "statistic", "df", "p_value",
            "deviance_reduced", "deviance_full",
        ],
    )
