"""
Box-Tidwell check for linearity of continuous predictors in the log-odds.

For each predictor x the model's Term Set is augmented with x·ln(x) and the
augmented model is refit once with all transform terms together. A transform
coefficient that differs significantly from zero (Wald chi-square, 1 df)
means the log-odds are not linear in x on the scale it enters the model.

ln(x) requires x > 0: predictors are taken on the model scale (the ordinal
enters as performance_score = rank + 1), and any value <= 0 is a DomainError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from core.config import AnalysisConfig, resolve_config
from core.errors import DomainError
from data_prep.encoder import EncodedDataset
from models.logistic import FittedModel, fit_logistic
from models.terms import SimpleTerm

logger = logging.getLogger(__name__)

TRANSFORM_SUFFIX = "_xlnx"


@dataclass(frozen=True)
class LinearityResult:
    predictor: str
    transform_coefficient: float
    statistic: float
    p_value: float
    linear: bool


def continuous_terms(model: FittedModel, dataset: EncodedDataset) -> List[SimpleTerm]:
    """Simple terms of the model that take more than two distinct values."""
    return [
        t for t in model.terms.simple_terms
        if len(np.unique(dataset.column(t.column))) > 2
    ]


def split_by_domain(
    terms: Sequence[SimpleTerm], dataset: EncodedDataset
) -> Tuple[List[SimpleTerm], List[SimpleTerm]]:
    """(terms with strictly positive values, terms with any value <= 0)."""
    testable, excluded = [], []
    for t in terms:
        (testable if np.all(dataset.column(t.column) > 0) else excluded).append(t)
    return testable, excluded


def box_tidwell_test(
    model: FittedModel,
    dataset: EncodedDataset,
    predictors: Optional[Sequence[Union[SimpleTerm, str]]] = None,
    *,
    config: Optional[AnalysisConfig] = None,
) -> List[LinearityResult]:
    """
    Test linearity in the logit for each predictor.

    Parameters
    ----------
    model : FittedModel
        The fitted model whose terms are augmented.
    dataset : EncodedDataset
        The dataset the model was fit on.
    predictors : sequence of SimpleTerm or column name, optional
        Defaults to the model's non-binary simple terms.
    config : AnalysisConfig, optional
        alpha sets the `linear` flag; fit settings are passed to the engine.

    Returns
    -------
    One LinearityResult per predictor, in input order.

    Raises
    ------
    DomainError
        Any predictor value is zero or negative.
    """
    cfg = resolve_config(config)
    if model.n_obs != len(dataset):
        raise ValueError(
            f"Model was fit on {model.n_obs} rows but dataset has {len(dataset)}."
        )

    if predictors is None:
        terms = continuous_terms(model, dataset)
    else:
        terms = [p if isinstance(p, SimpleTerm) else SimpleTerm(p) for p in predictors]
    if not terms:
        return []
    if len({t.name for t in terms}) != len(terms):
        raise ValueError(f"Duplicate predictors: {[t.name for t in terms]}")

    transforms = {}
    for term in terms:
        x = dataset.column(term.column)
        n_bad = int(np.sum(~(x > 0)))
        if n_bad:
            raise DomainError(
                f"Box-Tidwell needs strictly positive {term.name}; "
                f"{n_bad} values are zero, negative or missing."
            )
        transforms[term.name + TRANSFORM_SUFFIX] = x * np.log(x)

    augmented_data = dataset.with_columns(**transforms)
    augmented_terms = model.terms.extend(SimpleTerm(col) for col in transforms)
    augmented = fit_logistic(
        augmented_data,
        augmented_terms,
        config=cfg,
        name=f"{model.name or 'model'} + x*ln(x)",
    )

    results = []
    for term, col in zip(terms, transforms):
        j = augmented.names.index(col)
        coef = float(augmented.coefficients[j])
        z = coef / float(augmented.std_errors[j])
        stat = z * z
        p = float(sp_stats.chi2.sf(stat, 1))
        linear = p >= cfg.alpha
        if not linear:
            logger.warning(
                "Box-Tidwell: log-odds not linear in %s (chi2=%.3f, p=%.4f)", term.name, stat, p
            )
        results.append(
            LinearityResult(
                predictor=term.name,
                transform_coefficient=coef,
                statistic=float(stat),
                p_value=p,
                linear=linear,
            )
        )
    return results


def linearity_frame(results: Sequence[LinearityResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "predictor": r.predictor,
                "transform_coefficient": r.transform_coefficient,
                "statistic": r.statistic,
                "p_value": r.p_value,
                "linear": r.linear,
            }
            for r in results
        ],
        columns=["predictor", "transform_coefficient", "statistic", "p_value", "linear"],
    )
