"""
Logistic Regression Engine: binomial/logit maximum likelihood by IRLS.

Each iteration solves the weighted least-squares problem

    beta_new = argmin || sqrt(W) (z - X beta) ||^2
    p = expit(X beta),  W = p (1 - p),  z = X beta + (y - p) / W

until the relative change in deviance, |dev_new - dev| / (|dev_new| + 0.1),
falls below config.tol. This is a Newton step on the Bernoulli
log-likelihood, so the converged covariance is the inverse Fisher
information (X' W X)^-1.

Failure modes are explicit rather than silent:
  rank-deficient design or constant outcome   -> SingularDesignError
  complete or quasi-complete separation       -> SingularDesignError
                                                 (unless config.allow_separation)
  iteration cap reached                       -> ConvergenceError

Separation means some direction d has (2y - 1) * (X d) >= 0 on every row and
> 0 on at least one; the likelihood then keeps rising along d and no finite
MLE exists. It is decided by a small linear program, run only when the fit
has drifted past |eta| = MAX_ABS_ETA.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats as sp_stats
from scipy.optimize import linprog
from scipy.special import expit

from core.config import AnalysisConfig, resolve_config
from core.errors import ConvergenceError, SingularDesignError
from core.utils import logit, readonly
from data_prep.encoder import EncodedDataset

from .terms import NULL_TERMS, Term, TermSet

logger = logging.getLogger(__name__)

INTERCEPT = "(Intercept)"

# Fits with some |eta| beyond this get the exact separation check. Large |eta|
# alone is not separation: one extreme but well-predicted row can reach it.
MAX_ABS_ETA = 20.0
SEPARATION_TOL = 1e-6
WEIGHT_FLOOR = 1e-10
MAX_HALVINGS = 10


def design_matrix(dataset: EncodedDataset, terms: TermSet) -> np.ndarray:
    """Intercept column followed by one column per term."""
    n = len(dataset)
    cols = [np.ones(n)] + [np.asarray(t.values(dataset), dtype=float) for t in terms]
    return np.column_stack(cols)


def log_likelihood(y: np.ndarray, eta: np.ndarray) -> float:
    """Bernoulli log-likelihood on the logit scale: sum(y*eta - log(1 + exp(eta)))."""
    return float(np.sum(y * eta - np.logaddexp(0.0, eta)))


def _aliased_columns(X: np.ndarray, names: Sequence[str]) -> List[str]:
    """Columns that add nothing to the rank of the columns before them."""
    aliased = []
    rank = 0
    for j in range(X.shape[1]):
        r = np.linalg.matrix_rank(X[:, : j + 1])
        if r == rank:
            aliased.append(names[j])
        rank = r
    return aliased


def is_separated(X: np.ndarray, y: np.ndarray) -> bool:
    """
    True if the outcome is completely or quasi-completely separated by X.

    Maximises sum((2y - 1) * (X d)) subject to (2y - 1) * (X d) >= 0 on every
    row and -1 <= d <= 1 (columns scaled to unit max). The optimum is 0 at
    d = 0 unless a separating direction exists.
    """
    scale = np.max(np.abs(X), axis=0)
    scale[scale == 0.0] = 1.0
    signed = (2.0 * y - 1.0)[:, None] * (X / scale)
    res = linprog(
        -signed.sum(axis=0),
        A_ub=-signed,
        b_ub=np.zeros(len(y)),
        bounds=[(-1.0, 1.0)] * X.shape[1],
        method="highs",
    )
    if res.status != 0:
        raise SingularDesignError(f"Separation check failed: {res.message}")
    return bool(-res.fun > SEPARATION_TOL)


@dataclass(frozen=True, eq=False)
class FittedModel:
    """
    Result of one successful fit. Immutable: arrays are read-only copies.

    coefficients, covariance and names are ordered intercept first, then the
    Term Set order. linear_predictor holds X beta for the rows that were fit.
    """
    terms: TermSet
    coefficients: np.ndarray
    covariance: np.ndarray
    log_likelihood: float
    df_resid: int
    converged: bool
    n_obs: int
    n_iter: int
    linear_predictor: np.ndarray
    separated: bool = False
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "coefficients", readonly(self.coefficients))
        object.__setattr__(self, "covariance", readonly(self.covariance))
        object.__setattr__(self, "linear_predictor", readonly(self.linear_predictor))

    @property
    def names(self) -> Tuple[str, ...]:
        return (INTERCEPT,) + self.terms.names

    @property
    def n_params(self) -> int:
        return len(self.coefficients)

    @property
    def deviance(self) -> float:
        return -2.0 * self.log_likelihood

    @property
    def std_errors(self) -> np.ndarray:
        return np.sqrt(np.clip(np.diag(self.covariance), 0.0, None))

    @property
    def z_values(self) -> np.ndarray:
        return self.coefficients / self.std_errors

    @property
    def p_values(self) -> np.ndarray:
        return 2.0 * sp_stats.norm.sf(np.abs(self.z_values))

    @property
    def aic(self) -> float:
        return self.deviance + 2.0 * self.n_params

    @property
    def bic(self) -> float:
        return self.deviance + np.log(self.n_obs) * self.n_params

    @property
    def fitted_probabilities(self) -> np.ndarray:
        return expit(self.linear_predictor)

    def coefficient(self, name: str) -> float:
        try:
            return float(self.coefficients[self.names.index(name)])
        except ValueError:
            raise KeyError(f"No coefficient {name!r}; model has {list(self.names)}") from None

    def predict(self, dataset: EncodedDataset) -> np.ndarray:
        """Predicted promotion probabilities for every row of dataset."""
        return expit(design_matrix(dataset, self.terms) @ self.coefficients)

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame({
            "term": self.names,
            "coefficient": self.coefficients,
            "std_error": self.std_errors,
            "z_value": self.z_values,
            "p_value": self.p_values,
        })


def fit_logistic(
    dataset: EncodedDataset,
    terms: Union[TermSet, Iterable[Union[Term, str]]],
    *,
    config: Optional[AnalysisConfig] = None,
    start: Optional[Sequence[float]] = None,
    name: str = "",
) -> FittedModel:
    """
    Fit a binomial logistic regression of promoted on the given terms.

    Parameters
    ----------
    dataset : EncodedDataset
        Output of data_prep.prepare_dataset(); never modified.
    terms : TermSet or iterable of terms / column names
        Predictors; the intercept is always added. An empty set fits the null model.
    config : AnalysisConfig, optional
        tol, max_iter and allow_separation are used.
    start : sequence of float, optional
        Starting coefficients (intercept first). Defaults to the logit of the
        promotion rate for the intercept and 0 elsewhere.
    name : str
        Label carried on the fitted model (used in logs and comparisons).

    Returns
    -------
    FittedModel

    Raises
    ------
    SingularDesignError, ConvergenceError
    """
    cfg = resolve_config(config)
    if not isinstance(terms, TermSet):
        terms = TermSet(tuple(terms))
    label = name or repr(terms)

    X = design_matrix(dataset, terms)
    y = dataset.outcome
    n, k = X.shape
    names = (INTERCEPT,) + terms.names

    if n <= k:
        raise SingularDesignError(
            f"{label}: {n} observations cannot identify {k} coefficients."
        )
    if np.linalg.matrix_rank(X) < k:
        raise SingularDesignError(
            f"{label}: design matrix is rank deficient; aliased columns "
            f"{_aliased_columns(X, names)}."
        )
    ybar = float(y.mean())
    if ybar <= 0.0 or ybar >= 1.0:
        raise SingularDesignError(f"{label}: outcome has no variation (mean {ybar}).")

    if start is None:
        beta = np.zeros(k)
        beta[0] = logit(ybar)
    else:
        beta = np.asarray(start, dtype=float)
        if beta.shape != (k,):
            raise ValueError(f"start must have {k} values, got shape {beta.shape}")

    eta = X @ beta
    dev = -2.0 * log_likelihood(y, eta)
    converged = False
    n_iter = 0

    for n_iter in range(1, cfg.max_iter + 1):
        p = expit(eta)
        w = np.maximum(p * (1.0 - p), WEIGHT_FLOOR)
        z = eta + (y - p) / w
        sw = np.sqrt(w)
        beta_new = np.linalg.lstsq(X * sw[:, None], z * sw, rcond=None)[0]
        eta_new = X @ beta_new
        dev_new = -2.0 * log_likelihood(y, eta_new)

        # step halving if the full Newton step overshoots
        halvings = 0
        while dev_new > dev + cfg.tol * (abs(dev) + 0.1) and halvings < MAX_HALVINGS:
            beta_new = 0.5 * (beta + beta_new)
            eta_new = X @ beta_new
            dev_new = -2.0 * log_likelihood(y, eta_new)
            halvings += 1

        change = abs(dev_new - dev) / (abs(dev_new) + 0.1)
        logger.debug("%s: iter %d deviance=%.10f change=%.3e", label, n_iter, dev_new, change)
        beta, eta, dev = beta_new, eta_new, dev_new
        if change < cfg.tol:
            converged = True
            break

    max_eta = float(np.max(np.abs(eta)))
    separated = max_eta > MAX_ABS_ETA and is_separated(X, y)
    if separated:
        if not cfg.allow_separation:
            raise SingularDesignError(
                f"{label}: the outcome is separated by the predictors "
                f"(max |eta| = {max_eta:.1f}); the MLE does not exist."
            )
        logger.warning(
            "%s: outcome is separated; coefficients diverge and standard errors are unreliable.",
            label,
        )

    if not converged:
        raise ConvergenceError(
            f"{label}: IRLS did not converge in {cfg.max_iter} iterations "
            f"(last deviance {dev:.6f}).",
            n_iter=n_iter,
            deviance=dev,
            coefficients=beta.copy(),
        )

    p = expit(eta)
    w = p * (1.0 - p)
    information = X.T @ (X * w[:, None])
    try:
        covariance = np.linalg.pinv(information) if separated else np.linalg.inv(information)
    except np.linalg.LinAlgError as exc:
        raise SingularDesignError(f"{label}: Fisher information is singular ({exc}).") from exc

    model = FittedModel(
        terms=terms,
        coefficients=beta,
        covariance=covariance,
        log_likelihood=-0.5 * dev,
        df_resid=n - k,
        converged=True,
        n_obs=n,
        n_iter=n_iter,
        linear_predictor=eta,
        separated=separated,
        name=name,
    )
    logger.info(
        "Fitted %s: n=%d, k=%d, deviance=%.4f, iterations=%d",
        label, n, k, model.deviance, n_iter,
    )
    return model


def fit_null(
    dataset: EncodedDataset,
    *,
    config: Optional[AnalysisConfig] = None,
) -> FittedModel:
    """Intercept-only model, the reference for overall model significance."""
    return fit_logistic(dataset, NULL_TERMS, config=config, name="null")
