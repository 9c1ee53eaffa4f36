"""
Analysis runner: orchestrates the full promotion analysis over one dataset.

Flow:
  raw rows → prepare_dataset → VIF per predictor set
           → fit every model family (optionally on a thread pool)
           → Box-Tidwell on the linear-ordinal family
           → odds ratios per fitted model
           → likelihood-ratio tests for each (reduced, full) pair

Dataset preparation errors are fatal and propagate. Every later step is an
independent operation: an AnalysisError is recorded on that operation
(status "failed") and the rest of the pipeline carries on. Comparisons whose
models failed to fit are recorded as "skipped", as is the linearity check
for any predictor with values <= 0 (the others are still tested).

Model families and comparisons are supplied by the caller; the defaults below
are the families of the promotion question, nothing is searched.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from core.config import AnalysisConfig, resolve_config
from core.errors import AnalysisError
from core.schema import SCORE_COLUMN, STEP_THRESHOLDS
from core.utils import RawTable
from data_prep.encoder import EncodedDataset, prepare_dataset
from diagnostics.collinearity import compute_vif, vif_frame
from diagnostics.linearity import (
    box_tidwell_test,
    continuous_terms,
    linearity_frame,
    split_by_domain,
)
from inference.comparison import comparison_frame, likelihood_ratio_test
from inference.odds_ratios import coefficient_table
from models.interactions import build_interaction_terms
from models.logistic import FittedModel, fit_logistic
from models.terms import (
    COVARIATE_TERMS,
    NULL_TERMS,
    PERFORMANCE_SCORE,
    STEP_TERMS,
    TermSet,
)

logger = logging.getLogger(__name__)

OK, FAILED, SKIPPED = "ok", "failed", "skipped"


def default_model_families() -> Dict[str, TermSet]:
    covariates = TermSet(COVARIATE_TERMS)
    stepwise = covariates.extend(STEP_TERMS)
    linear = covariates.extend([PERFORMANCE_SCORE])
    return {
        "null": NULL_TERMS,
        "covariates": covariates,
        "stepwise": stepwise,
        "linear": linear,
        "stepwise_interaction": build_interaction_terms(stepwise, STEP_TERMS, COVARIATE_TERMS),
        "linear_interaction": build_interaction_terms(linear, [PERFORMANCE_SCORE], COVARIATE_TERMS),
    }


def default_comparisons() -> List[Tuple[str, str]]:
    return [
        ("null", "covariates"),
        ("covariates", "stepwise"),
        ("covariates", "linear"),
        ("stepwise", "stepwise_interaction"),
        ("linear", "linear_interaction"),
    ]


def default_vif_sets() -> Dict[str, List[str]]:
    covariates = [t.column for t in COVARIATE_TERMS]
    return {
        "linear": covariates + [SCORE_COLUMN],
        "stepwise": covariates + list(STEP_THRESHOLDS),
    }


@dataclass(frozen=True)
class OperationResult:
    name: str
    kind: str  # "vif", "fit", "linearity", "odds_ratios" or "comparison"
    status: str
    value: Any = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK


@dataclass
class AnalysisReport:
    """Everything the reporting layer needs, with per-operation status."""
    dataset: EncodedDataset
    operations: List[OperationResult] = field(default_factory=list)

    @property
    def n_raw(self) -> int:
        return self.dataset.n_raw

    @property
    def n_excluded(self) -> int:
        return self.dataset.n_excluded

    @property
    def n_used(self) -> int:
        return len(self.dataset)

    def get(self, kind: str, name: str) -> OperationResult:
        for op in self.operations:
            if op.kind == kind and op.name == name:
                return op
        raise KeyError(f"No {kind} operation named {name!r}")

    def model(self, name: str) -> Optional[FittedModel]:
        """Fitted model for a family, or None if that fit failed."""
        return self.get("fit", name).value

    def comparison(self, reduced: str, full: str):
        return self.get("comparison", f"{reduced} vs {full}").value

    def failures(self) -> List[OperationResult]:
        return [op for op in self.operations if op.status == FAILED]

    def status_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"kind": op.kind, "name": op.name, "status": op.status, "error": op.error}
             for op in self.operations],
            columns=["kind", "name", "status", "error"],
        )

    def comparison_frame(self) -> pd.DataFrame:
        return comparison_frame(
            [op.value for op in self.operations if op.kind == "comparison" and op.ok]
        )

    def vif_frame(self, name: str) -> pd.DataFrame:
        return vif_frame(self.get("vif", name).value or [])

    def linearity_frame(self, name: str) -> pd.DataFrame:
        return linearity_frame(self.get("linearity", name).value or [])

    def coefficient_table(self, name: str) -> Optional[pd.DataFrame]:
        return self.get("odds_ratios", name).value


def _run(kind: str, name: str, fn: Callable[[], Any]) -> OperationResult:
    try:
        value = fn()
    except AnalysisError as exc:
        logger.warning("%s %s failed: %s: %s", kind, name, type(exc).__name__, exc)
        return OperationResult(name=name, kind=kind, status=FAILED, error=f"{type(exc).__name__}: {exc}")
    return OperationResult(name=name, kind=kind, status=OK, value=value)


def _fit_families(
    dataset: EncodedDataset,
    families: Dict[str, TermSet],
    cfg: AnalysisConfig,
) -> Dict[str, OperationResult]:
    def fit_one(name: str, terms: TermSet) -> OperationResult:
        return _run("fit", name, lambda: fit_logistic(dataset, terms, config=cfg, name=name))

    if cfg.n_workers > 1 and len(families) > 1:
        # the dataset is shared read-only; each fit owns its own arrays
        with ThreadPoolExecutor(max_workers=cfg.n_workers) as executor:
            futures = {name: executor.submit(fit_one, name, terms) for name, terms in families.items()}
            return {name: fut.result() for name, fut in futures.items()}
    return {name: fit_one(name, terms) for name, terms in families.items()}


def run_analysis(
    raw: RawTable,
    *,
    config: Optional[AnalysisConfig] = None,
    families: Optional[Dict[str, TermSet]] = None,
    comparisons: Optional[Sequence[Tuple[str, str]]] = None,
    vif_sets: Optional[Dict[str, Sequence[str]]] = None,
    linearity_family: Optional[str] = "linear",
) -> AnalysisReport:
    """
    Run the promotion analysis end to end.

    Parameters
    ----------
    raw : pd.DataFrame or iterable of mappings
        Source rows (sales, customer_rate, performance, promoted; extra columns ignored).
    config : AnalysisConfig, optional
    families : dict name -> TermSet, optional
        Model families to fit. Defaults to default_model_families().
    comparisons : sequence of (reduced, full) family names, optional
        Defaults to default_comparisons(); pairs naming unknown families raise KeyError.
    vif_sets : dict name -> predictor columns, optional
        Defaults to default_vif_sets().
    linearity_family : str or None
        Family whose fit is checked with Box-Tidwell; None skips the check.

    Returns
    -------
    AnalysisReport

    Raises
    ------
    ValidationError, EmptyDatasetError
        From dataset preparation; nothing else is attempted.
    """
    cfg = resolve_config(config)
    families = default_model_families() if families is None else dict(families)
    comparisons = default_comparisons() if comparisons is None else list(comparisons)
    vif_sets = default_vif_sets() if vif_sets is None else dict(vif_sets)

    for reduced, full in comparisons:
        for name in (reduced, full):
            if name not in families:
                raise KeyError(f"Comparison refers to unknown model family {name!r}")

    dataset = prepare_dataset(raw, config=cfg)
    report = AnalysisReport(dataset=dataset)
    ops = report.operations

    # --- Collinearity ---
    for name, predictors in vif_sets.items():
        ops.append(_run(
            "vif", name,
            lambda p=predictors: compute_vif(dataset, p, threshold=cfg.vif_threshold),
        ))

    # --- Model fits ---
    fits = _fit_families(dataset, families, cfg)
    ops.extend(fits.values())

    # --- Linearity in the logit ---
    if linearity_family is not None:
        target = fits.get(linearity_family)
        if target is None:
            raise KeyError(f"Unknown model family {linearity_family!r} for linearity check")
        if target.ok:
            # ln(x) needs x > 0; predictors that can sit at zero (sales) drop out alone
            testable, excluded = split_by_domain(continuous_terms(target.value, dataset), dataset)
            ops.append(_run(
                "linearity", linearity_family,
                lambda: box_tidwell_test(target.value, dataset, testable, config=cfg),
            ))
            for term in excluded:
                ops.append(OperationResult(
                    name=f"{linearity_family}:{term.name}", kind="linearity", status=SKIPPED,
                    error=f"{term.name} has values <= 0; x*ln(x) is undefined",
                ))
        else:
            ops.append(OperationResult(
                name=linearity_family, kind="linearity", status=SKIPPED,
                error=f"model {linearity_family!r} did not fit",
            ))

    # --- Odds ratios ---
    for name, fit in fits.items():
        if fit.ok:
            ops.append(_run(
                "odds_ratios", name,
                lambda m=fit.value: coefficient_table(m, cfg.confidence),
            ))

    # --- Nested comparisons ---
    for reduced, full in comparisons:
        name = f"{reduced} vs {full}"
        failed = [f for f in (reduced, full) if not fits[f].ok]
        if failed:
            ops.append(OperationResult(
                name=name, kind="comparison", status=SKIPPED,
                error=f"model(s) {failed} did not fit",
            ))
            continue
        ops.append(_run(
            "comparison", name,
            lambda r=fits[reduced].value, f=fits[full].value: likelihood_ratio_test(r, f),
        ))

    n_failed = len(report.failures())
    logger.info(
        "Analysis complete: %d rows used (%d excluded), %d operations, %d failed",
        report.n_used, report.n_excluded, len(ops), n_failed,
    )
    return report
