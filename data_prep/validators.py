"""
Data quality validation for the promotion table before it is encoded.

Catches problems early:
- Missing required columns
- Performance / promotion labels outside the fixed vocabularies
- Negative or non-numeric sales
- Customer ratings outside the rating scale
- Rows with missing fields (excluded later, reported here)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from core.config import AnalysisConfig, resolve_config
from core.errors import ValidationError
from core.schema import (
    OUTCOME_COLUMN,
    PERFORMANCE_LEVELS,
    REQUIRED_COLUMNS,
    canonical_performance_label,
    promoted_code,
)
from core.utils import missing_columns

logger = logging.getLogger(__name__)

# Below this share of either outcome class the fit is likely to be unstable.
MIN_CLASS_SHARE = 0.05


@dataclass
class ValidationResult:
    """Blocking errors and advisory warnings for one promotion table."""
    n_rows: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        lines = [
            f"{self.n_rows} rows checked: {len(self.errors)} blocking, "
            f"{len(self.warnings)} advisory"
        ]
        lines += [f"  error: {e}" for e in self.errors]
        lines += [f"  warning: {w}" for w in self.warnings]
        return "\n".join(lines)

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise ValidationError(
                "Promotion table failed validation.\n" + self.summary(), result=self
            )


def blank_to_na(frame: pd.DataFrame, columns=REQUIRED_COLUMNS) -> pd.DataFrame:
    """Treat empty / whitespace-only strings in the required columns as missing."""
    out = frame.copy()
    for col in columns:
        if col in out.columns and not pd.api.types.is_numeric_dtype(out[col]):
            out[col] = out[col].map(
                lambda v: np.nan if isinstance(v, str) and not v.strip() else v
            )
    return out


def coerce_numeric(series: pd.Series) -> Tuple[pd.Series, int]:
    """Return (numeric series, count of present-but-unparseable values)."""
    values = pd.to_numeric(series, errors="coerce")
    n_bad = int((values.isna() & series.notna()).sum())
    return values.astype(float), n_bad


def _unknown_labels(series: pd.Series, mapper) -> List[str]:
    present = series.dropna()
    bad = sorted({repr(v) for v in present if mapper(v) is None})
    return bad


def validate_observations(
    frame: pd.DataFrame,
    *,
    config: Optional[AnalysisConfig] = None,
) -> ValidationResult:
    """
    Run all validation checks on the raw promotion table.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    Missing values are never errors: those rows are dropped by the encoder.
    """
    cfg = resolve_config(config)
    result = ValidationResult(n_rows=len(frame))

    # --- Schema checks ---
    missing = missing_columns(frame, REQUIRED_COLUMNS)
    if missing:
        result.errors.append(f"Missing required columns: {missing}")
        return result  # can't continue without columns

    frame = blank_to_na(frame)
    n = len(frame)
    if n == 0:
        return result

    # --- Missing fields ---
    incomplete = frame[list(REQUIRED_COLUMNS)].isna()
    for col in REQUIRED_COLUMNS:
        n_null = int(incomplete[col].sum())
        if n_null > 0:
            result.warnings.append(f"{n_null} rows have null {col}.")
    n_drop = int(incomplete.any(axis=1).sum())
    if n_drop > 0:
        result.warnings.append(f"{n_drop} of {n} rows are incomplete and will be excluded.")

    # --- Performance labels ---
    bad = _unknown_labels(frame["performance"], canonical_performance_label)
    if bad:
        result.errors.append(
            f"Unknown performance labels {bad}; expected one of {list(PERFORMANCE_LEVELS)}."
        )

    # --- Promotion labels ---
    bad = _unknown_labels(frame[OUTCOME_COLUMN], promoted_code)
    if bad:
        result.errors.append(f"Unknown {OUTCOME_COLUMN} labels {bad}; expected Yes/No or 1/0.")
    else:
        codes = frame[OUTCOME_COLUMN].dropna().map(promoted_code)
        if len(codes) > 0:
            share = float(codes.mean())
            minority = min(share, 1.0 - share)
            if minority < MIN_CLASS_SHARE:
                result.warnings.append(
                    f"Outcome is highly imbalanced ({minority:.1%} minority class)."
                )

    # --- Sales ---
    sales, n_bad = coerce_numeric(frame["sales"])
    if n_bad > 0:
        result.errors.append(f"{n_bad} rows have non-numeric sales.")
    n_neg = int((sales < 0).sum())
    if n_neg > 0:
        result.errors.append(f"{n_neg} rows have negative sales.")

    # --- Customer rating ---
    rate, n_bad = coerce_numeric(frame["customer_rate"])
    if n_bad > 0:
        result.errors.append(f"{n_bad} rows have non-numeric customer_rate.")
    low, high = cfg.customer_rate_bounds
    n_out = int(((rate < low) | (rate > high)).sum())
    if n_out > 0:
        result.warnings.append(
            f"{n_out} rows have customer_rate outside [{low}, {high}]; check the rating scale."
        )

    for w in result.warnings:
        logger.warning("validation: %s", w)
    return result
