"""
Analysis configuration.
Numerical settings for the IRLS engine plus the reporting thresholds used by
the diagnostics and tests. One frozen instance is shared by every operation.
"""

from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # IRLS convergence: relative change in deviance between iterations
    tol: float = Field(default=1e-8, gt=0.0)
    max_iter: int = Field(default=100, ge=1)

    # Quasi/complete separation normally aborts the fit. When allowed, the
    # fit is returned with separated=True and diverging coefficients.
    allow_separation: bool = False

    # inference levels
    confidence: float = Field(default=0.95, gt=0.0, lt=1.0)
    alpha: float = Field(default=0.05, gt=0.0, lt=1.0)

    # diagnostics
    vif_threshold: float = Field(default=5.0, gt=0.0)
    customer_rate_bounds: Tuple[float, float] = (0.0, 5.0)

    # >1 fits independent model families on a thread pool
    n_workers: int = Field(default=1, ge=1)

    @field_validator("customer_rate_bounds")
    @classmethod
    def _ordered_bounds(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if low > high:
            raise ValueError(f"customer_rate_bounds must be (low, high), got {value}")
        return value


DEFAULT_CONFIG = AnalysisConfig()


def resolve_config(config: AnalysisConfig | None) -> AnalysisConfig:
    return DEFAULT_CONFIG if config is None else config
