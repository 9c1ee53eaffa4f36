"""
Error taxonomy for the analysis pipeline.

Every error is local to the operation that raised it. The runner catches
AnalysisError subclasses per operation and keeps going; anything else is a
programming error and propagates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from data_prep.validators import ValidationResult


class AnalysisError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(AnalysisError):
    """Input table is malformed: missing columns, unknown labels, bad values."""

    def __init__(self, message: str, result: Optional["ValidationResult"] = None):
        super().__init__(message)
        self.result = result


class EmptyDatasetError(AnalysisError):
    """Every row was excluded before analysis."""


class DomainError(AnalysisError):
    """A diagnostic's preconditions do not hold for the supplied values."""


class ConvergenceError(AnalysisError):
    """IRLS hit its iteration cap without the deviance settling."""

    def __init__(
        self,
        message: str,
        *,
        n_iter: int,
        deviance: float,
        coefficients: Optional[np.ndarray] = None,
    ):
        super().__init__(message)
        self.n_iter = n_iter
        self.deviance = deviance
        self.coefficients = coefficients


class SingularDesignError(AnalysisError):
    """Design matrix is rank deficient or the outcome is separated."""


class NotNestedError(AnalysisError):
    """The reduced model's terms are not contained in the full model's."""
