"""
Core package: schema definitions, configuration, error taxonomy and shared utilities.
No statistics live here.
"""

from .schema import (
    REQUIRED_COLUMNS,
    PERFORMANCE_LEVELS,
    PERFORMANCE_RANKS,
    STEP_THRESHOLDS,
)
from .config import AnalysisConfig, DEFAULT_CONFIG
from .errors import (
    AnalysisError,
    ValidationError,
    EmptyDatasetError,
    DomainError,
    ConvergenceError,
    SingularDesignError,
    NotNestedError,
)
from .utils import require_columns, as_frame

__all__ = [
    "REQUIRED_COLUMNS",
    "PERFORMANCE_LEVELS",
    "PERFORMANCE_RANKS",
    "STEP_THRESHOLDS",
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "AnalysisError",
    "ValidationError",
    "EmptyDatasetError",
    "DomainError",
    "ConvergenceError",
    "SingularDesignError",
    "NotNestedError",
    "require_columns",
    "as_frame",
]
