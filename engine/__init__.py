"""
Analysis engine: runs diagnostics, model fits and comparisons with per-operation status.
"""

from .runner import (
    AnalysisReport,
    OperationResult,
    default_comparisons,
    default_model_families,
    default_vif_sets,
    run_analysis,
)

__all__ = [
    "AnalysisReport",
    "OperationResult",
    "default_comparisons",
    "default_model_families",
    "default_vif_sets",
    "run_analysis",
]
