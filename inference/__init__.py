"""
Post-fit inference: odds ratios and nested-model likelihood-ratio tests.
"""

from .odds_ratios import OddsRatio, odds_ratios, coefficient_table
from .comparison import (
    ComparisonResult,
    likelihood_ratio_test,
    compare_sequence,
    comparison_frame,
)

__all__ = [
    "OddsRatio",
    "odds_ratios",
    "coefficient_table",
    "ComparisonResult",
    "likelihood_ratio_test",
    "compare_sequence",
    "comparison_frame",
]
