"""
Advisory diagnostics run on the encoded dataset before interpreting the fits.

  collinearity.py  variance inflation factors
  linearity.py     Box-Tidwell linearity-in-the-logit test
"""

from .collinearity import VIFResult, compute_vif, vif_frame
from .linearity import (
    LinearityResult,
    box_tidwell_test,
    continuous_terms,
    linearity_frame,
    split_by_domain,
)

__all__ = [
    "VIFResult",
    "compute_vif",
    "vif_frame",
    "LinearityResult",
    "box_tidwell_test",
    "linearity_frame",
    "continuous_terms",
    "split_by_domain",
]
