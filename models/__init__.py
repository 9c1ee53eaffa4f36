"""
Model specification and estimation.

  terms.py         Term Sets: explicit simple / interaction term descriptors
  interactions.py  Interaction Model Builder (categorical × continuous products)
  logistic.py      IRLS logistic regression engine and the FittedModel value type
"""

from .terms import (
    SimpleTerm,
    InteractionTerm,
    TermSet,
    COVARIATE_TERMS,
    STEP_TERMS,
    PERFORMANCE_SCORE,
    NULL_TERMS,
)
from .interactions import build_interaction_terms
from .logistic import FittedModel, design_matrix, fit_logistic, fit_null, is_separated

__all__ = [
    "SimpleTerm",
    "InteractionTerm",
    "TermSet",
    "COVARIATE_TERMS",
    "STEP_TERMS",
    "PERFORMANCE_SCORE",
    "NULL_TERMS",
    "build_interaction_terms",
    "FittedModel",
    "design_matrix",
    "fit_logistic",
    "fit_null",
    "is_separated",
]
