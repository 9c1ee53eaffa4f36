from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np

# Columns the analysis requires from the source table. Anything else is ignored.
REQUIRED_COLUMNS: Tuple[str, ...] = (
    "sales",
    "customer_rate",
    "performance",
    "promoted",
)

OUTCOME_COLUMN = "promoted"

# Ordered from lowest to highest; the position is the ordinal rank.
PERFORMANCE_LEVELS: Tuple[str, ...] = ("Poor", "Fair", "Good", "Very Good")
PERFORMANCE_RANKS: Dict[str, int] = {label: i for i, label in enumerate(PERFORMANCE_LEVELS)}

# Alternate spellings seen in exports of the source table.
_PERFORMANCE_ALIASES: Dict[str, str] = {
    "poor": "Poor",
    "fair": "Fair",
    "good": "Good",
    "very good": "Very Good",
    "verygood": "Very Good",
    "very_good": "Very Good",
}

PROMOTED_LABELS: Dict[str, int] = {"no": 0, "yes": 1}

# Staircase (continuation-ratio) indicators: column -> minimum rank for a 1.
STEP_THRESHOLDS: Dict[str, int] = {
    "stepFairPlus": 1,
    "stepGoodPlus": 2,
    "stepVGoodPlus": 3,
}

# Derived numeric codings of the ordinal predictor.
RANK_COLUMN = "performance_rank"
SCORE_COLUMN = "performance_score"  # rank + 1, strictly positive


def canonical_performance_label(value) -> Optional[str]:
    """Map a raw performance value onto one of PERFORMANCE_LEVELS, or None if unknown."""
    if not isinstance(value, str):
        return None
    key = " ".join(value.strip().split()).lower()
    return _PERFORMANCE_ALIASES.get(key)


def promoted_code(value) -> Optional[int]:
    """
    Map a raw promotion value to 0/1.
    Accepts "Yes"/"No" (any case), booleans, and the numbers 0 and 1.
    """
    if isinstance(value, str):
        return PROMOTED_LABELS.get(value.strip().lower())
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and value in (0, 1):
        return int(value)
    return None
