"""
Data preparation: validating raw promotion rows and encoding the analysis dataset.
"""

from .validators import ValidationResult, validate_observations
from .encoder import (
    EncodedDataset,
    encode_performance,
    step_indicators,
    prepare_dataset,
)

__all__ = [
    "ValidationResult",
    "validate_observations",
    "EncodedDataset",
    "encode_performance",
    "step_indicators",
    "prepare_dataset",
]
