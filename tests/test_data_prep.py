"""
Tests for validation and encoding of raw promotion rows.
"""

import numpy as np
import pandas as pd
import pytest

from core.errors import EmptyDatasetError, ValidationError
from core.schema import PERFORMANCE_LEVELS, STEP_THRESHOLDS
from data_prep import (
    encode_performance,
    prepare_dataset,
    step_indicators,
    validate_observations,
)


def _rows(**overrides):
    base = {
        "sales": [120.0, 80.5, 95.0, 60.0],
        "customer_rate": [4.5, 3.2, 2.8, 4.0],
        "performance": ["Poor", "Fair", "Good", "Very Good"],
        "promoted": ["No", "Yes", "No", "Yes"],
    }
    base.update(overrides)
    return pd.DataFrame(base)


class TestStaircaseEncoding:
    """Staircase indicators and ordinal ranks."""

    def test_ranks_follow_level_order(self):
        ranks = encode_performance(pd.Series(list(PERFORMANCE_LEVELS)))
        assert ranks.tolist() == [0.0, 1.0, 2.0, 3.0]

    def test_monotonicity_at_every_level(self):
        """stepVGoodPlus => stepGoodPlus => stepFairPlus for each level, repeated rows included."""
        levels = list(PERFORMANCE_LEVELS) * 5
        ds = prepare_dataset(_rows(
            sales=[10.0] * 20,
            customer_rate=[3.0] * 20,
            performance=levels,
            promoted=["Yes", "No"] * 10,
        ))
        fair = ds.column("stepFairPlus")
        good = ds.column("stepGoodPlus")
        vgood = ds.column("stepVGoodPlus")
        assert np.all(vgood <= good)
        assert np.all(good <= fair)

    def test_indicator_values_per_level(self):
        steps = step_indicators(pd.Series([0, 1, 2, 3]))
        assert list(steps.columns) == list(STEP_THRESHOLDS)
        assert steps["stepFairPlus"].tolist() == [0, 1, 1, 1]
        assert steps["stepGoodPlus"].tolist() == [0, 0, 1, 1]
        assert steps["stepVGoodPlus"].tolist() == [0, 0, 0, 1]

    def test_score_is_rank_plus_one(self):
        ds = prepare_dataset(_rows())
        np.testing.assert_array_equal(ds.column("performance_score"), ds.column("performance_rank") + 1)
        assert ds.column("performance_score").min() == 1.0

    def test_label_variants_accepted(self):
        ds = prepare_dataset(_rows(performance=[" poor", "FAIR", "Good ", "VeryGood"]))
        assert ds.column("performance_rank").tolist() == [0.0, 1.0, 2.0, 3.0]


class TestPrepareDataset:
    """Row exclusion and fatal errors."""

    def test_outcome_encoded_zero_one(self):
        ds = prepare_dataset(_rows())
        assert ds.outcome.tolist() == [0.0, 1.0, 0.0, 1.0]

    def test_numeric_and_boolean_outcomes(self):
        assert prepare_dataset(_rows(promoted=[0, 1, 0, 1])).outcome.tolist() == [0, 1, 0, 1]
        assert prepare_dataset(_rows(promoted=[False, True, False, True])).outcome.tolist() == [0, 1, 0, 1]

    def test_incomplete_rows_are_dropped_and_counted(self):
        ds = prepare_dataset(_rows(
            sales=[120.0, np.nan, 95.0, 60.0],
            performance=["Poor", "Fair", None, "Very Good"],
        ))
        assert len(ds) == 2
        assert ds.n_raw == 4
        assert ds.n_excluded == 2

    def test_blank_strings_count_as_missing(self):
        ds = prepare_dataset(_rows(promoted=["No", "  ", "No", "Yes"]))
        assert len(ds) == 3

    def test_all_rows_missing_raises_empty(self):
        with pytest.raises(EmptyDatasetError):
            prepare_dataset(_rows(customer_rate=[np.nan] * 4))

    def test_missing_column_raises_validation(self):
        with pytest.raises(ValidationError) as excinfo:
            prepare_dataset(_rows().drop(columns=["customer_rate"]))
        assert "customer_rate" in str(excinfo.value)
        assert excinfo.value.result is not None
        assert not excinfo.value.result.is_valid

    def test_unknown_label_raises_validation(self):
        with pytest.raises(ValidationError, match="performance"):
            prepare_dataset(_rows(performance=["Poor", "Fair", "Excellent", "Good"]))

    def test_negative_sales_raises_validation(self):
        with pytest.raises(ValidationError, match="negative sales"):
            prepare_dataset(_rows(sales=[-1.0, 80.5, 95.0, 60.0]))

    def test_extra_columns_ignored(self):
        ds = prepare_dataset(_rows().assign(department=["a", "b", "c", "d"]))
        assert "department" not in ds.columns

    def test_records_input(self):
        records = _rows().to_dict(orient="records")
        ds = prepare_dataset(records)
        assert len(ds) == 4

    def test_columns_are_read_only(self):
        ds = prepare_dataset(_rows())
        col = ds.column("sales")
        with pytest.raises(ValueError):
            col[0] = 0.0

    def test_with_columns_leaves_original_untouched(self):
        ds = prepare_dataset(_rows())
        extended = ds.with_columns(extra=[1.0, 2.0, 3.0, 4.0])
        assert "extra" in extended.columns
        assert "extra" not in ds.columns


class TestValidateObservations:
    """Warnings do not block; errors do."""

    def test_out_of_range_rating_is_a_warning(self):
        result = validate_observations(_rows(customer_rate=[4.5, 3.2, 7.0, 4.0]))
        assert result.is_valid
        assert any("customer_rate outside" in w for w in result.warnings)

    def test_missing_values_reported_as_warnings(self):
        result = validate_observations(_rows(sales=[np.nan, 80.5, 95.0, 60.0]))
        assert result.is_valid
        assert any("incomplete" in w for w in result.warnings)

    def test_summary_lists_errors(self):
        result = validate_observations(_rows(promoted=["No", "Maybe", "No", "Yes"]))
        assert not result.is_valid
        summary = result.summary()
        assert summary.startswith("4 rows checked: 1 blocking")
        assert "error: Unknown promoted labels" in summary
        assert "Maybe" in summary

    def test_raise_if_invalid_carries_result(self):
        result = validate_observations(_rows(sales=[-1.0, 80.5, 95.0, 60.0]))
        with pytest.raises(ValidationError, match="negative sales") as excinfo:
            result.raise_if_invalid()
        assert excinfo.value.result is result

    def test_raise_if_invalid_passes_warnings_through(self):
        result = validate_observations(_rows(customer_rate=[4.5, 3.2, 7.0, 4.0]))
        result.raise_if_invalid()
        assert "warning: 1 rows have customer_rate outside" in result.summary()
