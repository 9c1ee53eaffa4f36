"""
Tests for odds ratios and likelihood-ratio comparisons.
"""

import numpy as np
import pytest

from core.errors import NotNestedError
from data_prep import prepare_dataset
from inference import (
    coefficient_table,
    compare_sequence,
    comparison_frame,
    likelihood_ratio_test,
    odds_ratios,
)
from models import (
    COVARIATE_TERMS,
    NULL_TERMS,
    PERFORMANCE_SCORE,
    STEP_TERMS,
    TermSet,
    fit_logistic,
)

COVARIATES = TermSet(COVARIATE_TERMS)
STEPWISE = COVARIATES.extend(STEP_TERMS)
LINEAR = COVARIATES.extend([PERFORMANCE_SCORE])


@pytest.fixture
def fits(covariate_dataset):
    return {
        name: fit_logistic(covariate_dataset, terms, name=name)
        for name, terms in [
            ("null", NULL_TERMS),
            ("covariates", COVARIATES),
            ("stepwise", STEPWISE),
            ("linear", LINEAR),
        ]
    }


class TestOddsRatios:
    def test_point_estimate_is_exp_coefficient(self, fits):
        model = fits["stepwise"]
        rows = odds_ratios(model)
        assert [r.term for r in rows] == list(STEPWISE.names)
        for r in rows:
            assert r.odds_ratio == pytest.approx(np.exp(model.coefficient(r.term)), rel=1e-12)
            assert r.ci_lower < r.odds_ratio < r.ci_upper

    def test_wald_bounds(self, fits):
        model = fits["covariates"]
        (sales, _) = odds_ratios(model)
        b = model.coefficient("sales")
        se = model.std_errors[1]
        assert sales.ci_lower == pytest.approx(np.exp(b - 1.959963984540054 * se))
        assert sales.ci_upper == pytest.approx(np.exp(b + 1.959963984540054 * se))

    def test_lower_confidence_gives_narrower_interval(self, fits):
        wide = odds_ratios(fits["covariates"], 0.99)[0]
        narrow = odds_ratios(fits["covariates"], 0.90)[0]
        assert narrow.ci_lower > wide.ci_lower
        assert narrow.ci_upper < wide.ci_upper

    def test_invalid_confidence(self, fits):
        with pytest.raises(ValueError):
            odds_ratios(fits["covariates"], 1.0)

    def test_model_not_modified(self, fits):
        model = fits["covariates"]
        before = model.coefficients.copy()
        odds_ratios(model)
        np.testing.assert_array_equal(model.coefficients, before)

    def test_coefficient_table_includes_intercept(self, fits):
        table = coefficient_table(fits["covariates"])
        assert list(table.columns) == [
            "term", "coefficient", "std_error", "odds_ratio", "ci_lower", "ci_upper",
        ]
        assert table["term"].tolist() == ["(Intercept)", "sales", "customer_rate"]
        np.testing.assert_allclose(table["odds_ratio"], np.exp(table["coefficient"]))


class TestLikelihoodRatio:
    def test_self_comparison(self, fits):
        result = likelihood_ratio_test(fits["stepwise"], fits["stepwise"])
        assert result.statistic == 0.0
        assert result.df == 0
        assert result.p_value == 1.0

    def test_statistic_non_negative_and_df(self, fits):
        for reduced, full in [("null", "covariates"), ("covariates", "stepwise"),
                              ("covariates", "linear"), ("null", "stepwise")]:
            result = likelihood_ratio_test(fits[reduced], fits[full])
            assert result.statistic >= 0.0
            assert result.df == len(fits[full].terms) - len(fits[reduced].terms)
            assert 0.0 <= result.p_value <= 1.0

    def test_statistic_is_deviance_difference(self, fits):
        result = likelihood_ratio_test(fits["null"], fits["covariates"])
        assert result.statistic == pytest.approx(
            fits["null"].deviance - fits["covariates"].deviance
        )
        assert result.reduced == "null"
        assert result.full == "covariates"

    def test_covariates_beat_null(self, fits):
        assert likelihood_ratio_test(fits["null"], fits["covariates"]).p_value < 0.05

    def test_not_nested(self, fits):
        with pytest.raises(NotNestedError):
            likelihood_ratio_test(fits["stepwise"], fits["covariates"])
        with pytest.raises(NotNestedError):
            likelihood_ratio_test(fits["linear"], fits["stepwise"])

    def test_different_data_not_comparable(self, fits, covariate_rows):
        other = prepare_dataset(covariate_rows.iloc[:100])
        small = fit_logistic(other, COVARIATES)
        with pytest.raises(NotNestedError, match="different data"):
            likelihood_ratio_test(small, fits["stepwise"])

    def test_sequence(self, fits):
        results = compare_sequence([fits["null"], fits["covariates"], fits["stepwise"]])
        assert [(r.reduced, r.full) for r in results] == [
            ("null", "covariates"), ("covariates", "stepwise"),
        ]
        frame = comparison_frame(results)
        assert list(frame["df"]) == [2, 3]

    def test_sequence_needs_two_models(self, fits):
        with pytest.raises(ValueError):
            compare_sequence([fits["null"]])
