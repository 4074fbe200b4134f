"""Unit tests for src.statistical_analysis.statistical_tests."""

import warnings

import numpy as np
import pandas as pd
import pytest
from scipy.stats import chi2_contingency, f_oneway, ttest_ind

from src.statistical_analysis.assumptions import VarianceDecision, variance_equality_test
from src.statistical_analysis.exceptions import (
    InsufficientDataError,
    LowExpectedFrequencyWarning,
)
from src.statistical_analysis.statistical_tests import (
    chi_square_independence_test,
    one_way_anova,
    run_t_test,
)

# ─────────────────────────────────────────────────────────────────────────────
# Test configuration
# ─────────────────────────────────────────────────────────────────────────────

N_SIMULATIONS = 1000
SAMPLE_SIZE = 30
ALPHA = 0.05
RANDOM_SEED = 42

CHOLESTEROL_BY_CARDIO = [[30, 10], [5, 25], [2, 8]]


def _standardized(rng, size):
    x = rng.normal(size=size)
    return (x - x.mean()) / x.std(ddof=1)


# ─────────────────────────────────────────────────────────────────────────────
# Tests for run_t_test
# ─────────────────────────────────────────────────────────────────────────────


class TestRunTTest:
    def test_equal_decision_runs_student(self):
        a, b = [20.0, 21.0, 22.0, 23.0, 24.0], [28.0, 29.0, 30.0, 31.0, 32.0]
        result = run_t_test({"No": a, "Yes": b}, VarianceDecision.EQUAL)

        # pooled variance 2.5, standard error sqrt(2.5 * (1/5 + 1/5)) = 1
        assert result.variant == "Student"
        assert result.statistic == pytest.approx(-8.0)
        assert result.degrees_of_freedom == pytest.approx(8)
        assert result.mean_difference == pytest.approx(-8.0)
        assert result.p_value == pytest.approx(ttest_ind(a, b).pvalue)

    def test_unequal_decision_runs_welch(self):
        rng = np.random.default_rng(RANDOM_SEED)
        a, b = rng.normal(0, 2, size=20), rng.normal(1, 10, size=40)
        result = run_t_test({"a": a, "b": b}, VarianceDecision.UNEQUAL)

        va, vb = a.var(ddof=1) / len(a), b.var(ddof=1) / len(b)
        welch_df = (va + vb) ** 2 / (va**2 / (len(a) - 1) + vb**2 / (len(b) - 1))

        assert result.variant == "Welch"
        assert result.degrees_of_freedom == pytest.approx(welch_df)
        assert result.statistic == pytest.approx((a.mean() - b.mean()) / np.sqrt(va + vb))
        assert result.degrees_of_freedom < len(a) + len(b) - 2

    def test_confidence_interval_contains_difference(self):
        rng = np.random.default_rng(RANDOM_SEED)
        result = run_t_test(
            {"a": rng.normal(0, 1, 50), "b": rng.normal(0.5, 1, 50)}, VarianceDecision.EQUAL
        )
        low, high = result.confidence_interval
        assert low < result.mean_difference < high
        assert result.confidence_level == 0.95

    @pytest.mark.parametrize(
        "var_a,var_b,expected_variant",
        [(4.0, 4.0, "Student"), (4.0, 100.0, "Welch")],
    )
    def test_variance_check_selects_variant(self, var_a, var_b, expected_variant):
        rng = np.random.default_rng(RANDOM_SEED)
        groups = {
            "No": _standardized(rng, 50) * np.sqrt(var_a) + 22,
            "Yes": _standardized(rng, 50) * np.sqrt(var_b) + 30,
        }
        decision = variance_equality_test(groups, method="f").conclusion
        result = run_t_test(groups, decision)

        assert result.variant == expected_variant

    def test_decision_at(self):
        result = run_t_test({"a": [1.0, 2.0, 3.0], "b": [1.5, 2.5, 3.5]}, VarianceDecision.EQUAL)
        assert result.decision == "fail to reject H0"
        assert result.decision_at(0.99) == "reject H0"
        with pytest.raises(ValueError, match="alpha"):
            result.decision_at(2.0)

    def test_small_group_raises(self):
        with pytest.raises(InsufficientDataError, match="fewer than 2"):
            run_t_test({"No": [22.0, 23.0, 24.0], "Yes": [30.0]}, VarianceDecision.EQUAL)

    def test_empty_group_raises(self):
        with pytest.raises(InsufficientDataError):
            run_t_test({"No": [22.0, 23.0], "Yes": []}, VarianceDecision.UNEQUAL)

    def test_three_groups_raises(self):
        with pytest.raises(ValueError, match="exactly 2 groups"):
            run_t_test({"a": [1.0, 2.0], "b": [1.0, 2.0], "c": [1.0, 2.0]}, VarianceDecision.EQUAL)


class TestRunTTestTypeIError:
    """Test that type 1 error rate is controlled at alpha level."""

    @pytest.mark.parametrize(
        "sigma_b,decision",
        [(1.0, VarianceDecision.EQUAL), (5.0, VarianceDecision.UNEQUAL)],
    )
    def test_type1_error_controlled(self, sigma_b, decision):
        """
        With equal means the rejection rate should be approximately alpha,
        for Student's test under equal variances and Welch's test under
        unequal variances.
        """
        rng = np.random.default_rng(RANDOM_SEED)
        rejections = 0

        for _ in range(N_SIMULATIONS):
            groups = {"a": rng.normal(0, 1.0, SAMPLE_SIZE), "b": rng.normal(0, sigma_b, SAMPLE_SIZE // 2)}
            if run_t_test(groups, decision).p_value < ALPHA:
                rejections += 1

        observed_rate = rejections / N_SIMULATIONS

        se = np.sqrt(ALPHA * (1 - ALPHA) / N_SIMULATIONS)
        upper_bound = ALPHA + 3 * se  # ~99.7% CI upper bound

        assert observed_rate <= upper_bound, (
            f"Type 1 error rate {observed_rate:.3f} exceeds expected upper bound {upper_bound:.3f}"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Tests for chi_square_independence_test
# ─────────────────────────────────────────────────────────────────────────────


class TestChiSquareIndependenceTest:
    def test_expected_frequencies_from_margins(self):
        with pytest.warns(LowExpectedFrequencyWarning):
            result = chi_square_independence_test(CHOLESTEROL_BY_CARDIO)

        observed = np.array(CHOLESTEROL_BY_CARDIO)
        grand_total = observed.sum()
        for i in range(3):
            for j in range(2):
                manual = observed[i].sum() * observed[:, j].sum() / grand_total
                assert result.expected[i, j] == pytest.approx(manual)

    def test_expected_preserves_marginal_totals(self):
        with pytest.warns(LowExpectedFrequencyWarning):
            result = chi_square_independence_test(CHOLESTEROL_BY_CARDIO)

        np.testing.assert_allclose(result.expected.sum(axis=1), result.observed.sum(axis=1))
        np.testing.assert_allclose(result.expected.sum(axis=0), result.observed.sum(axis=0))

    def test_statistic_matches_manual_calculation(self):
        with pytest.warns(LowExpectedFrequencyWarning):
            result = chi_square_independence_test(CHOLESTEROL_BY_CARDIO)

        observed = np.array(CHOLESTEROL_BY_CARDIO, dtype=float)
        manual = 0.0
        for i in range(observed.shape[0]):
            for j in range(observed.shape[1]):
                e = observed[i].sum() * observed[:, j].sum() / observed.sum()
                manual += (observed[i, j] - e) ** 2 / e

        assert round(result.statistic, 4) == round(manual, 4)
        assert result.statistic == pytest.approx(26.6331, abs=1e-4)
        assert result.degrees_of_freedom == 2

        stat, p_value, dof, _ = chi2_contingency(observed, correction=False)
        assert result.p_value == pytest.approx(p_value)
        assert result.decision == "reject H0"

    def test_low_expected_frequency_flagged_not_fatal(self):
        # smallest expected count is 10 * 37 / 80 = 4.625
        with pytest.warns(LowExpectedFrequencyWarning, match="below 5"):
            result = chi_square_independence_test(CHOLESTEROL_BY_CARDIO)

        assert result.low_expected_frequency
        assert len(result.warning_messages) == 1
        assert result.expected.min() == pytest.approx(4.625)

    def test_sufficient_expected_frequency_not_flagged(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", LowExpectedFrequencyWarning)
            result = chi_square_independence_test([[30, 20], [25, 25], [20, 30]])

        assert not result.low_expected_frequency
        assert result.warning_messages == []
        assert (result.expected >= 5).all()

    def test_dataframe_labels(self):
        table = pd.DataFrame(
            [[300, 200], [80, 120], [40, 60]],
            index=["Normal", "Above", "WellAbove"],
            columns=["No", "Yes"],
        )
        result = chi_square_independence_test(table)
        assert result.row_labels == ["Normal", "Above", "WellAbove"]
        assert result.col_labels == ["No", "Yes"]

    def test_empty_row_is_dropped(self):
        table = pd.DataFrame(
            [[300, 200], [0, 0], [40, 60]],
            index=["Normal", "Above", "WellAbove"],
            columns=["No", "Yes"],
        )
        result = chi_square_independence_test(table)
        assert result.row_labels == ["Normal", "WellAbove"]
        assert result.degrees_of_freedom == 1

    def test_single_level_raises(self):
        with pytest.raises(InsufficientDataError, match="2x2"):
            chi_square_independence_test([[30, 10], [0, 0], [0, 0]])

    def test_no_continuity_correction(self):
        table = [[20, 30], [35, 15]]
        result = chi_square_independence_test(table)
        stat, _, _, _ = chi2_contingency(table, correction=False)
        assert result.statistic == pytest.approx(stat)


# ─────────────────────────────────────────────────────────────────────────────
# Tests for one_way_anova
# ─────────────────────────────────────────────────────────────────────────────


class TestOneWayAnova:
    def test_identical_groups(self):
        groups = {"Normal": [50.0, 52.0, 54.0], "Above": [50.0, 52.0, 54.0], "WellAbove": [50.0, 52.0, 54.0]}
        result = one_way_anova(groups)

        assert result.statistic == pytest.approx(0.0, abs=1e-12)
        assert result.p_value == pytest.approx(1.0)
        assert result.decision == "fail to reject H0"

    def test_matches_scipy(self):
        rng = np.random.default_rng(RANDOM_SEED)
        groups = {
            "Normal": rng.normal(52, 6, 80),
            "Above": rng.normal(54, 6, 40),
            "WellAbove": rng.normal(55, 6, 25),
        }
        result = one_way_anova(groups)
        reference = f_oneway(*groups.values())

        assert result.statistic == pytest.approx(reference.statistic)
        assert result.p_value == pytest.approx(reference.pvalue)
        assert result.degrees_of_freedom == (2, 142)

    def test_sums_of_squares(self):
        groups = {"a": [1.0, 2.0, 3.0], "b": [4.0, 5.0, 6.0]}
        result = one_way_anova(groups)

        # grand mean 3.5; SSB = 3 * 1.5^2 * 2, SSW = 2 + 2
        assert result.ss_between == pytest.approx(13.5)
        assert result.ss_within == pytest.approx(4.0)
        assert result.statistic == pytest.approx(13.5 / (4.0 / 4))
        assert result.group_means == {"a": 2.0, "b": 5.0}

    def test_residuals_are_deviations_from_group_mean(self):
        groups = {"a": [1.0, 2.0, 3.0], "b": [4.0, 5.0, 9.0]}
        result = one_way_anova(groups)
        np.testing.assert_allclose(result.residuals, [-1.0, 0.0, 1.0, -2.0, -1.0, 3.0])

    def test_constant_groups_with_different_means(self):
        result = one_way_anova({"a": [1.0, 1.0], "b": [2.0, 2.0]})
        assert np.isinf(result.statistic)
        assert result.p_value == 0.0

    def test_single_group_raises(self):
        with pytest.raises(InsufficientDataError, match="at least 2 groups"):
            one_way_anova({"Normal": [50.0, 52.0, 54.0]})

    def test_small_group_raises(self):
        with pytest.raises(InsufficientDataError, match="fewer than 2"):
            one_way_anova({"Normal": [50.0, 52.0], "Above": [51.0, 53.0], "WellAbove": [60.0]})
