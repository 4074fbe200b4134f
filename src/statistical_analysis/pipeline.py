import logging
from dataclasses import dataclass, field

import pandas as pd

from src.statistical_analysis.assumptions import (
    VarianceDecision,
    normality_check,
    variance_equality_test,
)
from src.statistical_analysis.config import DEFAULT_ALPHA
from src.statistical_analysis.exceptions import InsufficientDataError
from src.statistical_analysis.statistical_tests import (
    AnovaResult,
    ChiSquareResult,
    HypothesisTestResult,
    TTestResult,
    chi_square_independence_test,
    one_way_anova,
    run_t_test,
)
from src.statistical_analysis.utils import check_alpha, contingency_table, group_values

logger = logging.getLogger(__name__)


@dataclass
class PipelineOutput:
    """Results of the hypothesis tests that ran, and errors of those that could not."""

    results: dict[str, HypothesisTestResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


def analyze_bmi_vs_cardio(df: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> TTestResult:
    """
    H0: mean BMI is the same for patients with and without cardiovascular disease.

    The F ratio test on the two groups decides between Student's and Welch's
    t-test. Per-group normality diagnostics are attached.
    """
    groups = group_values(df, "bmi", "cardio")
    too_small = {label: len(v) for label, v in groups.items() if len(v) < 2}
    if too_small:
        raise InsufficientDataError(f"BMI groups by cardio with fewer than 2 observations: {too_small}")

    variance_test = variance_equality_test(groups, method="f", alpha=alpha)
    logger.info(
        f"BMI variance check: F={variance_test.statistic:.4f}, pvalue={variance_test.p_value:.4g} "
        f"-> {variance_test.conclusion.value} variances"
    )

    result = run_t_test(groups, variance_test.conclusion, alpha=alpha)
    result.null_hypothesis = "Mean BMI is the same for patients with and without cardiovascular disease"
    result.variance_test = variance_test
    result.normality = {label: normality_check(values) for label, values in groups.items()}
    return result


def analyze_cholesterol_vs_cardio(df: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> ChiSquareResult:
    """H0: cholesterol level is independent of cardiovascular disease."""
    table = contingency_table(df, "cholesterol", "cardio")
    logger.debug(f"Cholesterol x cardio contingency table:\n{table}")

    result = chi_square_independence_test(table, alpha=alpha)
    result.null_hypothesis = "Cholesterol level is independent of cardiovascular disease"
    return result


def analyze_age_vs_glucose(df: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> AnovaResult:
    """
    H0: mean age is the same across glucose level groups.

    Bartlett's test and the residual normality diagnostics are advisory: they
    are attached to the result but never stop the ANOVA.
    """
    groups = group_values(df, "age_years", "gluc")

    result = one_way_anova(groups, alpha=alpha)
    result.null_hypothesis = "Mean age is the same across glucose level groups"

    result.variance_test = variance_equality_test(groups, method="bartlett", alpha=alpha)
    if result.variance_test.conclusion is VarianceDecision.UNEQUAL:
        message = (
            f"Bartlett's test rejects equal variances across glucose groups "
            f"(pvalue={result.variance_test.p_value:.4g})"
        )
        result.warning_messages.append(message)
        logger.warning(message)

    result.residual_normality = normality_check(result.residuals)
    return result


HYPOTHESES = {
    "bmi_vs_cardio": analyze_bmi_vs_cardio,
    "cholesterol_vs_cardio": analyze_cholesterol_vs_cardio,
    "age_vs_glucose": analyze_age_vs_glucose,
}


def run_test_pipeline(
    df_clean: pd.DataFrame,
    alpha: float | None = None,
    skip: tuple[str, ...] = (),
) -> PipelineOutput:
    """
    Run the hypothesis tests on the cleaned table.

    Each test runs independently: a test whose groups are too small is
    logged and recorded in ``errors`` while the others still run.

    Parameters
    ----------
    df_clean : pd.DataFrame
        Output of ``clean``. It is not modified.
    alpha : float, optional
        Significance level. Defaults to ``CARDIO_STATS_ALPHA`` (0.05).
    skip : tuple of str
        Names from ``HYPOTHESES`` not to run.

    Returns
    -------
    PipelineOutput

    Raises
    ------
    ValueError
        If alpha is out of range or ``skip`` names an unknown hypothesis.
    """
    alpha = DEFAULT_ALPHA if alpha is None else alpha
    check_alpha(alpha)
    unknown = set(skip) - set(HYPOTHESES)
    if unknown:
        raise ValueError(f"Unknown hypotheses to skip: {sorted(unknown)}")

    out = PipelineOutput()

    for name, analyze in HYPOTHESES.items():
        if name in skip:
            logger.info(f"Skipping {name}.")
            continue

        try:
            result = analyze(df_clean, alpha=alpha)
        except InsufficientDataError as e:
            logger.error(f"{name} could not be tested: {e}")
            out.errors[name] = str(e)
            continue

        out.results[name] = result
        logger.info(
            f"{name}: {result.test_name}, statistic={result.statistic:.4f}, "
            f"pvalue={result.p_value:.4g} -> {result.decision}"
        )

    return out
