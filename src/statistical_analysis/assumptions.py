"""Assumption checks run before the hypothesis tests."""

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np
from scipy.stats import bartlett, f, kurtosis, levene, probplot, shapiro, skew

from src.statistical_analysis.config import (
    DEFAULT_ALPHA,
    HISTOGRAM_BINS,
    RANDOM_SEED,
    SHAPIRO_MAX_SAMPLE,
)
from src.statistical_analysis.exceptions import InsufficientDataError
from src.statistical_analysis.utils import check_alpha

logger = logging.getLogger(__name__)

VARIANCE_METHODS = ("f", "bartlett", "levene")


class VarianceDecision(enum.Enum):
    EQUAL = "Equal"
    UNEQUAL = "Unequal"


@dataclass
class VarianceTestResult:
    """Outcome of a test for equal population variances."""

    method: str
    statistic: float
    p_value: float
    degrees_of_freedom: tuple | float | None
    alpha: float
    conclusion: VarianceDecision
    group_variances: dict


@dataclass
class NormalityDiagnostic:
    """
    Material for judging normality by eye.

    ``counts``/``bin_edges`` feed a histogram and ``theoretical_quantiles``/
    ``ordered_residuals`` a Q-Q plot. The Shapiro-Wilk fields are informative
    only and are None when the test was not run.
    """

    n: int
    mean: float
    sd: float
    counts: np.ndarray
    bin_edges: np.ndarray
    residuals: np.ndarray
    theoretical_quantiles: np.ndarray
    ordered_residuals: np.ndarray
    qq_correlation: float
    skewness: float
    excess_kurtosis: float
    shapiro_statistic: float | None = None
    shapiro_p_value: float | None = None


def _as_clean_array(values, name="values"):
    arr = np.asarray(values, dtype=float)
    if np.any(np.isnan(arr)) or np.any(np.isinf(arr)):
        raise ValueError(f"{name} contains NaN or infinite values")
    return arr


def _f_ratio_test(first: np.ndarray, second: np.ndarray):
    """Two-sided F test of the ratio of two variances."""
    var_first = np.var(first, ddof=1)
    var_second = np.var(second, ddof=1)
    df_num, df_den = len(first) - 1, len(second) - 1

    if var_second == 0:
        if var_first == 0:
            return 1.0, 1.0, (df_num, df_den)
        return np.inf, 0.0, (df_num, df_den)

    f_stat = var_first / var_second
    p_value = 2 * min(f.cdf(f_stat, df_num, df_den), f.sf(f_stat, df_num, df_den))
    return f_stat, min(p_value, 1.0), (df_num, df_den)


def variance_equality_test(
    values_by_group: Mapping[str, Sequence[float]],
    method: str = "bartlett",
    alpha: float = DEFAULT_ALPHA,
) -> VarianceTestResult:
    """
    Test whether groups share the same population variance.

    Parameters
    ----------
    values_by_group : Mapping[str, Sequence[float]]
        Observations per group label, in the order the groups should be
        compared.
    method : str
        "f" (ratio of two variances, two groups only), "bartlett" or
        "levene". Defaults to "bartlett".
    alpha : float
        Significance level. Variances are judged unequal when p < alpha.

    Returns
    -------
    VarianceTestResult

    Raises
    ------
    InsufficientDataError
        If fewer than two groups are given or a group has fewer than two
        observations.
    ValueError
        If the method is unknown, the "f" method gets more than two groups,
        or values contain NaN/inf.
    """
    check_alpha(alpha)
    if method not in VARIANCE_METHODS:
        raise ValueError(f"Unknown variance test method '{method}', expected one of {VARIANCE_METHODS}")

    groups = {label: _as_clean_array(v, f"group '{label}'") for label, v in values_by_group.items()}

    if len(groups) < 2:
        raise InsufficientDataError(f"Variance test needs at least 2 groups, got {len(groups)}")
    too_small = [label for label, v in groups.items() if len(v) < 2]
    if too_small:
        raise InsufficientDataError(f"Groups with fewer than 2 observations: {too_small}")

    samples = list(groups.values())

    if method == "f":
        if len(samples) != 2:
            raise ValueError(f"F ratio test compares exactly 2 groups, got {len(samples)}")
        stat, p_value, dof = _f_ratio_test(*samples)
    elif method == "bartlett":
        if all(np.var(s, ddof=1) == 0 for s in samples):
            # Bartlett is undefined for constant groups; identical zero variances are equal
            stat, p_value = 0.0, 1.0
        else:
            stat, p_value = bartlett(*samples)
        dof = len(samples) - 1
    else:
        stat, p_value = levene(*samples, center="median")
        dof = (len(samples) - 1, sum(len(s) for s in samples) - len(samples))

    stat, p_value = float(stat), float(p_value)
    conclusion = VarianceDecision.UNEQUAL if p_value < alpha else VarianceDecision.EQUAL

    logger.debug(f"Variance test ({method}): statistic={stat:.4f}, pvalue={p_value:.4g}, {conclusion.value}")

    return VarianceTestResult(
        method=method,
        statistic=stat,
        p_value=p_value,
        degrees_of_freedom=dof,
        alpha=alpha,
        conclusion=conclusion,
        group_variances={label: float(np.var(v, ddof=1)) for label, v in groups.items()},
    )


def normality_check(
    values: Sequence[float],
    bins: int = HISTOGRAM_BINS,
    formal_test: bool = True,
    random_seed: int | None = RANDOM_SEED,
) -> NormalityDiagnostic:
    """
    Build histogram and Q-Q material for a sample.

    Normality is left to visual judgement; no pass/fail verdict is returned.
    With ``formal_test`` a Shapiro-Wilk statistic is attached, computed on a
    seeded random subsample when the sample is larger than
    ``SHAPIRO_MAX_SAMPLE``.

    Parameters
    ----------
    values : Sequence[float]
        Sample, or residuals of a fitted model.
    bins : int
        Number of histogram bins.
    formal_test : bool
        Attach a Shapiro-Wilk test. Defaults to True.
    random_seed : int, optional
        Seed for the Shapiro-Wilk subsample.

    Returns
    -------
    NormalityDiagnostic
    """
    arr = _as_clean_array(values)
    if len(arr) == 0:
        raise InsufficientDataError("Normality check needs at least one value")

    mean = float(np.mean(arr))
    residuals = arr - mean
    counts, bin_edges = np.histogram(arr, bins=bins)

    if len(arr) >= 2 and np.ptp(arr) > 0:
        (osm, osr), (_, _, r) = probplot(residuals, dist="norm")
        skewness = float(skew(arr))
        excess_kurtosis = float(kurtosis(arr))
    else:
        osm, osr, r = np.zeros(len(arr)), np.sort(residuals), np.nan
        skewness, excess_kurtosis = np.nan, np.nan

    shapiro_stat, shapiro_p = None, None
    if formal_test and len(arr) >= 3 and np.ptp(arr) > 0:
        sample = arr
        if len(arr) > SHAPIRO_MAX_SAMPLE:
            rng = np.random.default_rng(random_seed)
            sample = rng.choice(arr, size=SHAPIRO_MAX_SAMPLE, replace=False)
            logger.debug(f"Shapiro-Wilk run on a subsample of {SHAPIRO_MAX_SAMPLE} of {len(arr)} values")
        res = shapiro(sample)
        shapiro_stat, shapiro_p = float(res.statistic), float(res.pvalue)

    return NormalityDiagnostic(
        n=len(arr),
        mean=mean,
        sd=float(np.std(arr, ddof=1)) if len(arr) > 1 else np.nan,
        counts=counts,
        bin_edges=bin_edges,
        residuals=residuals,
        theoretical_quantiles=np.asarray(osm),
        ordered_residuals=np.asarray(osr),
        qq_correlation=float(r),
        skewness=skewness,
        excess_kurtosis=excess_kurtosis,
        shapiro_statistic=shapiro_stat,
        shapiro_p_value=shapiro_p,
    )
