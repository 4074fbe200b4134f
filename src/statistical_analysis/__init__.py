"""Hypothesis tests relating health factors to cardiovascular disease."""

from src.statistical_analysis.assumptions import (
    NormalityDiagnostic,
    VarianceDecision,
    VarianceTestResult,
    normality_check,
    variance_equality_test,
)
from src.statistical_analysis.exceptions import (
    InsufficientDataError,
    LowExpectedFrequencyWarning,
)
from src.statistical_analysis.pipeline import (
    HYPOTHESES,
    PipelineOutput,
    analyze_age_vs_glucose,
    analyze_bmi_vs_cardio,
    analyze_cholesterol_vs_cardio,
    run_test_pipeline,
)
from src.statistical_analysis.report import (
    ReportCollector,
    generate_markdown_report,
)
from src.statistical_analysis.statistical_tests import (
    AnovaResult,
    ChiSquareResult,
    HypothesisTestResult,
    TTestResult,
    chi_square_independence_test,
    one_way_anova,
    run_t_test,
)
from src.statistical_analysis.utils import (
    contingency_table,
    expected_frequencies,
    group_values,
)

__all__ = [
    # Main pipeline
    "HYPOTHESES",
    "PipelineOutput",
    "run_test_pipeline",
    "analyze_bmi_vs_cardio",
    "analyze_cholesterol_vs_cardio",
    "analyze_age_vs_glucose",
    # Assumption checks
    "NormalityDiagnostic",
    "VarianceDecision",
    "VarianceTestResult",
    "normality_check",
    "variance_equality_test",
    # Statistical tests
    "AnovaResult",
    "ChiSquareResult",
    "HypothesisTestResult",
    "TTestResult",
    "chi_square_independence_test",
    "one_way_anova",
    "run_t_test",
    # Errors
    "InsufficientDataError",
    "LowExpectedFrequencyWarning",
    # Report generation
    "ReportCollector",
    "generate_markdown_report",
    # Utilities
    "contingency_table",
    "expected_frequencies",
    "group_values",
]
