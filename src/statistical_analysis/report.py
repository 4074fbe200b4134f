"""
Report generation for hypothesis test results.

This module collects the cleaning summary and the pipeline output of an
analysis run and renders them as a Markdown report.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from src.data_preparation.cleaning import CleaningSummary
from src.statistical_analysis.pipeline import PipelineOutput
from src.statistical_analysis.statistical_tests import (
    AnovaResult,
    ChiSquareResult,
    HypothesisTestResult,
    TTestResult,
)

logger = logging.getLogger(__name__)

HYPOTHESIS_TITLES = {
    "bmi_vs_cardio": "BMI and cardiovascular disease",
    "cholesterol_vs_cardio": "Cholesterol and cardiovascular disease",
    "age_vs_glucose": "Age and glucose level",
}


@dataclass
class HypothesisEntry:
    """Report line for one hypothesis."""

    name: str
    title: str
    result: HypothesisTestResult = None
    error: str = None


@dataclass
class ReportCollector:
    """Collects the outputs of an analysis run for report generation."""

    source: str = None
    cleaning: CleaningSummary = None
    entries: list[HypothesisEntry] = field(default_factory=list)
    plot_paths: list[str] = field(default_factory=list)

    def add_pipeline_output(self, output: PipelineOutput):
        """
        Add every result and error of a pipeline run.

        Parameters
        ----------
        output : PipelineOutput
            Output from run_test_pipeline().
        """
        for name, result in output.results.items():
            self.entries.append(
                HypothesisEntry(name=name, title=HYPOTHESIS_TITLES.get(name, name), result=result)
            )
        for name, error in output.errors.items():
            self.entries.append(
                HypothesisEntry(name=name, title=HYPOTHESIS_TITLES.get(name, name), error=error)
            )

    def get_summary_stats(self) -> dict:
        """
        Count tested, failed and rejected hypotheses.

        Returns
        -------
        dict
            Summary counts.
        """
        tested = [e for e in self.entries if e.error is None]
        rejected = [e for e in tested if e.result.decision == "reject H0"]
        flagged = [e for e in tested if e.result.warning_messages]

        return {
            "total_hypotheses": len(self.entries),
            "tested": len(tested),
            "failed": len(self.entries) - len(tested),
            "rejected": len(rejected),
            "with_warnings": len(flagged),
        }


def _format_dof(dof) -> str:
    if dof is None:
        return "-"
    if isinstance(dof, tuple):
        return ", ".join(f"{d:g}" for d in dof)
    return f"{dof:.4g}"


def _result_details(result: HypothesisTestResult) -> list[str]:
    lines = []

    if isinstance(result, TTestResult):
        for label in result.group_labels:
            lines.append(
                f"- Group {label}: n = {result.group_sizes[label]}, mean = {result.group_means[label]:.4f}"
            )
        lines.append(
            f"- Mean difference ({result.group_labels[0]} - {result.group_labels[1]}): "
            f"{result.mean_difference:.4f}, {result.confidence_level:.0%} CI "
            f"[{result.confidence_interval[0]:.4f}, {result.confidence_interval[1]:.4f}]"
        )
        if result.variance_test:
            vt = result.variance_test
            lines.append(
                f"- Variance check ({vt.method}): statistic = {vt.statistic:.4f}, "
                f"p-value = {vt.p_value:.4g} -> {vt.conclusion.value} variances, "
                f"{result.variant}'s t-test used"
            )
        for label, diag in result.normality.items():
            if diag.shapiro_p_value is not None:
                lines.append(
                    f"- Normality ({label}): skewness = {diag.skewness:.3f}, "
                    f"Shapiro-Wilk p-value = {diag.shapiro_p_value:.4g}"
                )

    elif isinstance(result, ChiSquareResult):
        header = "| | " + " | ".join(result.col_labels) + " |"
        lines.append(header)
        lines.append("|:--" * (len(result.col_labels) + 1) + "|")
        for i, row in enumerate(result.row_labels):
            cells = [
                f"{result.observed[i, j]} ({result.expected[i, j]:.1f})"
                for j in range(len(result.col_labels))
            ]
            lines.append(f"| {row} | " + " | ".join(cells) + " |")
        lines.append("")
        lines.append("Observed counts with expected counts in parentheses.")

    elif isinstance(result, AnovaResult):
        for label in result.group_labels:
            lines.append(
                f"- Group {label}: n = {result.group_sizes[label]}, mean = {result.group_means[label]:.4f}"
            )
        lines.append(
            f"- SS between = {result.ss_between:.4f}, SS within = {result.ss_within:.4f}"
        )
        if result.variance_test:
            vt = result.variance_test
            lines.append(
                f"- Variance check (bartlett): statistic = {vt.statistic:.4f}, "
                f"p-value = {vt.p_value:.4g} -> {vt.conclusion.value} variances"
            )
        if result.residual_normality and result.residual_normality.shapiro_p_value is not None:
            lines.append(
                f"- Residual normality: Shapiro-Wilk p-value = "
                f"{result.residual_normality.shapiro_p_value:.4g}"
            )

    for message in result.warning_messages:
        lines.append(f"- **Warning:** {message}")

    return lines


def generate_markdown_report(collector: ReportCollector, output_path: str) -> str:
    """
    Generate a Markdown report from collected analysis results.

    Parameters
    ----------
    collector : ReportCollector
        Collector containing analysis results.
    output_path : str
        Path to save the Markdown report.

    Returns
    -------
    str
        Path to the generated report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    stats = collector.get_summary_stats()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines = []

    # Header
    lines.append("# Cardiovascular Hypothesis Test Report")
    lines.append("")
    lines.append(f"**Generated:** {timestamp}")
    lines.append("")
    if collector.source:
        lines.append(f"**Data source:** {collector.source}")
        lines.append("")

    # Cleaning section
    if collector.cleaning:
        c = collector.cleaning
        lines.append("## Data Cleaning")
        lines.append("")
        lines.append(f"- **Rows before cleaning:** {c.rows_before}")
        lines.append(f"- **Rows after cleaning:** {c.rows_after} ({c.rows_removed} removed)")
        lines.append(f"- **Dropped columns:** {', '.join(c.dropped_columns) or '-'}")
        for rule, n_failed in c.failed_by_rule.items():
            lines.append(f"- Rows failing `{rule}`: {n_failed}")
        lines.append("")

    # Summary section
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Hypotheses:** {stats['total_hypotheses']}")
    lines.append(f"- **Tested:** {stats['tested']}")
    lines.append(f"- **Failed:** {stats['failed']}")
    lines.append(f"- **H0 rejected:** {stats['rejected']}")
    lines.append(f"- **Results with warnings:** {stats['with_warnings']}")
    lines.append("")

    # Results table
    lines.append("## Results Overview")
    lines.append("")
    lines.append("| Hypothesis | Test | Statistic | df | p-value | Decision |")
    lines.append("|:-----------|:-----|:----------|:---|:--------|:---------|")

    for e in collector.entries:
        if e.error:
            lines.append(f"| {e.title} | - | - | - | - | Error |")
            continue
        r = e.result
        lines.append(
            f"| {e.title} | {r.test_name} | {r.statistic:.4f} | {_format_dof(r.degrees_of_freedom)} "
            f"| {r.p_value:.4g} | {r.decision} (alpha = {r.alpha}) |"
        )

    lines.append("")

    # Detailed results section
    lines.append("## Detailed Results")
    lines.append("")

    for e in collector.entries:
        lines.append(f"### {e.title}")
        lines.append("")

        if e.error:
            lines.append(f"**Error:** {e.error}")
            lines.append("")
            continue

        lines.append(f"**H0:** {e.result.null_hypothesis}")
        lines.append("")
        lines.extend(_result_details(e.result))
        lines.append("")

    # Plots
    for plot_path in collector.plot_paths:
        plot_rel_path = Path(plot_path).name
        lines.append(f'<img src="figures/{plot_rel_path}" alt="Diagnostic plots" height="300">')
        lines.append("")

    # Write report
    report_content = "\n".join(lines)
    output_path.write_text(report_content)

    logger.info(f"Report generated: {output_path}")
    return str(output_path)
