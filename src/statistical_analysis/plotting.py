import logging

import matplotlib.pyplot as plt
import numpy as np

from src.data_preparation.exploration import TableProfile
from src.statistical_analysis.pipeline import PipelineOutput
from src.statistical_analysis.statistical_tests import AnovaResult, ChiSquareResult, TTestResult

logger = logging.getLogger(__name__)


def _plot_group_histograms(ax, result: TTestResult):
    """
    Overlay the per-group histograms kept in the normality diagnostics.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    result : TTestResult
        Two-sample t-test result with per-group diagnostics.
    """
    for label, diag in result.normality.items():
        ax.stairs(diag.counts / diag.counts.sum(), diag.bin_edges, fill=True, alpha=0.5, label=label)
    ax.set_xlabel("BMI")
    ax.set_ylabel("Share of group")
    ax.set_title("BMI by cardiovascular disease")
    ax.legend(title="cardio")


def _plot_contingency(ax, result: ChiSquareResult):
    """
    Grouped bars of observed and expected counts.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    result : ChiSquareResult
        Chi-square result with observed and expected tables.
    """
    x = np.arange(len(result.row_labels))
    width = 0.8 / len(result.col_labels)
    for j, col in enumerate(result.col_labels):
        offset = (j - (len(result.col_labels) - 1) / 2) * width
        ax.bar(x + offset, result.observed[:, j], width, alpha=0.7, label=f"cardio={col}")
        ax.scatter(x + offset, result.expected[:, j], color="black", marker="_", s=200, zorder=3)
    ax.set_xticks(x)
    ax.set_xticklabels(result.row_labels)
    ax.set_ylabel("Count")
    ax.set_title("Cholesterol by cardiovascular disease\n(bars observed, ticks expected)")
    ax.legend()


def _plot_residual_histogram(ax, result: AnovaResult):
    """
    Plot histogram of ANOVA residuals.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    result : AnovaResult
        ANOVA result with residual diagnostics.
    """
    diag = result.residual_normality
    ax.stairs(diag.counts, diag.bin_edges, fill=True, alpha=0.6, color="lightgray", edgecolor="black")
    ax.set_xlabel("Residual (years)")
    ax.set_ylabel("Count")
    ax.set_title("Residuals Histogram (age ~ gluc)")


def _plot_residual_qq(ax, result: AnovaResult):
    """
    Q-Q plot of ANOVA residuals against the normal distribution.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    result : AnovaResult
        ANOVA result with residual diagnostics.
    """
    diag = result.residual_normality
    ax.plot(diag.theoretical_quantiles, diag.ordered_residuals, "o", markersize=2, alpha=0.5)
    if len(diag.theoretical_quantiles) > 1:
        slope, intercept = np.polyfit(diag.theoretical_quantiles, diag.ordered_residuals, 1)
        ax.plot(diag.theoretical_quantiles, slope * diag.theoretical_quantiles + intercept, "r-")
    ax.set_xlabel("Theoretical quantiles")
    ax.set_ylabel("Ordered residuals")
    ax.set_title("Q-Q Plot for Residuals")
    ax.grid(True, alpha=0.3)


def _finish(fig, save_path):
    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info(f"Plot saved to {save_path}")
    else:
        plt.show()


def plot_test_output(output: PipelineOutput, save_path: str = None):
    """
    Plot the diagnostics of the hypothesis tests.

    Draws the per-group BMI histograms, the observed and expected cholesterol
    counts, and the histogram and Q-Q plot of the ANOVA residuals, for the
    tests present in ``output``.

    Parameters
    ----------
    output : PipelineOutput
        Output of run_test_pipeline.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.

    Raises
    ------
    RuntimeError
        If no test result can be plotted.
    """
    panels = []
    for result in output.results.values():
        if isinstance(result, TTestResult) and result.normality:
            panels.append((_plot_group_histograms, result))
        elif isinstance(result, ChiSquareResult):
            panels.append((_plot_contingency, result))
        elif isinstance(result, AnovaResult) and result.residual_normality is not None:
            panels.append((_plot_residual_histogram, result))
            panels.append((_plot_residual_qq, result))

    if len(panels) == 0:
        raise RuntimeError(
            f"No plottable test results found. Check output.results = {list(output.results)}."
        )

    num_plots = len(panels)
    fig, axes = plt.subplots(1, num_plots, figsize=(5 * num_plots, 5))

    if num_plots == 1:
        axes = [axes]

    for ax, (plot_fn, result) in zip(axes, panels):
        plot_fn(ax, result)

    _finish(fig, save_path)


def plot_correlation_matrix(profile: TableProfile, save_path: str = None):
    """
    Heatmap of the numeric correlation matrix of a profiled table.

    Parameters
    ----------
    profile : TableProfile
        Output of profile_table.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.
    """
    corr = profile.correlation
    if corr.empty:
        raise RuntimeError("Correlation matrix is empty, no numeric columns to plot")

    fig, ax = plt.subplots(figsize=(1 + 0.7 * len(corr), 0.7 * len(corr)))
    image = ax.imshow(corr.values, cmap="RdBu_r", vmin=-1, vmax=1)
    ax.set_xticks(range(len(corr.columns)))
    ax.set_xticklabels(corr.columns, rotation=45, ha="right")
    ax.set_yticks(range(len(corr.index)))
    ax.set_yticklabels(corr.index)
    for i in range(len(corr.index)):
        for j in range(len(corr.columns)):
            ax.text(j, i, f"{corr.values[i, j]:.2f}", ha="center", va="center", fontsize=7)
    fig.colorbar(image, ax=ax)
    ax.set_title("Correlation of numeric features")

    _finish(fig, save_path)
