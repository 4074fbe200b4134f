import argparse
import logging
import pathlib
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from src.data_preparation import (
    DatasetLoadError,
    EmptyResultError,
    SchemaError,
    clean,
    load_raw_table,
    profile_table,
    summarize_cleaning,
)
from src.statistical_analysis.pipeline import HYPOTHESES, run_test_pipeline
from src.statistical_analysis.plotting import plot_correlation_matrix, plot_test_output
from src.statistical_analysis.report import ReportCollector, generate_markdown_report


def configure_logging(log_level: str):
    """Configure logging with the specified level."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    return logging.getLogger(__name__)


def _load_and_clean(source, logger):
    """Load the raw table and clean it. Fatal data errors exit with status 1."""
    try:
        df_raw = load_raw_table(source)
        df_clean = clean(df_raw)
    except (DatasetLoadError, SchemaError, EmptyResultError) as e:
        logger.error(f"Aborting: {e}")
        raise SystemExit(1) from e
    return df_raw, df_clean


def cmd_run(args):
    """Run the full cleaning and hypothesis testing pipeline."""
    logger = configure_logging(args.log_level)

    report_plots_enabled = args.report and args.report_plots

    # Setup report output paths
    if args.report:
        if args.report is True:
            # Default path
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            report_path = pathlib.Path(f"reports/cardio_report_{timestamp}.md")
        else:
            report_path = pathlib.Path(args.report)

        if report_plots_enabled:
            figures_dir = report_path.parent / "figures"
            figures_dir.mkdir(parents=True, exist_ok=True)

    df_raw, df_clean = _load_and_clean(args.data, logger)
    summary = summarize_cleaning(df_raw, df_clean)
    logger.info(
        f"Cleaned table: {summary.rows_after} rows ({summary.rows_removed} removed), "
        f"failing by rule: {summary.failed_by_rule}"
    )

    try:
        output = run_test_pipeline(df_clean, alpha=args.alpha, skip=tuple(args.skip or ()))
    except ValueError as e:
        logger.error(f"Invalid analysis settings: {e}")
        raise SystemExit(2) from e

    for name, result in output.results.items():
        print(
            f"{name:<24} {result.test_name:<42} statistic={result.statistic:10.4f} "
            f"p={result.p_value:.4g}  {result.decision}"
        )
    for name, error in output.errors.items():
        print(f"{name:<24} FAILED: {error}")

    plot_path = None
    if output.results:
        try:
            if report_plots_enabled:
                plot_path = str(figures_dir / "hypothesis_diagnostics.png")
                plot_test_output(output, save_path=plot_path)
            elif args.plot:
                plot_test_output(output)
        except Exception as e:
            logger.error(f"Plotting failed: {str(e)}")
            plot_path = None

    if args.report:
        collector = ReportCollector(source=args.data or "default dataset", cleaning=summary)
        collector.add_pipeline_output(output)
        if plot_path:
            collector.plot_paths.append(plot_path)
        generate_markdown_report(collector, str(report_path))


def cmd_profile(args):
    """Describe the raw and cleaned tables."""
    logger = configure_logging(args.log_level)

    df_raw, df_clean = _load_and_clean(args.data, logger)

    profiles = {}
    for label, df in (("raw", df_raw), ("clean", df_clean)):
        profile = profiles[label] = profile_table(df)
        print(f"\n{label} table: {profile.n_rows} rows x {profile.n_columns} columns")
        print(f"  duplicated rows: {profile.n_duplicates}")
        missing = profile.missing_counts[profile.missing_counts > 0]
        print(f"  missing values: {dict(missing) if len(missing) else 'none'}")
        for flag, counts in profile.flag_counts.items():
            print(f"  {flag}: {counts}")

    if args.plot:
        plot_correlation_matrix(profiles["raw"])


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Cardio Stats - Health factors and cardiovascular disease hypothesis tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Clean the dataset and run the hypothesis tests")
    run_parser.add_argument(
        "--data",
        help="CSV file path or URL (default: CARDIO_STATS_DATA_SOURCE)",
    )
    run_parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        help="Significance level (default: CARDIO_STATS_ALPHA or 0.05)",
    )
    run_parser.add_argument(
        "--skip",
        nargs="*",
        choices=list(HYPOTHESES),
        help="Hypotheses not to test",
    )
    run_parser.add_argument(
        "--plot",
        action="store_true",
        help="Show diagnostic plots (histograms, Q-Q plot)",
    )
    run_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/cardio_report_<timestamp>.md)",
    )
    run_parser.add_argument(
        "--report-plots",
        action="store_true",
        help="Include plots in the report (requires --report)",
    )
    run_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )
    run_parser.set_defaults(func=cmd_run)

    # Profile command
    profile_parser = subparsers.add_parser("profile", help="Describe the raw and cleaned dataset")
    profile_parser.add_argument(
        "--data",
        help="CSV file path or URL (default: CARDIO_STATS_DATA_SOURCE)",
    )
    profile_parser.add_argument(
        "--plot",
        action="store_true",
        help="Show the correlation matrix of the raw numeric features",
    )
    profile_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )
    profile_parser.set_defaults(func=cmd_profile)

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command is None:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
