import logging
from dataclasses import dataclass

import pandas as pd

logger = logging.getLogger(__name__)

FLAG_COLUMNS = ["smoke", "alco", "active", "cardio"]


@dataclass
class TableProfile:
    """Descriptive overview of a table."""

    n_rows: int
    n_columns: int
    n_duplicates: int
    missing_counts: pd.Series
    flag_counts: dict[str, dict]
    correlation: pd.DataFrame


def profile_table(df: pd.DataFrame) -> TableProfile:
    """
    Summarize a raw or cleaned table before testing.

    Parameters
    ----------
    df : pd.DataFrame
        Table to describe.

    Returns
    -------
    TableProfile
        Shape, duplicated rows, missing values per column (largest first),
        value counts of the binary flags and the correlation matrix of the
        numeric columns.
    """
    missing_counts = df.isna().sum().sort_values(ascending=False)
    flag_counts = {
        c: {str(k): int(v) for k, v in df[c].value_counts(sort=False).items()}
        for c in FLAG_COLUMNS
        if c in df.columns
    }
    correlation = df.select_dtypes(include="number").corr()

    profile = TableProfile(
        n_rows=len(df),
        n_columns=len(df.columns),
        n_duplicates=int(df.duplicated().sum()),
        missing_counts=missing_counts,
        flag_counts=flag_counts,
        correlation=correlation,
    )

    logger.info(
        f"Profiled table: {profile.n_rows} rows, {profile.n_columns} columns, "
        f"{profile.n_duplicates} duplicated rows, {int(missing_counts.sum())} missing values"
    )
    return profile
