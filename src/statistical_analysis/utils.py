import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def check_alpha(alpha: float) -> None:
    """Raise ValueError unless 0 < alpha < 1."""
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be between 0 and 1 (exclusive), got {alpha}")


def _levels(series: pd.Series) -> list:
    """Declared category order for categoricals, sorted unique values otherwise."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return list(series.cat.categories)
    return sorted(series.dropna().unique())


def group_values(df: pd.DataFrame, value_col: str, group_col: str) -> dict[str, np.ndarray]:
    """
    Partition a numeric column by the levels of a grouping column.

    Parameters
    ----------
    df : pd.DataFrame
        Source table. It is not modified.
    value_col : str
        Numeric column to partition.
    group_col : str
        Grouping column. For categoricals every declared level is returned,
        in declared order, even when it has no rows.

    Returns
    -------
    dict
        {level: float array of values}. Rows with a missing value or group
        are left out.
    """
    subset = df[[value_col, group_col]].dropna()
    groups = {}
    for level in _levels(df[group_col]):
        values = subset.loc[subset[group_col] == level, value_col]
        groups[str(level)] = values.to_numpy(dtype=float)
    return groups


def contingency_table(df: pd.DataFrame, row_col: str, col_col: str) -> pd.DataFrame:
    """
    Cross-tabulate two categorical columns.

    Returns
    -------
    pd.DataFrame
        Counts with one row per level of ``row_col`` and one column per level
        of ``col_col``, declared levels kept even when empty.
    """
    row_levels = _levels(df[row_col])
    col_levels = _levels(df[col_col])

    counts = (
        df.groupby([row_col, col_col], observed=False)
        .size()
        .unstack(fill_value=0)
        .reindex(index=row_levels, columns=col_levels, fill_value=0)
    )
    counts.index = [str(level) for level in counts.index]
    counts.columns = [str(level) for level in counts.columns]
    return counts.astype(int)


def expected_frequencies(observed) -> np.ndarray:
    """
    Cell counts expected under independence of rows and columns.

    Each cell is row_total * column_total / grand_total, so the expected
    table keeps the observed row and column totals.

    Raises
    ------
    ValueError
        If the table is not two-dimensional, holds negative counts or sums to
        zero.
    """
    table = np.asarray(observed, dtype=float)
    if table.ndim != 2:
        raise ValueError(f"Contingency table must be 2-dimensional, got shape {table.shape}")
    if np.any(table < 0):
        raise ValueError("Contingency table counts must be non-negative")

    total = table.sum()
    if total == 0:
        raise ValueError("Contingency table is empty (all counts are zero)")

    return np.outer(table.sum(axis=1), table.sum(axis=0)) / total
