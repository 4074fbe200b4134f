"""Cleaning of the raw cardiovascular table: column pruning, recoding and outlier removal."""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from src.data_preparation.config.schema import PhysiologicalBounds

logger = logging.getLogger(__name__)


class SchemaError(Exception):
    """Raised when an expected column is missing or has the wrong type."""

    pass


class EmptyResultError(Exception):
    """Raised when cleaning removes every row of the table."""

    pass


# Columns that carry no information for the analysis
DROP_COLUMNS = ["id", "bp_category_encoded", "age"]

NUMERIC_COLUMNS = ["age_years", "height", "weight", "ap_hi", "ap_lo", "bmi"]
BINARY_COLUMNS = ["smoke", "alco", "active", "cardio"]
ORDINAL_COLUMNS = ["cholesterol", "gluc"]
EXPECTED_COLUMNS = NUMERIC_COLUMNS + ["gender", "bp_category"] + BINARY_COLUMNS + ORDINAL_COLUMNS

GENDER_LEVELS = {1: "Female", 2: "Male"}
BINARY_LEVELS = {0: "No", 1: "Yes"}
ORDINAL_LEVELS = {1: "Normal", 2: "Above", 3: "WellAbove"}


@dataclass
class CleaningSummary:
    """Bookkeeping of what the cleaner removed."""

    rows_before: int
    rows_after: int
    dropped_columns: list[str]
    failed_by_rule: dict[str, int] = field(default_factory=dict)

    @property
    def rows_removed(self) -> int:
        return self.rows_before - self.rows_after


def check_schema(df: pd.DataFrame) -> None:
    """
    Check that every column needed for the analysis is present.

    Raises
    ------
    SchemaError
        If a column is missing or a numeric column holds non-numeric data.
    """
    missing = [c for c in EXPECTED_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(f"Missing expected columns: {missing}")

    wrong_type = [c for c in NUMERIC_COLUMNS if not pd.api.types.is_numeric_dtype(df[c])]
    if wrong_type:
        raise SchemaError(f"Columns must be numeric: {wrong_type}")


def _recode(series: pd.Series, mapping: dict, ordered: bool = False) -> pd.Series:
    """
    Turn integer codes into a categorical with the labels of ``mapping``.

    A column that already holds the target labels is only re-cast, so
    recoding twice is a no-op. A column none of whose values can be mapped raises ``SchemaError``;
    a few stray codes become missing values.
    """
    labels = list(mapping.values())
    dtype = pd.CategoricalDtype(categories=labels, ordered=ordered)

    if not pd.api.types.is_numeric_dtype(series):
        already_labelled = series.dropna().isin(labels).all()
        if already_labelled:
            return series.astype(dtype)

    recoded = series.map(mapping).astype(dtype)

    n_present = int(series.notna().sum())
    if n_present > 0 and recoded.isna().all():
        raise SchemaError(
            f"Column '{series.name}' has no value in {list(mapping)} or {labels}: "
            f"got {sorted(series.dropna().astype(str).unique())[:5]}"
        )

    n_unmapped = int(recoded.isna().sum() - series.isna().sum())
    if n_unmapped > 0:
        logger.warning(
            f"Column '{series.name}': {n_unmapped} value(s) outside {list(mapping)} set to missing"
        )
    return recoded


def outlier_masks(df: pd.DataFrame, bounds: PhysiologicalBounds | None = None) -> pd.DataFrame:
    """
    Evaluate each plausibility rule on every row.

    Returns
    -------
    pd.DataFrame
        Boolean frame aligned with ``df``, one column per rule, True where the
        row passes the rule.
    """
    if bounds is None:
        bounds = PhysiologicalBounds()

    masks = {}
    for column in ["height", "weight", "bmi", "ap_hi", "ap_lo"]:
        low, high = getattr(bounds, column)
        masks[column] = df[column].between(low, high)
    masks["ap_order"] = df["ap_hi"] >= df["ap_lo"]
    masks["finite"] = ~df[NUMERIC_COLUMNS].isin([np.inf, -np.inf]).any(axis=1)

    return pd.DataFrame(masks, index=df.index)


def clean(raw: pd.DataFrame, bounds: PhysiologicalBounds | None = None) -> pd.DataFrame:
    """
    Derive the analysis table from the raw table.

    Steps, in order: drop the identifier, pre-encoded blood pressure category
    and age-in-days columns; recode gender, binary flags, cholesterol and
    glucose (ordered) and blood pressure category into categoricals; drop rows
    violating any physiological bound, with ap_hi < ap_lo or with an
    infinite numeric value.

    Parameters
    ----------
    raw : pd.DataFrame
        Raw table. It is not modified.
    bounds : PhysiologicalBounds, optional
        Plausibility ranges. Defaults to the standard ranges.

    Returns
    -------
    pd.DataFrame
        New cleaned table, rows in their original order.

    Raises
    ------
    SchemaError
        If expected columns are missing or have the wrong type, or a coded
        column holds no recognisable code.
    EmptyResultError
        If no rows survive the outlier filter.
    """
    check_schema(raw)

    df = raw.drop(columns=[c for c in DROP_COLUMNS if c in raw.columns])

    df["gender"] = _recode(df["gender"], GENDER_LEVELS)
    for column in BINARY_COLUMNS:
        df[column] = _recode(df[column], BINARY_LEVELS)
    for column in ORDINAL_COLUMNS:
        df[column] = _recode(df[column], ORDINAL_LEVELS, ordered=True)
    df["bp_category"] = df["bp_category"].astype("category")

    masks = outlier_masks(df, bounds)
    keep = masks.all(axis=1)
    df = df[keep].copy()

    logger.info(f"Cleaning kept {len(df)} of {len(raw)} rows ({int((~keep).sum())} outliers removed)")

    if df.empty:
        raise EmptyResultError(
            f"All {len(raw)} rows were removed by the physiological bounds filter"
        )

    return df


def summarize_cleaning(
    raw: pd.DataFrame, cleaned: pd.DataFrame, bounds: PhysiologicalBounds | None = None
) -> CleaningSummary:
    """Count the raw rows failing each rule and compare table sizes."""
    masks = outlier_masks(raw, bounds)
    return CleaningSummary(
        rows_before=len(raw),
        rows_after=len(cleaned),
        dropped_columns=[c for c in DROP_COLUMNS if c in raw.columns],
        failed_by_rule={rule: int((~masks[rule]).sum()) for rule in masks.columns},
    )
