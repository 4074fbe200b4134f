"""Loading, cleaning and profiling of the cardiovascular dataset."""

from src.data_preparation.cleaning import (
    CleaningSummary,
    EmptyResultError,
    SchemaError,
    clean,
    outlier_masks,
    summarize_cleaning,
)
from src.data_preparation.exploration import TableProfile, profile_table
from src.data_preparation.loader import DatasetLoadError, load_raw_table

__all__ = [
    # Loading
    "DatasetLoadError",
    "load_raw_table",
    # Cleaning
    "CleaningSummary",
    "EmptyResultError",
    "SchemaError",
    "clean",
    "outlier_masks",
    "summarize_cleaning",
    # Profiling
    "TableProfile",
    "profile_table",
]
