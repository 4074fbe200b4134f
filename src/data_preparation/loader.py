import io
import logging
from pathlib import Path
from urllib.parse import urlparse

import pandas as pd
import requests
from pydantic import ValidationError

from src.data_preparation.cleaning import SchemaError
from src.data_preparation.config.schema import RAW_COLUMNS, RawRecord
from src.data_preparation.config.settings import DEFAULT_DATA_SOURCE, DOWNLOAD_TIMEOUT

logger = logging.getLogger(__name__)

# Number of leading records type-checked against RawRecord
SCHEMA_SAMPLE_SIZE = 100


class DatasetLoadError(Exception):
    """Raised when the dataset cannot be read from its source."""

    pass


def is_url(path: str) -> bool:
    """Check if a string is a URL."""
    try:
        result = urlparse(path)
        return result.scheme in ("http", "https")
    except ValueError:
        return False


def download_csv(url: str, timeout: int = DOWNLOAD_TIMEOUT) -> str:
    """
    Download a CSV file from a URL.

    Parameters
    ----------
    url : str
        URL to download from.
    timeout : int
        Request timeout in seconds.

    Returns
    -------
    str
        CSV content as text.

    Raises
    ------
    DatasetLoadError
        If the download fails.
    """
    logger.info(f"Downloading dataset from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DatasetLoadError(f"Failed to download dataset from {url}: {e}") from e

    return response.text


def validate_raw_records(df: pd.DataFrame, sample_size: int = SCHEMA_SAMPLE_SIZE) -> None:
    """
    Type-check the first ``sample_size`` records against the raw schema.

    Raises
    ------
    SchemaError
        If a raw column is missing or a sampled record does not validate.
    """
    missing = [c for c in RAW_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(f"Raw dataset is missing columns: {missing}")

    for idx, record in enumerate(df.head(sample_size).to_dict(orient="records")):
        try:
            RawRecord.model_validate(record)
        except ValidationError as e:
            raise SchemaError(f"Record {idx} does not match the raw schema: {e}") from e


def load_raw_table(source: str | None = None, validate: bool = True) -> pd.DataFrame:
    """
    Load the raw cardiovascular dataset.

    Parameters
    ----------
    source : str, optional
        Local CSV path or http(s) URL. Defaults to ``CARDIO_STATS_DATA_SOURCE``.
    validate : bool
        Type-check leading records against the raw schema. Defaults to True.

    Returns
    -------
    pd.DataFrame
        The raw table, rows in file order.

    Raises
    ------
    DatasetLoadError
        If the file is missing, cannot be downloaded or cannot be parsed.
    SchemaError
        If ``validate`` is set and the table does not match the raw schema.
    """
    source = source or DEFAULT_DATA_SOURCE

    try:
        if is_url(source):
            df = pd.read_csv(io.StringIO(download_csv(source)))
        else:
            path = Path(source)
            if not path.is_file():
                raise DatasetLoadError(f"Dataset file does not exist: {path}")
            df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DatasetLoadError(f"Failed to parse dataset from {source}: {e}") from e

    logger.info(f"Loaded {len(df)} rows and {len(df.columns)} columns from {source}")

    if validate:
        validate_raw_records(df)

    return df
