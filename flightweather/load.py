import logging
import os
import re

import pandas as pd

from flightweather.schema import FlightRecord, WeatherObservation, require_columns

logger = logging.getLogger(__name__)

BUNDLED_SOURCE = 'nycflights13'


def clean_col_names(df: pd.DataFrame) -> pd.DataFrame:
    """
    Cleans and standardizes DataFrame column names.
    - Converts to lowercase
    - Replaces spaces and special characters with underscores
    - Strips leading/trailing whitespace and underscores
    - Suffixes repeated names with .1, .2, ...
    """
    cleaned = []
    for col in (str(c) for c in df.columns):
        new_col = col.strip().lower()
        new_col = re.sub(r'[^a-z0-9]', '_', new_col)
        new_col = re.sub(r'_+', '_', new_col)
        cleaned.append(new_col.strip('_'))

    cols = pd.Series(cleaned)
    for dup in cols[cols.duplicated()].unique():
        positions = cols[cols == dup].index.tolist()
        cols[positions] = [dup + '.' + str(i) if i != 0 else dup for i in range(len(positions))]

    df = df.copy()
    df.columns = cols.tolist()
    return df


def _read_bundled(name: str) -> pd.DataFrame:
    import nycflights13

    return getattr(nycflights13, name).copy()


def _read_table(source: str, name: str) -> pd.DataFrame:
    if source == BUNDLED_SOURCE:
        logger.info(f"Loading '{name}' from the bundled {BUNDLED_SOURCE} package")
        return _read_bundled(name)

    csv_path = os.path.join(source, f"{name}.csv")
    if not os.path.exists(csv_path):
        raise FileNotFoundError(f"No '{name}.csv' found in the data directory: {source}")

    logger.info(f"Loading '{name}' from {csv_path}")
    return clean_col_names(pd.read_csv(csv_path, low_memory=False))


def load_flights(source: str = BUNDLED_SOURCE) -> pd.DataFrame:
    """
    Loads the flight-records table.

    Args:
        source: 'nycflights13' for the bundled dataset, or a directory containing flights.csv.

    Returns:
        A DataFrame with one row per flight and the FlightRecord columns.
    """
    df = _read_table(source, 'flights')
    require_columns(df, FlightRecord.columns(), 'flights')
    logger.info(f"Loaded {len(df)} flights with {len(df.columns)} columns")
    return df


def load_weather(source: str = BUNDLED_SOURCE) -> pd.DataFrame:
    """
    Loads the hourly weather-observations table.

    Args:
        source: 'nycflights13' for the bundled dataset, or a directory containing weather.csv.

    Returns:
        A DataFrame with one row per origin airport and hour.
    """
    df = _read_table(source, 'weather')
    require_columns(df, WeatherObservation.columns(), 'weather')
    logger.info(f"Loaded {len(df)} weather observations")
    return df
