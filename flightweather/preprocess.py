import logging
from typing import List, Optional

import pandas as pd

from flightweather.schema import SUMMARY_COLUMNS, WEATHER_PREDICTORS

logger = logging.getLogger(__name__)

FLIGHT_NUMERIC_COLS = ['year', 'month', 'day', 'hour', 'minute', 'dep_time', 'arr_time'] + SUMMARY_COLUMNS
WEATHER_NUMERIC_COLS = ['year', 'month', 'day', 'hour', 'dewp', 'wind_dir'] + WEATHER_PREDICTORS


def parse_time_hour(values: pd.Series) -> pd.Series:
    """
    Parses a time_hour column into naive timestamps truncated to the hour.
    Timezone-aware values are converted to UTC before the timezone is dropped,
    so flights and weather read from the same source always line up.
    """
    parsed = pd.to_datetime(values, errors='coerce', utc=True)
    return parsed.dt.tz_localize(None).dt.floor('h')


def _coerce_numeric(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce')
    return df


def prepare_flights(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerces the numeric flight columns and normalizes the hourly join key.

    Args:
        df: The raw flights table from load.py.

    Returns:
        A cleaned copy of the table; row count is unchanged.
    """
    df = _coerce_numeric(df.copy(), FLIGHT_NUMERIC_COLS)
    df['time_hour'] = parse_time_hour(df['time_hour'])

    cancelled = df['dep_delay'].isna().sum()
    logger.info(f"Prepared {len(df)} flights ({cancelled} without a recorded departure)")
    return df


def prepare_weather(df: pd.DataFrame) -> pd.DataFrame:
    """Same as prepare_flights, for the weather table."""
    df = _coerce_numeric(df.copy(), WEATHER_NUMERIC_COLS)
    df['time_hour'] = parse_time_hour(df['time_hour'])
    logger.info(f"Prepared {len(df)} weather observations")
    return df


def weather_key_duplicates(weather: pd.DataFrame, keys: List[str]) -> pd.DataFrame:
    """Returns every weather row whose join key occurs more than once."""
    return weather[weather.duplicated(subset=keys, keep=False)]


def deduplicate_weather(weather: pd.DataFrame, keys: List[str], keep: Optional[str] = 'first') -> pd.DataFrame:
    """
    Drops weather rows with a repeated join key so the left join cannot fan out.

    Args:
        weather: The prepared weather table.
        keys: The join key columns.
        keep: 'first' or 'last' occurrence to keep; None leaves the table untouched.

    Returns:
        The weather table with unique keys (when keep is set).
    """
    if keep is None:
        return weather
    if keep not in ('first', 'last'):
        raise ValueError(f"keep must be 'first', 'last' or None, got {keep!r}")

    deduped = weather.drop_duplicates(subset=keys, keep=keep)
    dropped = len(weather) - len(deduped)
    if dropped:
        logger.warning(f"Dropped {dropped} weather rows with a repeated {keys} key (kept {keep})")
    return deduped
