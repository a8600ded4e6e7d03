import logging
from typing import List, Optional

import pandas as pd

from flightweather.schema import HOURLY_KEYS, WeatherObservation, require_columns

logger = logging.getLogger(__name__)


class JoinCardinalityError(ValueError):
    """Raised when the flights/weather join would add or lose flight rows."""

    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


def check_unique_keys(weather: pd.DataFrame, keys: List[str]) -> None:
    """Raises JoinCardinalityError if any weather key occurs more than once."""
    duplicated = weather.duplicated(subset=keys, keep=False)
    if duplicated.any():
        n_keys = weather.loc[duplicated, keys].drop_duplicates().shape[0]
        raise JoinCardinalityError(
            f"Weather table has {n_keys} {keys} keys that occur more than once "
            f"({int(duplicated.sum())} rows); a left join would duplicate flights."
        )


def join_weather(flights: pd.DataFrame, weather: pd.DataFrame, keys: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Left-joins each flight to the weather observed at its origin in its departure hour.

    Args:
        flights: The prepared flights table.
        weather: The prepared weather table; keys must be unique.
        keys: Join columns. Defaults to origin + time_hour.

    Returns:
        One row per input flight, in input order. Flights without a matching
        weather reading carry nulls in every weather column.

    Raises:
        JoinCardinalityError: if the weather keys are not unique, or the
            joined row count differs from the flight row count.
    """
    keys = list(keys or HOURLY_KEYS)
    require_columns(flights, keys, 'flights')
    require_columns(weather, keys, 'weather')

    # merge matches NaN/NaT keys to each other, so null-keyed readings can never be joined
    null_keys = weather[keys].isna().any(axis=1)
    if null_keys.any():
        logger.warning(f"Dropped {int(null_keys.sum())} weather rows with a null {keys} key before joining")
        weather = weather[~null_keys]
    check_unique_keys(weather, keys)

    # weather columns also present on flights (year, month, ...) only come along as keys
    weather_cols = [col for col in WeatherObservation.columns() if col in weather.columns]
    weather_cols = keys + [col for col in weather_cols if col not in keys and col not in flights.columns]

    logger.info(f"Joining {len(flights)} flights to {len(weather)} weather rows on {keys}")
    joined = flights.merge(weather[weather_cols], on=keys, how='left', sort=False)

    if len(joined) != len(flights):
        raise JoinCardinalityError(
            f"Joined table has {len(joined)} rows, expected {len(flights)} (one per flight).",
            expected=len(flights),
            actual=len(joined),
        )

    joined.index = flights.index
    logger.info(f"Weather found for {match_rate(joined, weather_cols[len(keys):]):.1%} of flights")
    return joined


def match_rate(joined: pd.DataFrame, weather_cols: Optional[List[str]] = None) -> float:
    """Share of joined flights that matched a weather observation."""
    if joined.empty:
        return 0.0
    weather_cols = weather_cols or [col for col in ('temp', 'humid', 'pressure', 'visib') if col in joined.columns]
    if not weather_cols:
        return 0.0
    return float(joined[weather_cols].notna().any(axis=1).mean())
