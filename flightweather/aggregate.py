import logging
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from flightweather.schema import DELAY_LABEL, SUMMARY_COLUMNS, require_columns

logger = logging.getLogger(__name__)

STATISTICS = ['mean', 'median', 'sd', 'max', 'min', 'n']


def _as_list(by: Union[str, List[str]]) -> List[str]:
    return [by] if isinstance(by, str) else list(by)


def count_by(df: pd.DataFrame, by: Union[str, List[str]], name: str = 'n') -> pd.DataFrame:
    """
    Counts the rows in each distinct group.

    Args:
        df: Any flights table.
        by: Grouping column or columns.
        name: Name of the count column.

    Returns:
        One row per group, sorted by the group keys. Null keys form their own group,
        so the counts always sum to len(df).
    """
    by = _as_list(by)
    require_columns(df, by, 'grouped')
    counts = df.groupby(by, dropna=False, observed=True).size().reset_index(name=name)
    return counts.sort_values(by).reset_index(drop=True)


def _describe(values: pd.Series) -> dict:
    return {
        'mean': values.mean(),
        'median': values.median(),
        'sd': values.std(ddof=1),
        'max': values.max(),
        'min': values.min(),
        'n': int(values.count()),
    }


def summary_stats(df: pd.DataFrame, columns: Optional[List[str]] = None,
                  by: Optional[Union[str, List[str]]] = None) -> pd.DataFrame:
    """
    Calculates mean, median, standard deviation, max, min and non-null count per column.

    Args:
        df: The flights table.
        columns: Numeric columns to summarize. Defaults to distance, air time and both delays.
        by: Optional grouping column(s); one row per group and column when given.

    Returns:
        A long DataFrame with a `variable` column and one column per statistic.
    """
    columns = list(columns or SUMMARY_COLUMNS)
    require_columns(df, columns, 'summarized')

    if by is None:
        rows = [{'variable': col, **_describe(pd.to_numeric(df[col], errors='coerce'))} for col in columns]
        return pd.DataFrame(rows, columns=['variable'] + STATISTICS)

    by = _as_list(by)
    require_columns(df, by, 'grouped')
    rows = []
    for keys, group in df.groupby(by, dropna=False, observed=True):
        keys = keys if isinstance(keys, tuple) else (keys,)
        for col in columns:
            stats = _describe(pd.to_numeric(group[col], errors='coerce'))
            rows.append({**dict(zip(by, keys)), 'variable': col, **stats})
    return pd.DataFrame(rows, columns=by + ['variable'] + STATISTICS)


def flights_by_origin(df: pd.DataFrame) -> pd.DataFrame:
    return count_by(df, 'origin')


def flights_by_destination(df: pd.DataFrame, top: Optional[int] = None) -> pd.DataFrame:
    """Flight counts per destination, busiest first; `top` keeps only the first N."""
    counts = count_by(df, 'dest').sort_values(['n', 'dest'], ascending=[False, True]).reset_index(drop=True)
    return counts.head(top) if top else counts


def flights_by_month_origin(df: pd.DataFrame) -> pd.DataFrame:
    return count_by(df, ['month', 'origin'])


def flights_by_month_origin_delay(df: pd.DataFrame) -> pd.DataFrame:
    require_columns(df, [DELAY_LABEL], 'labeled flights')
    return count_by(df, ['month', 'origin', DELAY_LABEL])


def delay_rate_by(df: pd.DataFrame, by: Union[str, List[str]]) -> pd.DataFrame:
    """
    Share of labeled flights that were delayed, per group.

    Flights whose label is <NA> are left out of both the numerator and denominator.
    """
    by = _as_list(by)
    require_columns(df, by + [DELAY_LABEL], 'labeled flights')
    labeled = df[df[DELAY_LABEL].notna()]
    rates = labeled.groupby(by, dropna=False, observed=True).agg(
        flights=(DELAY_LABEL, 'size'),
        delayed=(DELAY_LABEL, 'sum'),
    ).reset_index()
    rates['delayed'] = rates['delayed'].astype(int)
    rates['share_delayed'] = (rates['delayed'] / rates['flights']).round(4)
    return rates.sort_values(by).reset_index(drop=True)


def mean_delay_by_month(df: pd.DataFrame) -> pd.DataFrame:
    """Average departure and arrival delay per month and origin airport."""
    require_columns(df, ['month', 'origin', 'dep_delay', 'arr_delay'], 'flights')
    monthly = df.groupby(['month', 'origin'], observed=True).agg(
        average_departure_delay=('dep_delay', 'mean'),
        average_arrival_delay=('arr_delay', 'mean'),
    ).reset_index()

    monthly['average_departure_delay'] = monthly['average_departure_delay'].round(2)
    monthly['average_arrival_delay'] = monthly['average_arrival_delay'].round(2)
    return monthly


def visibility_bands(df: pd.DataFrame, edges: Optional[List[float]] = None) -> pd.DataFrame:
    """Share of delayed flights per visibility band (miles), for the joined table."""
    require_columns(df, ['visib', DELAY_LABEL], 'joined flights')
    edges = edges or [0, 1, 2, 5, 9.99, np.inf]
    banded = df[df['visib'].notna()]
    banded = banded.assign(visib_band=pd.cut(banded['visib'], bins=edges, include_lowest=True))

    # categorical bands sort by interval order, not as strings
    rates = delay_rate_by(banded, 'visib_band')
    rates['visib_band'] = rates['visib_band'].astype(str)
    return rates
