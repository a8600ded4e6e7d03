import logging

import pandas as pd

from flightweather.schema import DELAY_LABEL

logger = logging.getLogger(__name__)

DELAY_THRESHOLD_MINUTES = 30

CANCELLED_MODES = ('exclude', 'keep', 'not_delayed')


def delay_label(dep_delay: pd.Series, threshold: int = DELAY_THRESHOLD_MINUTES) -> pd.Series:
    """
    Maps departure delay in minutes to a binary label.

    Returns a nullable Int8 series: 1 when the delay is at least `threshold`,
    0 when it is below, <NA> when no departure was recorded.
    """
    delay = pd.to_numeric(dep_delay, errors='coerce')
    label = (delay >= threshold).astype('Int8')
    return label.mask(delay.isna())


def label_flights(df: pd.DataFrame, cancelled: str = 'exclude',
                  threshold: int = DELAY_THRESHOLD_MINUTES) -> pd.DataFrame:
    """
    Adds the `delayed` column to a flights table.

    Args:
        df: Flights (or joined flights + weather) with a dep_delay column.
        cancelled: How flights with no recorded departure are treated:
            'exclude' drops them, 'keep' leaves the label as <NA>,
            'not_delayed' labels them 0.
        threshold: Minutes of departure delay at which a flight counts as delayed.

    Returns:
        A copy of `df` with the label column added.
    """
    if cancelled not in CANCELLED_MODES:
        raise ValueError(f"cancelled must be one of {CANCELLED_MODES}, got {cancelled!r}")

    df = df.copy()
    df[DELAY_LABEL] = delay_label(df['dep_delay'], threshold)

    missing = df[DELAY_LABEL].isna()
    if cancelled == 'exclude':
        df = df[~missing]
        logger.info(f"Excluded {int(missing.sum())} cancelled flights before labeling")
    elif cancelled == 'not_delayed':
        df[DELAY_LABEL] = df[DELAY_LABEL].fillna(0)

    delayed = int((df[DELAY_LABEL] == 1).sum())
    logger.info(f"Labeled {len(df)} flights, {delayed} delayed by {threshold}+ minutes")
    return df
