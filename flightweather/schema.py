# flightweather/schema.py

from dataclasses import dataclass, fields
from datetime import datetime
from typing import List, Optional

import pandas as pd


@dataclass
class FlightRecord:
    year: int
    month: int
    day: int
    dep_time: Optional[float]
    sched_dep_time: int
    dep_delay: Optional[float]
    arr_time: Optional[float]
    sched_arr_time: int
    arr_delay: Optional[float]
    carrier: str
    flight: int
    tailnum: Optional[str]
    origin: str
    dest: str
    air_time: Optional[float]
    distance: float
    hour: int
    minute: int
    time_hour: datetime

    @classmethod
    def columns(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass
class WeatherObservation:
    origin: str
    year: int
    month: int
    day: int
    hour: int
    temp: Optional[float]
    dewp: Optional[float]
    humid: Optional[float]
    wind_dir: Optional[float]
    wind_speed: Optional[float]
    wind_gust: Optional[float]
    precip: Optional[float]
    pressure: Optional[float]
    visib: Optional[float]
    time_hour: datetime

    @classmethod
    def columns(cls) -> List[str]:
        return [f.name for f in fields(cls)]


SUMMARY_COLUMNS = ['distance', 'air_time', 'dep_delay', 'arr_delay']

WEATHER_PREDICTORS = ['wind_speed', 'wind_gust', 'humid', 'precip', 'pressure', 'visib', 'temp']

HOURLY_KEYS = ['origin', 'time_hour']
CALENDAR_KEYS = ['origin', 'time_hour', 'year', 'month', 'day', 'hour']

DELAY_LABEL = 'delayed'


def require_columns(df: pd.DataFrame, required: List[str], table: str) -> None:
    """Raises KeyError listing every required column missing from `df`."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"{table} table is missing required columns: {missing}")
