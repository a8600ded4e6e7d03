import numpy as np
import pandas as pd
import pytest

from conftest import make_flights, make_weather
from flightweather.join import JoinCardinalityError, check_unique_keys, join_weather, match_rate
from flightweather.preprocess import prepare_flights, prepare_weather
from flightweather.schema import CALENDAR_KEYS


def _five_flights():
    return prepare_flights(make_flights([
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'dep_delay': 35.0},
        {'origin': 'JFK', 'time_hour': '2013-01-01 06:00:00', 'dep_delay': 10.0, 'hour': 6},
        {'origin': 'EWR', 'time_hour': '2013-01-01 05:00:00', 'dep_delay': -3.0},
        {'origin': 'LGA', 'time_hour': '2013-01-01 05:00:00', 'dep_delay': 50.0},
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'dep_delay': 0.0},
    ]))


def test_duplicated_weather_key_raises():
    weather = prepare_weather(make_weather([
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'visib': 10.0},
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'visib': 2.0},
        {'origin': 'EWR', 'time_hour': '2013-01-01 05:00:00'},
    ]))
    with pytest.raises(JoinCardinalityError, match='occur more than once'):
        join_weather(_five_flights(), weather)


def test_left_join_keeps_every_flight():
    flights = _five_flights()
    weather = prepare_weather(make_weather([
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'visib': 2.0},
        {'origin': 'JFK', 'time_hour': '2013-01-01 06:00:00', 'visib': 8.0, 'hour': 6},
        {'origin': 'EWR', 'time_hour': '2013-01-01 05:00:00', 'visib': 10.0},
    ]))
    joined = join_weather(flights, weather)

    assert len(joined) == len(flights)
    assert joined['dep_delay'].tolist() == flights['dep_delay'].tolist()
    assert joined['visib'].tolist()[:3] == [2.0, 8.0, 10.0]
    # LGA has no weather row
    assert np.isnan(joined['visib'].iloc[3])
    assert joined['visib'].iloc[4] == 2.0
    assert match_rate(joined) == pytest.approx(0.8)


def test_join_does_not_duplicate_flight_columns():
    flights = _five_flights()
    weather = prepare_weather(make_weather([{'origin': 'JFK'}]))
    joined = join_weather(flights, weather)
    assert not any(col.endswith(('_x', '_y')) for col in joined.columns)
    assert 'year' in joined.columns


def test_calendar_keys_join():
    flights = _five_flights()
    weather = prepare_weather(make_weather([
        {'origin': 'JFK', 'visib': 3.0},
        {'origin': 'JFK', 'time_hour': '2013-01-01 06:00:00', 'hour': 6, 'visib': 4.0},
    ]))
    joined = join_weather(flights, weather, keys=CALENDAR_KEYS)
    assert len(joined) == 5
    assert joined['visib'].tolist()[:2] == [3.0, 4.0]


def test_join_on_synthetic_tables(synthetic):
    flights, weather = synthetic
    flights, weather = prepare_flights(flights), prepare_weather(weather)
    joined = join_weather(flights, weather)
    assert len(joined) == len(flights)
    assert 0 < match_rate(joined) < 1


def test_check_unique_keys_accepts_unique():
    weather = prepare_weather(make_weather([{'origin': 'JFK'}, {'origin': 'EWR'}]))
    check_unique_keys(weather, ['origin', 'time_hour'])


def test_join_requires_key_columns():
    flights = _five_flights().drop(columns=['time_hour'])
    weather = prepare_weather(make_weather([{'origin': 'JFK'}]))
    with pytest.raises(KeyError):
        join_weather(flights, weather)


def test_null_keys_never_match():
    flights = prepare_flights(make_flights([
        {'origin': 'JFK', 'time_hour': 'garbage'},
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00'},
    ]))
    weather = prepare_weather(make_weather([
        {'origin': 'JFK', 'time_hour': 'also garbage', 'visib': 0.1},
        {'origin': 'JFK', 'time_hour': 'more garbage', 'visib': 0.2},
        {'origin': 'JFK', 'time_hour': '2013-01-01 05:00:00', 'visib': 7.0},
    ]))
    joined = join_weather(flights, weather)

    assert len(joined) == 2
    assert np.isnan(joined['visib'].iloc[0])
    assert joined['visib'].iloc[1] == 7.0


def test_match_rate_empty():
    assert match_rate(pd.DataFrame()) == 0.0
