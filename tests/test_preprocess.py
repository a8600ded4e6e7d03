import pandas as pd
import pytest

from conftest import make_flights, make_weather
from flightweather.preprocess import (
    deduplicate_weather,
    parse_time_hour,
    prepare_flights,
    prepare_weather,
    weather_key_duplicates,
)


def test_parse_time_hour_floors_to_hour():
    parsed = parse_time_hour(pd.Series(['2013-01-01 05:42:00', '2013-06-30 23:00:00']))
    assert parsed.tolist() == [pd.Timestamp('2013-01-01 05:00'), pd.Timestamp('2013-06-30 23:00')]


def test_parse_time_hour_converts_aware_values_to_utc():
    utc = parse_time_hour(pd.Series(['2013-01-01T10:00:00Z']))
    eastern = parse_time_hour(pd.Series(['2013-01-01 05:00:00-05:00']))
    assert utc.iloc[0] == eastern.iloc[0] == pd.Timestamp('2013-01-01 10:00')
    assert eastern.dt.tz is None


def test_prepare_flights_coerces_numbers():
    flights = make_flights([{'dep_delay': '12'}, {'dep_delay': 'NA'}])
    prepared = prepare_flights(flights)
    assert prepared['dep_delay'].iloc[0] == 12
    assert pd.isna(prepared['dep_delay'].iloc[1])
    assert len(prepared) == 2
    assert flights['dep_delay'].iloc[0] == '12'


def test_weather_duplicates_and_dedupe():
    weather = prepare_weather(make_weather([
        {'origin': 'JFK', 'visib': 1.0},
        {'origin': 'JFK', 'visib': 2.0},
        {'origin': 'EWR'},
    ]))
    keys = ['origin', 'time_hour']
    assert len(weather_key_duplicates(weather, keys)) == 2

    first = deduplicate_weather(weather, keys)
    assert len(first) == 2
    assert first.loc[first['origin'] == 'JFK', 'visib'].item() == 1.0

    last = deduplicate_weather(weather, keys, keep='last')
    assert last.loc[last['origin'] == 'JFK', 'visib'].item() == 2.0

    assert deduplicate_weather(weather, keys, keep=None) is weather


def test_dedupe_rejects_unknown_keep():
    weather = prepare_weather(make_weather([{'origin': 'JFK'}]))
    with pytest.raises(ValueError):
        deduplicate_weather(weather, ['origin', 'time_hour'], keep='mean')
