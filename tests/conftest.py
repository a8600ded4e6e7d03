import numpy as np
import pandas as pd
import pytest

from flightweather.schema import FlightRecord, WeatherObservation

ORIGINS = ['EWR', 'JFK', 'LGA']
DESTS = ['ATL', 'ORD', 'LAX', 'BOS', 'MIA']


def make_flights(rows):
    """Full-schema flights frame; each row dict overrides the defaults."""
    defaults = {
        'year': 2013, 'month': 1, 'day': 1, 'dep_time': 517.0, 'sched_dep_time': 515,
        'dep_delay': 0.0, 'arr_time': 830.0, 'sched_arr_time': 819, 'arr_delay': 0.0,
        'carrier': 'UA', 'flight': 1545, 'tailnum': 'N14228', 'origin': 'EWR', 'dest': 'IAH',
        'air_time': 227.0, 'distance': 1400.0, 'hour': 5, 'minute': 15,
        'time_hour': '2013-01-01 05:00:00',
    }
    return pd.DataFrame([{**defaults, **row} for row in rows], columns=FlightRecord.columns())


def make_weather(rows):
    defaults = {
        'origin': 'EWR', 'year': 2013, 'month': 1, 'day': 1, 'hour': 5,
        'temp': 39.0, 'dewp': 26.1, 'humid': 59.4, 'wind_dir': 270.0, 'wind_speed': 10.4,
        'wind_gust': 12.0, 'precip': 0.0, 'pressure': 1012.0, 'visib': 10.0,
        'time_hour': '2013-01-01 05:00:00',
    }
    return pd.DataFrame([{**defaults, **row} for row in rows], columns=WeatherObservation.columns())


def synthetic_tables(n_flights=400, hours=48, seed=7):
    """Random but well-behaved flights and hourly weather for the three origins."""
    rng = np.random.default_rng(seed)
    start = pd.Timestamp('2013-01-01 00:00:00')

    weather_rows = []
    for origin in ORIGINS:
        for h in range(hours):
            ts = start + pd.Timedelta(hours=h)
            weather_rows.append({
                'origin': origin, 'year': ts.year, 'month': ts.month, 'day': ts.day, 'hour': ts.hour,
                'temp': rng.normal(40, 8), 'dewp': rng.normal(25, 5), 'humid': rng.uniform(30, 95),
                'wind_dir': rng.uniform(0, 360), 'wind_speed': rng.gamma(2, 5), 'wind_gust': rng.gamma(2, 7),
                'precip': rng.exponential(0.02), 'pressure': rng.normal(1015, 6), 'visib': rng.uniform(0, 10),
                'time_hour': ts.strftime('%Y-%m-%d %H:%M:%S'),
            })
    weather = make_weather(weather_rows)

    # a few flights depart after the last weather hour and stay unmatched
    hour_idx = rng.integers(0, hours + 4, size=n_flights)
    origins = rng.choice(ORIGINS, size=n_flights)
    lookup = weather.set_index(['origin', 'time_hour'])['visib']

    flight_rows = []
    for i in range(n_flights):
        ts = start + pd.Timedelta(hours=int(hour_idx[i]))
        key = (origins[i], ts.strftime('%Y-%m-%d %H:%M:%S'))
        visib = lookup.get(key, 10.0)
        dep_delay = float(rng.normal(25 - 3 * visib, 25))
        if rng.random() < 0.05:
            dep_delay = np.nan
        flight_rows.append({
            'year': ts.year, 'month': ts.month, 'day': ts.day, 'hour': ts.hour, 'minute': 0,
            'origin': origins[i], 'dest': DESTS[i % len(DESTS)],
            'dep_delay': dep_delay,
            'arr_delay': dep_delay + rng.normal(0, 10) if not np.isnan(dep_delay) else np.nan,
            'air_time': float(rng.uniform(40, 350)), 'distance': float(rng.uniform(200, 2500)),
            'time_hour': key[1],
        })
    return make_flights(flight_rows), weather


@pytest.fixture
def toy_flights():
    return make_flights([
        {'origin': 'JFK', 'dep_delay': 35.0},
        {'origin': 'JFK', 'dep_delay': 10.0},
        {'origin': 'EWR', 'dep_delay': np.nan, 'dep_time': np.nan, 'arr_delay': np.nan},
    ])


@pytest.fixture
def synthetic():
    return synthetic_tables()


@pytest.fixture
def data_dir(tmp_path, synthetic):
    flights, weather = synthetic
    flights.to_csv(tmp_path / 'flights.csv', index=False)
    weather.to_csv(tmp_path / 'weather.csv', index=False)
    return tmp_path
