import pandas as pd

from flightweather import visualize


def test_flights_by_origin_plot_written(tmp_path):
    counts = pd.DataFrame({'origin': ['EWR', 'JFK', 'LGA'], 'n': [120835, 111279, 104662]})
    path = tmp_path / 'origin.html'
    fig = visualize.plot_flights_by_origin(counts, str(path))
    assert path.exists()
    assert list(fig.data[0].y) == [120835, 111279, 104662]


def test_delay_bars_skip_unlabeled_groups():
    counts = pd.DataFrame({
        'month': [1, 1, 1, 2],
        'origin': ['JFK', 'JFK', 'EWR', 'JFK'],
        'delayed': pd.array([0, 1, None, 1], dtype='Int8'),
        'n': [10, 3, 1, 4],
    })
    fig = visualize.plot_delays_by_month_origin(counts)
    names = sorted(trace.name for trace in fig.data)
    assert names == ['JFK Delayed 30+ min', 'JFK On time']
    assert fig.layout.barmode == 'stack'


def test_monthly_lines_one_trace_per_origin():
    counts = pd.DataFrame({'month': [1, 2, 1, 2], 'origin': ['EWR', 'EWR', 'JFK', 'JFK'], 'n': [5, 6, 7, 8]})
    fig = visualize.plot_monthly_flights(counts)
    assert [trace.name for trace in fig.data] == ['EWR', 'JFK']
