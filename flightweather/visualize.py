import logging
from typing import Optional

import pandas as pd
import plotly.graph_objects as go

from flightweather.schema import DELAY_LABEL

logger = logging.getLogger(__name__)

ORIGIN_COLORS = {'EWR': 'indianred', 'JFK': 'steelblue', 'LGA': 'seagreen'}
MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def _save(fig: go.Figure, output_path: Optional[str]) -> go.Figure:
    if output_path:
        fig.write_html(output_path)
        logger.info(f"Saved plot to {output_path}")
    return fig


def _month_axis(fig: go.Figure) -> None:
    fig.update_xaxes(tickmode='array', tickvals=list(range(1, 13)), ticktext=MONTH_NAMES)


def plot_flights_by_origin(counts: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """
    Bar chart of the number of departures from each origin airport.

    Args:
        counts: Output of aggregate.flights_by_origin.
        output_path: Optional HTML file to write the plot to.
    """
    fig = go.Figure(go.Bar(
        x=counts['origin'],
        y=counts['n'],
        marker_color=[ORIGIN_COLORS.get(o, 'lightslategray') for o in counts['origin']],
    ))
    fig.update_layout(
        title_text='<b>Flights by Origin Airport</b>',
        xaxis_title='Origin',
        yaxis_title='Number of Flights',
        template='plotly_white'
    )
    return _save(fig, output_path)


def plot_top_destinations(counts: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """Horizontal bar chart of the busiest destinations, busiest on top."""
    ordered = counts.sort_values('n')
    fig = go.Figure(go.Bar(x=ordered['n'], y=ordered['dest'], orientation='h', marker_color='lightsalmon'))
    fig.update_layout(
        title_text=f'<b>Top {len(counts)} Destinations</b>',
        xaxis_title='Number of Flights',
        yaxis_title='Destination',
        template='plotly_white'
    )
    return _save(fig, output_path)


def plot_monthly_flights(counts: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """One line per origin of flights per month (aggregate.flights_by_month_origin)."""
    fig = go.Figure()
    for origin, group in counts.groupby('origin'):
        fig.add_trace(go.Scatter(
            x=group['month'],
            y=group['n'],
            name=origin,
            mode='lines+markers',
            line=dict(color=ORIGIN_COLORS.get(origin), width=2)
        ))
    fig.update_layout(
        title_text='<b>Monthly Flights by Origin</b>',
        xaxis_title='Month',
        yaxis_title='Number of Flights',
        legend_title_text='Origin',
        template='plotly_white'
    )
    _month_axis(fig)
    return _save(fig, output_path)


def plot_delays_by_month_origin(counts: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """
    Stacked bars of delayed vs. on-time flights for each month, one bar group per origin.

    Args:
        counts: Output of aggregate.flights_by_month_origin_delay.
        output_path: Optional HTML file to write the plot to.
    """
    fig = go.Figure()
    labeled = counts[counts[DELAY_LABEL].notna()]
    for (origin, label), group in labeled.groupby(['origin', DELAY_LABEL]):
        status = 'Delayed 30+ min' if int(label) == 1 else 'On time'
        fig.add_trace(go.Bar(
            x=[group['month'].tolist(), [origin] * len(group)],
            y=group['n'],
            name=f'{origin} {status}',
            legendgroup=status,
            marker_color='firebrick' if int(label) == 1 else 'lightblue'
        ))
    fig.update_layout(
        barmode='stack',
        title_text='<b>Delayed vs. On-Time Departures by Month and Origin</b>',
        xaxis_title='Month / Origin',
        yaxis_title='Number of Flights',
        template='plotly_white',
        showlegend=False
    )
    return _save(fig, output_path)


def plot_mean_delay_by_month(monthly: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """Average departure delay per month, one line per origin."""
    fig = go.Figure()
    for origin, group in monthly.groupby('origin'):
        fig.add_trace(go.Scatter(
            x=group['month'],
            y=group['average_departure_delay'],
            name=origin,
            mode='lines+markers',
            line=dict(color=ORIGIN_COLORS.get(origin), width=2)
        ))
    fig.update_layout(
        title_text='<b>Average Departure Delay by Month</b>',
        xaxis_title='Month',
        yaxis_title='Average Delay (Minutes)',
        template='plotly_white'
    )
    _month_axis(fig)
    return _save(fig, output_path)


def plot_delay_rate_by_visibility(rates: pd.DataFrame, output_path: Optional[str] = None) -> go.Figure:
    """Share of flights delayed 30+ minutes in each visibility band."""
    fig = go.Figure(go.Scatter(
        x=rates['visib_band'],
        y=rates['share_delayed'],
        mode='lines+markers',
        text=rates['flights'],
        hovertemplate='%{x}<br>%{y:.1%} delayed<br>%{text} flights<extra></extra>',
        line=dict(color='firebrick', width=2)
    ))
    fig.update_layout(
        title_text='<b>Share of Delayed Departures by Visibility</b>',
        xaxis_title='Visibility (miles)',
        yaxis_title='Share Delayed',
        yaxis_tickformat='.0%',
        template='plotly_white'
    )
    return _save(fig, output_path)
