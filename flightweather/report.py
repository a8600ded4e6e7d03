import html
import logging
import os
from typing import Dict, List

import pandas as pd
import plotly.graph_objects as go

from flightweather import visualize
from flightweather.classify import DELAY_THRESHOLD_MINUTES
from flightweather.model import ModelFit, coefficient_table, save_models
from flightweather.pipeline import EDAResults

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: Helvetica, Arial, sans-serif; max-width: 1100px; margin: 2em auto; color: #222; }}
table {{ border-collapse: collapse; margin: 1em 0; font-size: 0.9em; }}
th, td {{ border: 1px solid #ccc; padding: 4px 8px; text-align: right; }}
th {{ background: #f3f3f3; }}
.note {{ color: #555; font-style: italic; }}
</style>
</head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>
"""


def build_figures(results: EDAResults) -> Dict[str, go.Figure]:
    """Creates every chart in the report from the pipeline tables."""
    tables = results.tables
    return {
        'flights_by_origin': visualize.plot_flights_by_origin(tables['flights_by_origin']),
        'top_destinations': visualize.plot_top_destinations(tables['top_destinations']),
        'monthly_flights': visualize.plot_monthly_flights(tables['flights_by_month_origin']),
        'delays_by_month_origin': visualize.plot_delays_by_month_origin(tables['flights_by_month_origin_delay']),
        'mean_delay_by_month': visualize.plot_mean_delay_by_month(tables['mean_delay_by_month']),
        'delay_rate_by_visibility': visualize.plot_delay_rate_by_visibility(tables['delay_rate_by_visibility']),
    }


def _table_html(df: pd.DataFrame) -> str:
    return df.to_html(index=False, float_format=lambda v: f"{v:,.3f}", na_rep='NA', border=0)


def _paragraph(text: str) -> str:
    return f"<p>{html.escape(text)}</p>"


class _Figures:
    """Embeds plotly.js once, with the first figure, so the page works offline."""

    def __init__(self, figures: Dict[str, go.Figure]):
        self.figures = figures
        self.included = False

    def html(self, name: str) -> str:
        include = not self.included
        self.included = True
        return self.figures[name].to_html(full_html=False, include_plotlyjs=include)


def _model_section(fit: ModelFit) -> List[str]:
    parts = [f"<h3>{html.escape(fit.name)}: <code>{html.escape(fit.formula)}</code></h3>"]
    metrics = ', '.join(f"{k.replace('_', ' ')} = {v:.4f}" for k, v in fit.metrics.items())
    parts.append(_paragraph(
        f"Fitted on {fit.n_obs:,} flights ({fit.n_dropped:,} excluded for missing values). {metrics}."
    ))
    parts.append(_table_html(coefficient_table(fit)))
    return parts


def render_html(results: EDAResults, title: str = 'NYC Flights 2013: Weather and Departure Delay') -> str:
    """Renders the narrated report as a single HTML document."""
    tables = results.tables
    figures = _Figures(build_figures(results))
    threshold = results.config.get('labels', {}).get('threshold_minutes', DELAY_THRESHOLD_MINUTES)
    cancelled = results.config.get('labels', {}).get('cancelled', 'exclude')

    n_flights = len(results.flights)
    n_cancelled = int(results.flights['dep_delay'].isna().sum())
    by_origin = tables['flights_by_origin']
    busiest = by_origin.sort_values('n', ascending=False).iloc[0] if not by_origin.empty else None
    rates = tables['delay_rate_by_origin']
    overall_rate = rates['delayed'].sum() / rates['flights'].sum() if rates['flights'].sum() else float('nan')

    body = ['<h2>1. The data</h2>']
    body.append(_paragraph(
        f"The flights table holds {n_flights:,} departures and the weather table "
        f"{len(results.weather):,} hourly observations. {n_cancelled:,} flights have no "
        f"recorded departure and are treated as cancelled."
    ))
    body.append('<h3>Summary statistics</h3>')
    body.append(_table_html(tables['summary_statistics']))
    body.append('<h3>Summary statistics by origin</h3>')
    body.append(_table_html(tables['summary_by_origin']))

    body.append('<h2>2. Where flights go</h2>')
    if busiest is not None:
        body.append(_paragraph(f"{busiest['origin']} is the busiest origin with {int(busiest['n']):,} departures."))
    body.append(_table_html(by_origin))
    body.append(figures.html('flights_by_origin'))
    body.append(_table_html(tables['top_destinations']))
    body.append(figures.html('top_destinations'))
    body.append(figures.html('monthly_flights'))

    body.append('<h2>3. Delays</h2>')
    body.append(_paragraph(
        f"A flight counts as delayed when it left at least {threshold} minutes late. "
        f"Cancelled flights are handled with the '{cancelled}' rule. "
        f"Overall {overall_rate:.1%} of labeled departures were delayed."
    ))
    body.append(_table_html(rates))
    body.append(figures.html('delays_by_month_origin'))
    body.append(figures.html('mean_delay_by_month'))

    body.append('<h2>4. Weather</h2>')
    augmented = results.augmented if results.augmented is not None else results.joined
    body.append(_paragraph(
        f"Each flight was joined to the weather at its origin in its scheduled departure hour. "
        f"The join returned {len(augmented):,} rows for {n_flights:,} flights. "
        f"After labeling, {len(results.joined):,} flights remain for the models, and "
        f"{results.weather_match_rate:.1%} of them found a weather reading."
    ))
    body.append(_table_html(tables['delay_rate_by_visibility']))
    body.append(figures.html('delay_rate_by_visibility'))

    body.append('<h2>5. Models</h2>')
    body.append('<p class="note">Rows with a missing response or predictor are excluded, not imputed.</p>')
    for fit in results.models.values():
        body.extend(_model_section(fit))

    return PAGE_TEMPLATE.format(title=html.escape(title), body='\n'.join(body))


def render_report(results: EDAResults, output_dir: str) -> str:
    """
    Writes report.html, one CSV per summary table and the fitted models.

    Args:
        results: Output of pipeline.run_pipeline.
        output_dir: Directory for all report artifacts; created if missing.

    Returns:
        The path of the written report.html.
    """
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    tables_dir = os.path.join(output_dir, 'tables')
    if not os.path.exists(tables_dir):
        os.makedirs(tables_dir)
    for name, table in results.tables.items():
        table.to_csv(os.path.join(tables_dir, f"{name}.csv"), index=False)
    for name, fit in results.models.items():
        coefficient_table(fit).to_csv(os.path.join(tables_dir, f"coefficients_{name}.csv"), index=False)
    logger.info(f"Saved {len(results.tables) + len(results.models)} tables to {tables_dir}")

    if results.models:
        save_models(results.models, os.path.join(output_dir, 'models'))

    report_path = os.path.join(output_dir, 'report.html')
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write(render_html(results))
    logger.info(f"Saved report to {report_path}")
    return report_path
