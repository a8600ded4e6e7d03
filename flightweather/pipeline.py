import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from flightweather import aggregate
from flightweather.classify import label_flights
from flightweather.config import dedupe_mode, join_keys, load_config
from flightweather.join import join_weather, match_rate
from flightweather.load import load_flights, load_weather
from flightweather.model import ModelFit, fit_weather_models
from flightweather.preprocess import deduplicate_weather, prepare_flights, prepare_weather

logger = logging.getLogger(__name__)


@dataclass
class EDAResults:
    """
    Everything the report and the dashboard display.

    `augmented` is the join output with one row per flight; `joined` is the same
    table after labeling, so it loses the cancelled flights under the exclude rule.
    """
    flights: pd.DataFrame
    weather: pd.DataFrame
    labeled: pd.DataFrame
    joined: pd.DataFrame
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    models: Dict[str, ModelFit] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)
    augmented: Optional[pd.DataFrame] = None

    @property
    def weather_match_rate(self) -> float:
        return match_rate(self.joined)


def build_tables(flights: pd.DataFrame, labeled: pd.DataFrame, joined: pd.DataFrame,
                 top_destinations: int = 10) -> Dict[str, pd.DataFrame]:
    """Calculates every summary table shown in the report."""
    return {
        'summary_statistics': aggregate.summary_stats(flights),
        'summary_by_origin': aggregate.summary_stats(flights, by='origin'),
        'flights_by_origin': aggregate.flights_by_origin(flights),
        'top_destinations': aggregate.flights_by_destination(flights, top=top_destinations),
        'flights_by_month_origin': aggregate.flights_by_month_origin(flights),
        'flights_by_month_origin_delay': aggregate.flights_by_month_origin_delay(labeled),
        'delay_rate_by_origin': aggregate.delay_rate_by(labeled, 'origin'),
        'mean_delay_by_month': aggregate.mean_delay_by_month(flights),
        'delay_rate_by_visibility': aggregate.visibility_bands(joined),
    }


def run_pipeline(config: Optional[Dict[str, Any]] = None) -> EDAResults:
    """
    Runs load -> prepare -> join -> label -> aggregate -> fit.

    Args:
        config: A config dict from load_config(); defaults are used when None.

    Returns:
        EDAResults with the input tables, the labeled and joined tables,
        the summary tables and the fitted models.
    """
    config = config or load_config()
    source = config['data']['source']
    keys = join_keys(config)

    logger.info("=== Starting flight/weather EDA ===")
    flights = prepare_flights(load_flights(source))
    weather = prepare_weather(load_weather(source))
    weather = deduplicate_weather(weather, keys, keep=dedupe_mode(config))

    augmented = join_weather(flights, weather, keys)
    threshold = int(config['labels']['threshold_minutes'])
    cancelled = config['labels']['cancelled']
    labeled = label_flights(flights, cancelled=cancelled, threshold=threshold)
    joined = label_flights(augmented, cancelled=cancelled, threshold=threshold)

    tables = build_tables(flights, labeled, joined, int(config['report']['top_destinations']))
    models = fit_weather_models(joined)

    logger.info("=== EDA pipeline completed ===")
    return EDAResults(flights, weather, labeled, joined, tables, models, config, augmented)
