import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from flightweather.classify import CANCELLED_MODES
from flightweather.schema import CALENDAR_KEYS, HOURLY_KEYS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.yaml'

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'data': {'source': 'nycflights13'},
    'join': {'keys': 'hourly', 'dedupe_weather': 'none'},
    'labels': {'cancelled': 'exclude', 'threshold_minutes': 30},
    'report': {'output_dir': 'outputs', 'top_destinations': 10},
    'logging': {'level': 'INFO', 'file': None},
}

JOIN_KEYS = {'hourly': HOURLY_KEYS, 'calendar': CALENDAR_KEYS}
DEDUPE_MODES = ('first', 'last', 'none')


def _merge(base: Dict[str, Dict[str, Any]], overrides: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if section not in merged:
            raise ValueError(f"Unknown config section: {section!r}")
        if not isinstance(values, dict):
            raise ValueError(f"Config section {section!r} must be a mapping")
        for key, value in values.items():
            if key not in merged[section]:
                raise ValueError(f"Unknown config key: {section}.{key}")
            merged[section][key] = value
    return merged


def validate(config: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Raises ValueError on settings the pipeline cannot act on."""
    if config['join']['keys'] not in JOIN_KEYS:
        raise ValueError(f"join.keys must be one of {list(JOIN_KEYS)}, got {config['join']['keys']!r}")
    if str(config['join']['dedupe_weather']).lower() not in DEDUPE_MODES:
        raise ValueError(f"join.dedupe_weather must be one of {DEDUPE_MODES}")
    if config['labels']['cancelled'] not in CANCELLED_MODES:
        raise ValueError(f"labels.cancelled must be one of {CANCELLED_MODES}")
    if int(config['labels']['threshold_minutes']) < 0:
        raise ValueError("labels.threshold_minutes must not be negative")
    return config


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Loads the YAML config, layered as defaults < file < overrides.

    Args:
        path: YAML file. When None, config.yaml is used if it exists.
        overrides: Nested dict of values (e.g. from CLI flags) applied last.

    Returns:
        The validated config dict.
    """
    file_values: Dict[str, Any] = {}
    if path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        path = DEFAULT_CONFIG_PATH
    if path is not None:
        if not Path(path).exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, 'r') as file:
            file_values = yaml.safe_load(file) or {}
        logger.info(f"Configuration loaded from {path}")

    config = _merge(DEFAULTS, file_values)
    config = _merge(config, overrides or {})
    return validate(config)


def join_keys(config: Dict[str, Dict[str, Any]]):
    return list(JOIN_KEYS[config['join']['keys']])


def dedupe_mode(config: Dict[str, Dict[str, Any]]) -> Optional[str]:
    mode = config['join']['dedupe_weather']
    # yaml reads a bare `none` as the string, `null` as None
    if mode is None or str(mode).lower() == 'none':
        return None
    return str(mode).lower()
