# cli.py
import argparse
import logging
import sys

import yaml

from flightweather.config import load_config

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'INFO', log_file: str = None) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flightweather',
        description="Exploratory report on NYC flight delays and departure-hour weather",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to the YAML configuration file")
    subparsers = parser.add_subparsers(dest='command', required=True)

    report = subparsers.add_parser('report', help="Run the pipeline and write the HTML report")
    report.add_argument("--source", type=str, help="'nycflights13' or a directory with flights.csv and weather.csv")
    report.add_argument("--output", type=str, help="Directory for the report, tables and models")
    report.add_argument("--cancelled", choices=['exclude', 'keep', 'not_delayed'],
                        help="How flights without a recorded departure are labeled")
    report.add_argument("--join-keys", choices=['hourly', 'calendar'], help="Weather join key set")

    subparsers.add_parser('dashboard', help="Launch the streamlit dashboard")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if getattr(args, 'source', None):
        overrides.setdefault('data', {})['source'] = args.source
    if getattr(args, 'output', None):
        overrides.setdefault('report', {})['output_dir'] = args.output
    if getattr(args, 'cancelled', None):
        overrides.setdefault('labels', {})['cancelled'] = args.cancelled
    if getattr(args, 'join_keys', None):
        overrides.setdefault('join', {})['keys'] = args.join_keys
    return overrides


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        config = load_config(args.config, _overrides(args))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid configuration: {e}", exc_info=True)
        return 1
    setup_logging(config['logging']['level'], config['logging']['file'])

    if args.command == 'dashboard':
        from dashboard.server import run_streamlit
        return run_streamlit(args.config)

    from flightweather.pipeline import run_pipeline
    from flightweather.report import render_report

    try:
        results = run_pipeline(config)
        report_path = render_report(results, config['report']['output_dir'])
    except Exception as e:
        logger.error(f"Report failed: {e}", exc_info=True)
        return 1

    logger.info(f"Report written to {report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
