"""Main entry point for the metrics aggregator."""
import argparse
import logging
import sys
import signal

from metrics_aggregator.config import load_config
from metrics_aggregator.engine import CollectionEngine
from metrics_aggregator.prom_exporter import SelfMetrics
from metrics_aggregator.server import AggregatorAPI


def setup_logging(log_level: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metrics-aggregator",
        description="Aggregate metrics to reduce cardinality by removing labels",
        epilog=(
            "Counters are exposed with a _total suffix: an upstream counter declared "
            "without it, such as http_requests, is served as http_requests_total."
        )
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to an optional configuration YAML file"
    )
    parser.add_argument(
        "--metrics-bind-address",
        dest="bind_address",
        help="The address the metric endpoint binds to (default :9090)."
    )
    parser.add_argument(
        "--metrics-path",
        dest="metrics_path",
        help="The path under which to expose metrics (default /metrics)."
    )
    parser.add_argument(
        "--target-url",
        dest="target_url",
        help="The remote target metrics url to scrape metrics from."
    )
    parser.add_argument(
        "--aggregate-without-label",
        dest="aggregate_without_labels",
        action="append",
        default=[],
        help="Label to aggregate over and remove from the result; all other labels are preserved. Repeatable."
    )
    parser.add_argument(
        "--include-metric",
        dest="include_metrics",
        action="append",
        default=[],
        help="Name of a scraped metric to aggregate and export; counters match with or without _total. If not set all metrics are exported. Repeatable."
    )
    parser.add_argument(
        "--add-prefix",
        dest="add_prefix",
        help="Prefix added to all exported metric names."
    )
    parser.add_argument(
        "--add-labelValue",
        dest="add_labels",
        action="append",
        default=[],
        help="key=value label added to all exported metrics. Repeatable."
    )
    parser.add_argument(
        "--request-timeout",
        dest="request_timeout_s",
        type=float,
        help="Timeout in seconds for the upstream request (default 10)."
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Log level (default INFO)."
    )
    return parser


def main(argv=None):
    """Main function."""
    args = build_parser().parse_args(argv)

    overrides = vars(args).copy()
    config_path = overrides.pop("config")

    # Load configuration
    try:
        config = load_config(config_path, overrides)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    logger.info(f"Target URL: {config.target_url}")
    logger.info(f"Aggregating without labels: {config.aggregate_without_labels}")
    if config.include_metrics:
        logger.info(f"Included metrics: {config.include_metrics}")
    if config.add_prefix:
        logger.info(f"Name prefix: {config.add_prefix}")
    if config.add_labels:
        logger.info(f"Extra labels: {config.add_labels}")

    self_metrics = SelfMetrics()
    engine = CollectionEngine(config, self_metrics)
    api = AggregatorAPI(engine)

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    logger.info(f"Starting server on {config.bind_address}, metrics at {config.metrics_path}")
    try:
        api.run()
    except Exception as e:
        logger.error(f"Error starting HTTP server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
