"""Prometheus exposition of relabeled series using prometheus_client."""
from typing import Dict, Iterable, List, Set
import logging
import re

from prometheus_client import CollectorRegistry, Histogram
from prometheus_client.metrics_core import Metric

from metrics_aggregator.aggregation import validate_label_names
from metrics_aggregator.series import EmittedSeries, LabelKey

logger = logging.getLogger(__name__)

METRIC_NAME_RE = re.compile(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$')

# Our kind name -> prometheus_client metric type
_METRIC_TYPES = {
    "counter": "counter",
    "gauge": "gauge",
    "untyped": "unknown",
}


def build_metric_families(series: Iterable[EmittedSeries]) -> List[Metric]:
    """
    Group emitted series into prometheus_client metric families.

    A family with an invalid name, or one whose name is already taken by a
    family of a different kind, is skipped. A series with an invalid label
    name is skipped on its own; its siblings are still exported. A series
    whose label set is already present in its family is skipped as a
    duplicate.
    """
    families: Dict[str, Metric] = {}
    seen: Dict[str, Set[LabelKey]] = {}
    rejected = set()

    for point in series:
        if point.name in rejected:
            continue

        metric = families.get(point.name)
        if metric is None:
            if not METRIC_NAME_RE.match(point.name):
                logger.error(f"Error creating Prometheus metric: invalid metric name '{point.name}'")
                rejected.add(point.name)
                continue

            metric = Metric(point.name, point.help, _METRIC_TYPES.get(point.kind, "unknown"))
            families[point.name] = metric
            seen[point.name] = set()

        elif metric.type != _METRIC_TYPES.get(point.kind, "unknown"):
            logger.error(
                f"Error creating Prometheus metric: '{point.name}' exported as both "
                f"{metric.type} and {point.kind}"
            )
            continue

        if not validate_label_names(point.labels):
            logger.error(
                f"Error creating Prometheus metric: invalid label names "
                f"{sorted(point.labels)} on '{point.name}'"
            )
            continue

        key = tuple(sorted(point.labels.items()))
        if key in seen[point.name]:
            logger.error(
                f"Error creating Prometheus metric: duplicate series {dict(key)} on '{point.name}'"
            )
            continue
        seen[point.name].add(key)

        sample_name = f"{point.name}_total" if metric.type == "counter" else point.name
        metric.add_sample(sample_name, dict(point.labels), point.value)

    return list(families.values())


class RemoteAggregatorCollector:
    """Custom collector that runs a collection cycle on every scrape."""

    def __init__(self, engine):
        self.engine = engine

    def describe(self):
        # Families are only known once the upstream has been decoded
        return []

    def collect(self):
        series = self.engine.collect_cycle()
        yield from build_metric_families(series)


class SelfMetrics:
    """Self-monitoring metrics for the aggregator."""

    def __init__(self, registry=None, prefix=""):
        if registry is None:
            registry = CollectorRegistry()

        self.registry = registry

        self.cycle_duration_seconds = Histogram(
            f"{prefix}metrics_aggregation_duration_seconds",
            "Duration of a collection",
            ["remote"],
            registry=registry
        )

    def record_cycle_duration(self, remote: str, duration: float):
        """Record collection cycle duration."""
        self.cycle_duration_seconds.labels(remote=remote).observe(duration)


def create_registry(engine) -> CollectorRegistry:
    """Register the aggregating collector in the engine's self-metrics registry."""
    registry = engine.self_metrics.registry
    registry.register(RemoteAggregatorCollector(engine))
    return registry
