"""Per-family relabeling: include filter, prefix, aggregation and extra labels."""
from typing import Dict, List
import logging

from metrics_aggregator.aggregation import aggregate, group_key
from metrics_aggregator.config import AggregatorConfig
from metrics_aggregator.series import EmittedSeries, LabelKey, MetricFamily, SCALAR_KINDS

logger = logging.getLogger(__name__)


class RelabelPipeline:
    """Turns decoded metric families into relabeled, aggregated series."""

    def __init__(self, config: AggregatorConfig):
        self.include_metrics = frozenset(config.include_metrics)
        self.drop_labels = frozenset(config.aggregate_without_labels)
        self.prefix = config.add_prefix
        self.extra_labels = dict(config.add_labels)

    def is_included(self, family: MetricFamily) -> bool:
        """An empty include list lets every family through."""
        if not self.include_metrics:
            return True

        if family.name in self.include_metrics:
            return True

        # Counters are also known by their exposed name
        return family.kind == "counter" and f"{family.name}_total" in self.include_metrics

    def output_name(self, family: MetricFamily) -> str:
        if self.prefix:
            return self.prefix + family.name
        return family.name

    def process(self, family: MetricFamily) -> List[EmittedSeries]:
        """Aggregate one family and return the series to expose."""
        if not self.is_included(family):
            return []

        if family.kind not in SCALAR_KINDS:
            # No summation semantics for buckets and quantiles
            logger.debug(f"Skipping {family.kind} family '{family.name}'")
            return []

        name = self.output_name(family)
        groups = aggregate(family.observations, self.drop_labels)

        # Extra labels can make distinct groups identical; sum those again
        merged: Dict[LabelKey, EmittedSeries] = {}
        for group in groups.values():
            labels = dict(group.labels)
            labels.update(self.extra_labels)
            key = group_key(labels, frozenset())

            if key in merged:
                merged[key].value += group.value
                continue

            merged[key] = EmittedSeries(
                name=name,
                help=family.help,
                kind=family.kind,
                labels=labels,
                value=group.value,
            )

        series = list(merged.values())

        logger.debug(
            f"Family '{family.name}': {len(family.observations)} observations "
            f"aggregated into {len(series)} series"
        )
        return series
