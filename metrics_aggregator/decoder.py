"""Decoding the Prometheus text exposition format into metric families."""
from typing import Iterator, List, Optional
import logging

from prometheus_client.parser import text_string_to_metric_families

from metrics_aggregator.series import MetricFamily, Observation

logger = logging.getLogger(__name__)

# prometheus_client reports untyped families as "unknown"
_KIND_ALIASES = {"unknown": "untyped"}


def iter_families(text: str) -> Iterator[MetricFamily]:
    """
    Yield metric families from a text snapshot.

    Counter families are named without their ``_total`` suffix, the way
    prometheus_client represents them internally. The parser starts a new
    family for every sample line of a metric without ``# TYPE``/``# HELP``
    header; consecutive families sharing a name and kind are merged back
    into one. Raises ``ValueError`` on the first malformed line; families
    before it have already been yielded.
    """
    pending: Optional[MetricFamily] = None
    metrics = text_string_to_metric_families(text)

    while True:
        try:
            metric = next(metrics, None)
        except Exception:
            # Keep what was parsed before the malformed line
            if pending is not None:
                yield pending
            raise

        if metric is None:
            break

        kind = _KIND_ALIASES.get(metric.type, metric.type)
        observations = [
            Observation(
                labels=dict(sample.labels),
                value=float(sample.value),
                timestamp=sample.timestamp,
            )
            for sample in metric.samples
        ]

        if pending is not None and pending.name == metric.name and pending.kind == kind:
            pending.observations.extend(observations)
            if not pending.help:
                pending.help = metric.documentation
            continue

        if pending is not None:
            yield pending

        pending = MetricFamily(
            name=metric.name,
            help=metric.documentation,
            kind=kind,
            observations=observations,
        )

    if pending is not None:
        yield pending


def decode_families(text: str) -> List[MetricFamily]:
    """Decode as many families as possible, stopping at the first error."""
    families: List[MetricFamily] = []
    try:
        for family in iter_families(text):
            families.append(family)
    except Exception as e:
        logger.error(
            f"Error decoding metric family after {len(families)} families: {e}"
        )

    return families
