"""Cardinality reduction: re-grouping observations without dropped labels."""
from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, Mapping
import re

from metrics_aggregator.series import LabelKey, Observation

LABEL_NAME_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


@dataclass
class AggregatedGroup:
    """Retained labels of a group and the running sum of its values."""
    labels: Dict[str, str]
    value: float = 0.0

    def add(self, value: float):
        self.value += value


def retained_labels(labels: Mapping[str, str], drop_labels: AbstractSet[str]) -> Dict[str, str]:
    """Return the labels whose names are not in the drop set."""
    return {name: value for name, value in labels.items() if name not in drop_labels}


def group_key(labels: Mapping[str, str], drop_labels: AbstractSet[str]) -> LabelKey:
    """
    Build the grouping key for a label set.

    Surviving pairs are sorted by label name, so two label sets that only
    differ in declaration order produce the same key. The empty label set
    maps to the empty tuple.
    """
    return tuple(sorted(
        (name, value) for name, value in labels.items()
        if name not in drop_labels
    ))


def aggregate(
    observations: Iterable[Observation],
    drop_labels: AbstractSet[str]
) -> Dict[LabelKey, AggregatedGroup]:
    """
    Sum observations over every label in ``drop_labels``.

    Args:
        observations: Observations of one metric family
        drop_labels: Label names to remove from the result

    Returns:
        Mapping of group key to aggregated group, in first-seen order.
        Values are added in input order with plain float addition.
    """
    groups: Dict[LabelKey, AggregatedGroup] = {}

    for observation in observations:
        key = group_key(observation.labels, drop_labels)

        group = groups.get(key)
        if group is None:
            group = AggregatedGroup(labels=retained_labels(observation.labels, drop_labels))
            groups[key] = group

        group.add(observation.value)

    return groups


def validate_label_names(labels: Mapping[str, str]) -> bool:
    """
    Validate label names are Prometheus-safe.

    Label names must match [a-zA-Z_][a-zA-Z0-9_]*
    """
    for name in labels.keys():
        if not LABEL_NAME_RE.match(name):
            return False

    return True
