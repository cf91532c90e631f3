"""Shared fixtures for the aggregator tests."""
import pytest

from metrics_aggregator.config import AggregatorConfig
from metrics_aggregator.series import Observation

TARGET_URL = "http://upstream.test:9598/metrics"

SNAPSHOT = """
# HELP component_received_events_total component_received_events_total
# TYPE component_received_events_total counter
component_received_events_total{l1="v1"} 10 1735054883000
component_received_events_total{l1="v1",l2="v2"} 20 1735054879000
component_received_events_total{l1="v1",l2="v2",l3="v3"} 30 1735054866000
# HELP component_received_event_bytes_total component_received_event_bytes_total
# TYPE component_received_event_bytes_total counter
component_received_event_bytes_total{l1="v1"} 1000 1735054883000
component_received_event_bytes_total{l1="v1",l2="v2"} 2000 1735054879000
component_received_event_bytes_total{l1="v1",l2="v2",l3="v3"} 3000 1735054866000
"""


def make_config(**kwargs) -> AggregatorConfig:
    """Build a config with the required options filled in."""
    values = {
        "target_url": TARGET_URL,
        "aggregate_without_labels": ["l4"],
    }
    values.update(kwargs)
    return AggregatorConfig(**values)


@pytest.fixture
def observations():
    """The three nested observations used throughout the tests."""
    return [
        Observation(labels={"l1": "v1"}, value=10.0),
        Observation(labels={"l1": "v1", "l2": "v2"}, value=20.0),
        Observation(labels={"l1": "v1", "l2": "v2", "l3": "v3"}, value=30.0),
    ]
