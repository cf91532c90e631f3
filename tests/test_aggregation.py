"""Tests for the aggregation engine."""
import pytest

from metrics_aggregator.aggregation import aggregate, group_key, validate_label_names
from metrics_aggregator.series import Observation


def summarize(groups):
    """Group key -> (retained labels, value)."""
    return {key: (group.labels, group.value) for key, group in groups.items()}


@pytest.mark.parametrize("drop_labels,expected", [
    (
        {"l4"},
        {
            (("l1", "v1"),): ({"l1": "v1"}, 10.0),
            (("l1", "v1"), ("l2", "v2")): ({"l1": "v1", "l2": "v2"}, 20.0),
            (("l1", "v1"), ("l2", "v2"), ("l3", "v3")): ({"l1": "v1", "l2": "v2", "l3": "v3"}, 30.0),
        },
    ),
    (
        {"l3"},
        {
            (("l1", "v1"),): ({"l1": "v1"}, 10.0),
            (("l1", "v1"), ("l2", "v2")): ({"l1": "v1", "l2": "v2"}, 50.0),
        },
    ),
    (
        {"l2"},
        {
            (("l1", "v1"),): ({"l1": "v1"}, 30.0),
            (("l1", "v1"), ("l3", "v3")): ({"l1": "v1", "l3": "v3"}, 30.0),
        },
    ),
    (
        {"l1"},
        {
            (): ({}, 10.0),
            (("l2", "v2"),): ({"l2": "v2"}, 20.0),
            (("l2", "v2"), ("l3", "v3")): ({"l2": "v2", "l3": "v3"}, 30.0),
        },
    ),
    (
        {"l2", "l3"},
        {
            (("l1", "v1"),): ({"l1": "v1"}, 60.0),
        },
    ),
])
def test_aggregate_nested_labels(observations, drop_labels, expected):
    assert summarize(aggregate(observations, drop_labels)) == expected


def test_empty_input():
    assert aggregate([], {"l1"}) == {}


def test_empty_drop_set_is_identity(observations):
    groups = aggregate(observations, set())

    assert len(groups) == len(observations)
    for observation in observations:
        group = groups[group_key(observation.labels, set())]
        assert group.labels == dict(observation.labels)
        assert group.value == observation.value


def test_true_duplicates_are_summed():
    observations = [
        Observation(labels={"a": "1"}, value=1.5),
        Observation(labels={"a": "1"}, value=2.5),
    ]

    groups = aggregate(observations, set())

    assert summarize(groups) == {(("a", "1"),): ({"a": "1"}, 4.0)}


def test_dropping_every_label_yields_single_group(observations):
    groups = aggregate(observations, {"l1", "l2", "l3"})

    assert list(groups) == [()]
    assert groups[()].labels == {}
    assert groups[()].value == 60.0


def test_value_conservation():
    observations = [
        Observation(labels={"pod": f"p{i}", "zone": f"z{i % 3}", "code": str(200 + i % 2)}, value=float(i))
        for i in range(50)
    ]

    for drop_labels in [set(), {"pod"}, {"zone"}, {"pod", "code"}, {"pod", "zone", "code"}]:
        groups = aggregate(observations, drop_labels)
        assert sum(g.value for g in groups.values()) == sum(o.value for o in observations)


def test_label_order_does_not_change_key():
    first = Observation(labels={"a": "1", "b": "2"}, value=1.0)
    second = Observation(labels={"b": "2", "a": "1"}, value=2.0)

    assert group_key(first.labels, set()) == group_key(second.labels, set())

    groups = aggregate([first, second], set())
    assert len(groups) == 1
    # Retained labels come from the first observation of the group
    assert list(groups[(("a", "1"), ("b", "2"))].labels) == ["a", "b"]
    assert groups[(("a", "1"), ("b", "2"))].value == 3.0


def test_separator_characters_do_not_collide():
    # Both would serialize to "a=1,b=2," with naive name=value, concatenation
    first = Observation(labels={"a": "1,b=2"}, value=1.0)
    second = Observation(labels={"a": "1", "b": "2"}, value=2.0)

    groups = aggregate([first, second], set())

    assert len(groups) == 2


def test_group_key_of_empty_label_set():
    assert group_key({}, set()) == ()
    assert group_key({"l1": "v1"}, {"l1"}) == ()


def test_validate_label_names():
    assert validate_label_names({"l1": "v1", "_private": "x"})
    assert validate_label_names({})
    assert not validate_label_names({"1abc": "v"})
    assert not validate_label_names({"with-dash": "v"})
