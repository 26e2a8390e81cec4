import dataclasses

import pytest

from shardplan.core.models.partition import Partition, PartitionRange


@pytest.mark.ut
def test_default_range_is_unbounded():
    r = PartitionRange()
    assert r.lower is None
    assert r.upper is None
    assert r.is_unbounded


@pytest.mark.ut
def test_half_bounded_range_is_not_unbounded():
    assert not PartitionRange(lower={"_id": 1}).is_unbounded
    assert not PartitionRange(upper={"_id": 1}).is_unbounded


@pytest.mark.ut
def test_ranges_compare_by_value():
    assert PartitionRange({"_id": 1}, {"_id": 5}) == PartitionRange({"_id": 1}, {"_id": 5})
    assert PartitionRange({"_id": 1}, {"_id": 5}) != PartitionRange({"_id": 1}, None)


@pytest.mark.ut
def test_partition_is_immutable():
    p = Partition(0, ("a:27017",), PartitionRange())
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.index = 1  # type: ignore[misc]


@pytest.mark.ut
def test_to_filter_bounded():
    r = PartitionRange({"_id": 10}, {"_id": 20})
    assert r.to_filter("_id") == {"_id": {"$gte": 10, "$lt": 20}}


@pytest.mark.ut
def test_to_filter_omits_unbounded_sides():
    assert PartitionRange(None, {"_id": 20}).to_filter("_id") == {"_id": {"$lt": 20}}
    assert PartitionRange({"_id": 10}, None).to_filter("_id") == {"_id": {"$gte": 10}}
    assert PartitionRange().to_filter("_id") == {}


@pytest.mark.ut
def test_contains_is_half_open():
    r = PartitionRange({"k": 10}, {"k": 20})
    assert r.contains({"k": 10}, "k")
    assert r.contains({"k": 19}, "k")
    assert not r.contains({"k": 20}, "k")
    assert not r.contains({"k": 9}, "k")


@pytest.mark.ut
def test_unbounded_contains_everything():
    r = PartitionRange()
    assert r.contains({"k": -10**9}, "k")
    assert r.contains({"k": 10**9}, "k")


@pytest.mark.ut
def test_partition_to_dict():
    p = Partition(2, ("a:1", "b:2"), PartitionRange({"_id": 1}, None))
    assert p.to_dict() == {
        "index": 2,
        "preferred_hosts": ["a:1", "b:2"],
        "range": {"lower": {"_id": 1}, "upper": None},
    }
