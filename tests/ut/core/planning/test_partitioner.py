import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from shardplan.core.errors import MalformedMetadataError
from shardplan.core.models.partition import Partition, PartitionRange
from shardplan.core.planning.partitioner import MongoPartitioner, PlanningStrategy
from tests.helpers import chunk


@pytest.fixture
def partitioner(planner_config, provider) -> MongoPartitioner:
    return MongoPartitioner(planner_config, provider)


@pytest.fixture
def sharded(client):
    client["shop"].responses["collStats"] = {"ok": 1.0, "ns": "shop.orders", "sharded": True}
    client["config"]["shards"].documents = [{"_id": "rs0", "host": "rs0/a:27018"}]
    client["config"]["chunks"].documents = [
        chunk("shop.orders", 0, 10, "rs0"),
        chunk("shop.orders", 10, 20, "rs0"),
    ]


@pytest.mark.ut
@pytest.mark.parametrize(
    "stats, expected",
    [
        ({"ok": 1.0, "sharded": True}, PlanningStrategy.sharded_chunks),
        ({"ok": 1.0, "sharded": False}, PlanningStrategy.split_vector),
        ({"ok": 1.0}, PlanningStrategy.split_vector),
        ({"ok": 0.0, "sharded": True}, PlanningStrategy.split_vector),
    ],
)
def test_classify(client, partitioner, stats, expected):
    client["shop"].responses["collStats"] = stats
    assert partitioner.classify(client) == expected


@pytest.mark.ut
def test_classify_issues_coll_stats(client, partitioner):
    partitioner.classify(client)
    assert client["shop"].commands == [("collStats", "orders")]


@pytest.mark.ut
def test_classify_unreadable_stats_as_unsharded(client, partitioner):
    client["shop"].responses["collStats"] = OperationFailure("not authorized", code=13)
    assert partitioner.classify(client) == PlanningStrategy.split_vector


@pytest.mark.ut
@pytest.mark.usefixtures("sharded")
def test_sharded_collection_planned_from_chunks(client, partitioner):
    partitions = partitioner.compute_partitions()

    assert partitions == [
        Partition(0, ("a:27018",), PartitionRange({"_id": 0}, {"_id": 10})),
        Partition(1, ("a:27018",), PartitionRange({"_id": 10}, {"_id": 20})),
    ]
    assert client["admin"].commands == []


@pytest.mark.ut
def test_unsharded_collection_planned_from_split_points(client, partitioner):
    client["shop"].responses["collStats"] = {"ok": 1.0, "ns": "shop.orders"}
    client["admin"].responses["splitVector"] = {"ok": 1.0, "splitKeys": [{"_id": 7}]}

    partitions = partitioner.compute_partitions()

    assert [p.range for p in partitions] == [
        PartitionRange(None, {"_id": 7}),
        PartitionRange({"_id": 7}, None),
    ]
    assert client["config"]["chunks"].find_calls == []


@pytest.mark.ut
@pytest.mark.usefixtures("sharded")
def test_planning_client_acquired_and_released_once(provider, partitioner):
    partitioner.compute_partitions()

    assert provider.acquired == [("cluster-0", ("mongos-1:27017", "mongos-2:27017"))]
    assert provider.released == [("cluster-0", 30.0)]


@pytest.mark.ut
def test_planning_client_released_on_unexpected_error(client, provider, partitioner):
    client["shop"].responses["collStats"] = {"ok": 1.0, "sharded": True}
    client["config"]["shards"].documents = [{"host": "rs0/a:27018"}]

    with pytest.raises(MalformedMetadataError):
        partitioner.compute_partitions()

    assert provider.released == [("cluster-0", 30.0)]


@pytest.mark.ut
def test_unreachable_cluster_degrades_to_single_partition(client, partitioner):
    error = ServerSelectionTimeoutError("No servers found yet")
    client["shop"].responses["collStats"] = error
    client["shop"].responses["dbStats"] = error
    client["admin"].responses["splitVector"] = error

    partitions = partitioner.compute_partitions()

    assert partitions == [Partition(0, (), PartitionRange())]


@pytest.mark.ut
@pytest.mark.usefixtures("sharded")
def test_repeated_calls_build_fresh_plans(partitioner):
    first = partitioner.compute_partitions()
    second = partitioner.compute_partitions()

    assert first == second
    assert first is not second
