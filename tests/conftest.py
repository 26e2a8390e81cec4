import os
from typing import Generator

import pytest
import yaml

from shardplan.bootstrap.config.settings import ShardPlanConfig
from shardplan.core.models.config import PlannerConfig
from shardplan.core.planning.topology import TopologyDiscoverer
from tests.fake.fake_mongo import FakeConnectionProvider, FakeMongoClient
from tests.helpers import FakeShardPlanConfig


@pytest.fixture
def planner_config() -> PlannerConfig:
    return PlannerConfig(
        hosts=("mongos-1:27017", "mongos-2:27017"),
        database="shop",
        collection="orders",
        idle_timeout=30.0,
    )


@pytest.fixture
def client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def provider(client) -> FakeConnectionProvider:
    return FakeConnectionProvider(client)


@pytest.fixture
def discoverer() -> TopologyDiscoverer:
    return TopologyDiscoverer(batch_size=50)


@pytest.fixture
def config_file(tmp_path):
    file = tmp_path / "shardplan.yaml"

    data = {
        "mongo": {
            "hosts": ["mongos-1:27017", "mongos-2:27017"],
            "database": "shop",
            "collection": "orders",
            "credentials": [
                {"user": "reader", "database": "admin", "password": "secret"},
            ],
            "options": {"serverSelectionTimeoutMS": 2000},
        },
        "split": {
            "key": "order_id",
            "size": 32,
        },
        "connections": {
            "idle_timeout": 15,
        },
    }

    file.write_text(yaml.dump(data))
    return file


@pytest.fixture
def shardplan_config(config_file) -> Generator[ShardPlanConfig, None, None]:
    backup = os.environ.copy()

    try:
        os.environ["TEST_SHARDPLANCONFIG"] = str(config_file)
        yield FakeShardPlanConfig()
    finally:
        os.environ.clear()
        os.environ.update(backup)
