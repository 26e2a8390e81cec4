import logging
from enum import StrEnum
from typing import Callable

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from shardplan.core.models.config import PlannerConfig
from shardplan.core.models.partition import Partition
from shardplan.core.planning.chunks import ChunkRangeBuilder
from shardplan.core.planning.splitvector import SplitVectorPlanner
from shardplan.core.planning.topology import TopologyDiscoverer
from shardplan.core.ports.connection import ConnectionProvider

Strategy = Callable[[MongoClient], list[Partition]]


class PlanningStrategy(StrEnum):
    sharded_chunks = "sharded_chunks"
    split_vector = "split_vector"


class MongoPartitioner:
    """
    Computes the partition plan of a MongoDB collection.

    Each call acquires one planning client, classifies the collection once,
    and hands the client to the strategy matching the classification:

        - sharded collections are planned from their chunk metadata,
        - everything else is planned from server-computed split points.

    The plan returned by the strategy is passed through unmodified. The
    partitioner keeps no state between calls, so concurrent calls are safe
    as long as the connection provider is.
    """

    def __init__(self, config: PlannerConfig, provider: ConnectionProvider) -> None:
        self._config = config
        self._provider = provider

        discoverer = TopologyDiscoverer(config.cursor_batch_size)
        chunks = ChunkRangeBuilder(config.namespace, discoverer, config.cursor_batch_size)
        splits = SplitVectorPlanner(config, provider, discoverer)

        self._strategies: dict[PlanningStrategy, Strategy] = {
            PlanningStrategy.sharded_chunks: chunks.build,
            PlanningStrategy.split_vector: splits.plan,
        }
        self._logger = logging.getLogger("core.planning.partitioner")

    def compute_partitions(self) -> list[Partition]:
        """
        Return the ordered partitions of the configured collection.

        Failures of the privileged metadata queries degrade the plan instead
        of failing it; only malformed metadata and unexpected errors are
        raised.
        """
        handle, client = self._provider.acquire(
            self._config.hosts,
            self._config.credentials,
            self._config.tls,
            self._config.options,
        )
        try:
            strategy = self.classify(client)
            self._logger.info(f"Planning {self._config.namespace} with strategy '{strategy}'")
            return self._strategies[strategy](client)
        finally:
            self._provider.release(handle, self._config.idle_timeout)

    def classify(self, client: MongoClient) -> PlanningStrategy:
        """
        Pick the planning strategy from the collection statistics.

        A collection is planned from its chunks only when collStats succeeds
        and reports it as sharded. Statistics that cannot be read classify
        the collection as unsharded; the split point tiers then degrade on
        their own.
        """
        database = client[self._config.database]
        try:
            stats = database.command("collStats", self._config.collection)
        except PyMongoError as ex:
            self._logger.warning(f"collStats failed for {self._config.namespace}: {ex}")
            return PlanningStrategy.split_vector

        if stats.get("ok") and stats.get("sharded", False):
            return PlanningStrategy.sharded_chunks

        return PlanningStrategy.split_vector
