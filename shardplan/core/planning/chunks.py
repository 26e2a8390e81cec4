import logging
from typing import Any, Mapping

from pymongo import MongoClient

from shardplan.core.errors import MalformedMetadataError
from shardplan.core.helpers.outcome import Outcome
from shardplan.core.models.partition import Partition, PartitionRange
from shardplan.core.planning.catalog import CHUNKS_COLLECTION, CONFIG_DATABASE, server_addresses
from shardplan.core.planning.topology import TopologyDiscoverer


class ChunkRangeBuilder:
    """
    Plans a sharded collection by turning each of its chunks into one
    partition.

    Chunks are read from config.chunks in cursor order; every partition
    covers exactly its chunk's [min, max) range and prefers the hosts of the
    shard owning the chunk.

    When the chunk catalog cannot be read (missing privileges, network
    failure, ...), partial results are discarded and the whole collection
    becomes a single unbounded partition preferring every address of the
    client. The read then proceeds without parallelism.
    """

    def __init__(self, namespace: str, discoverer: TopologyDiscoverer, batch_size: int) -> None:
        self._namespace = namespace
        self._discoverer = discoverer
        self._batch_size = batch_size
        self._logger = logging.getLogger("core.planning.chunks")

    def build(self, client: MongoClient) -> list[Partition]:
        return (
            Outcome.attempt(lambda: self.build_chunk_partitions(client))
            .unwrap_or(lambda ex: self._single_partition(client, ex))
        )

    def build_chunk_partitions(self, client: MongoClient) -> list[Partition]:
        """One partition per chunk of the namespace, without any fallback."""
        chunks = client[CONFIG_DATABASE][CHUNKS_COLLECTION]
        shard_map = self._discoverer.describe_shards(client)
        partitions = []

        with chunks.find({"ns": self._namespace}, batch_size=self._batch_size) as cursor:
            for index, chunk in enumerate(cursor):
                lower, upper = self._bounds(chunk)
                hosts = shard_map.get(chunk.get("shard"), [])
                partitions.append(
                    Partition(index, tuple(hosts), PartitionRange(lower, upper))
                )

        if not partitions:
            # MongoDB 5.0+ keys config.chunks by collection uuid instead of ns
            self._logger.warning(
                f"No chunk found for sharded collection {self._namespace}, "
                f"the plan is empty"
            )

        self._logger.info(f"Planned {len(partitions)} chunk partition(s) for {self._namespace}")
        return partitions

    def _single_partition(self, client: MongoClient, ex: Exception) -> list[Partition]:
        self._logger.warning(
            f"Unable to read chunks of {self._namespace}, "
            f"falling back to a single partition: {ex}"
        )
        return [Partition(0, server_addresses(client), PartitionRange())]

    @staticmethod
    def _bounds(chunk: Mapping[str, Any]) -> tuple[Mapping[str, Any], Mapping[str, Any]]:
        lower = chunk.get("min")
        upper = chunk.get("max")
        if not isinstance(lower, Mapping) or not isinstance(upper, Mapping):
            raise MalformedMetadataError(f"Chunk record without 'min'/'max' documents: {chunk!r}")
        return lower, upper
