import logging
from typing import Any, Mapping, Sequence

from pymongo import MongoClient

from shardplan.core.errors import ShardLookupError, SplitVectorReplyError
from shardplan.core.helpers.outcome import Outcome
from shardplan.core.models.config import PlannerConfig
from shardplan.core.models.partition import Partition, PartitionRange
from shardplan.core.planning.catalog import (
    ADMIN_DATABASE,
    CONFIG_DATABASE,
    DATABASES_COLLECTION,
    server_addresses,
)
from shardplan.core.planning.topology import TopologyDiscoverer
from shardplan.core.ports.connection import ConnectionProvider


def ranges_from_split_keys(split_keys: Sequence[Mapping[str, Any]]) -> list[PartitionRange]:
    """
    Turn K ordered split points into the K+1 ranges they delimit.

    The first range starts unbounded and the last one ends unbounded; every
    other range goes from one split point to the next, so the ranges are
    contiguous and cover the whole key space.
    """
    bounds: list[Mapping[str, Any] | None] = [None, *split_keys, None]
    return [PartitionRange(lower, upper) for lower, upper in zip(bounds, bounds[1:])]


class SplitVectorPlanner:
    """
    Plans a collection that has no usable chunk metadata by asking the
    server for split points along a key (the splitVector command).

    Three tiers are tried in order, each one only when the previous failed
    with a driver error:

        1. splitVector on the admin database of the planning client;
        2. splitVector directly on the primary shard of the database, for
           deployments where routers refuse the command. The direct client
           is released on every exit path;
        3. a single unbounded partition with no host preference.

    Partitions built from split points prefer every address of the planning
    client.
    """

    def __init__(
        self,
        config: PlannerConfig,
        provider: ConnectionProvider,
        discoverer: TopologyDiscoverer,
    ) -> None:
        self._config = config
        self._provider = provider
        self._discoverer = discoverer
        self._logger = logging.getLogger("core.planning.splitvector")

    @property
    def command(self) -> dict[str, Any]:
        """The splitVector command document; key order matters."""
        return {
            "splitVector": self._config.namespace,
            "keyPattern": {self._config.split_key: 1},
            "force": False,
            "maxChunkSize": self._config.split_size,
        }

    def plan(self, client: MongoClient) -> list[Partition]:
        return (
            Outcome.attempt(lambda: self._partitions(client, self.split_keys(client)))
            .or_else(lambda ex: self._on_primary_failure(client, ex))
            .unwrap_or(self._whole_collection)
        )

    def split_keys(self, client: MongoClient) -> list[Mapping[str, Any]]:
        """Run splitVector through the client and return its split points."""
        response = client[ADMIN_DATABASE].command(self.command)
        split_keys = response.get("splitKeys")
        if not isinstance(split_keys, list):
            raise SplitVectorReplyError(f"splitVector response without 'splitKeys': {response!r}")
        return split_keys

    def split_keys_on_primary_shard(self, client: MongoClient) -> list[Mapping[str, Any]]:
        """
        Run splitVector on a direct connection to the primary shard of the
        database. The direct client is released exactly once, whatever the
        outcome of the command.
        """
        shard_id = self.primary_shard(client)
        address = self._discoverer.shard_address(client, shard_id)

        handle, shard_client = self._provider.acquire_direct(address)
        try:
            self._logger.debug(f"Running splitVector on shard {shard_id} ({address})")
            return self.split_keys(shard_client)
        finally:
            self._provider.release(handle, self._config.idle_timeout)

    def primary_shard(self, client: MongoClient) -> str:
        """
        Return the id of the shard holding the database's unsharded data.

        dbStats reports it as `primary`; when it does not, the database
        record of the config catalog is consulted.
        """
        database = self._config.database
        primary = client[database].command("dbStats").get("primary")

        if primary is None:
            record = client[CONFIG_DATABASE][DATABASES_COLLECTION].find_one({"_id": database})
            primary = record.get("primary") if record else None

        if not isinstance(primary, str):
            raise ShardLookupError(f"Unable to find the primary shard of database '{database}'")

        return primary

    def _on_primary_failure(self, client: MongoClient, ex: Exception) -> Outcome[list[Partition]]:
        self._logger.warning(
            f"splitVector failed for {self._config.namespace}, "
            f"retrying on the primary shard: {ex}"
        )
        return Outcome.attempt(
            lambda: self._partitions(client, self.split_keys_on_primary_shard(client))
        )

    def _whole_collection(self, ex: Exception) -> list[Partition]:
        self._logger.warning(
            f"Unable to compute split points for {self._config.namespace}, "
            f"falling back to a single partition: {ex}"
        )
        return [Partition(0, (), PartitionRange())]

    def _partitions(
        self,
        client: MongoClient,
        split_keys: Sequence[Mapping[str, Any]],
    ) -> list[Partition]:
        hosts = server_addresses(client)
        partitions = [
            Partition(index, hosts, bounds)
            for index, bounds in enumerate(ranges_from_split_keys(split_keys))
        ]
        self._logger.info(f"Planned {len(partitions)} split partition(s) for {self._config.namespace}")
        return partitions
