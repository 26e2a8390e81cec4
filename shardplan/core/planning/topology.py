import logging
from typing import Any, Mapping

from pymongo import MongoClient

from shardplan.core.errors import MalformedMetadataError, ShardLookupError
from shardplan.core.models.config import DEFAULT_CURSOR_BATCH_SIZE
from shardplan.core.planning.catalog import CONFIG_DATABASE, SHARDS_COLLECTION


def parse_shard_hosts(host: str) -> list[str]:
    """
    Split a shard `host` string into its "host:port" addresses.

    The catalog stores either "<replicaSet>/<h1:p1>,<h2:p2>" or a bare
    comma-separated list. Each token keeps only what follows its last "/",
    so the replica-set name is stripped; blank tokens are dropped.
    """
    addresses = []
    for token in host.split(","):
        address = token.rsplit("/", 1)[-1].strip()
        if address:
            addresses.append(address)
    return addresses


class TopologyDiscoverer:
    """
    Reads the cluster's shard catalog (config.shards) and resolves shard
    identifiers to the hosts that serve them.

    Records without a string `_id` are malformed and raise
    MalformedMetadataError. Records with a missing or non-string `host`
    resolve to an empty host list: the shard still exists, the planner just
    has no locality information for it.
    """

    def __init__(self, batch_size: int = DEFAULT_CURSOR_BATCH_SIZE) -> None:
        self._batch_size = batch_size
        self._logger = logging.getLogger("core.planning.topology")

    def describe_shards(self, client: MongoClient) -> dict[str, list[str]]:
        """Return the shard map: shard id -> ordered "host:port" list."""
        shards = client[CONFIG_DATABASE][SHARDS_COLLECTION]
        shard_map: dict[str, list[str]] = {}

        with shards.find({}, batch_size=self._batch_size) as cursor:
            for record in cursor:
                shard_id, hosts = self._parse_record(record)
                shard_map[shard_id] = hosts

        self._logger.debug(f"Discovered {len(shard_map)} shard(s): {sorted(shard_map)}")
        return shard_map

    def shard_address(self, client: MongoClient, shard_id: str) -> str:
        """
        Return the seed list of a single shard, as "h1:p1,h2:p2".

        Raises ShardLookupError when the catalog has no usable record for
        the shard.
        """
        shards = client[CONFIG_DATABASE][SHARDS_COLLECTION]

        with shards.find({"_id": shard_id}, batch_size=self._batch_size) as cursor:
            record = next(cursor, None)

        if record is None:
            raise ShardLookupError(f"Shard '{shard_id}' not found in {CONFIG_DATABASE}.{SHARDS_COLLECTION}")

        _, hosts = self._parse_record(record)
        if not hosts:
            raise ShardLookupError(f"Shard '{shard_id}' has no host")

        return ",".join(hosts)

    @staticmethod
    def _parse_record(record: Mapping[str, Any]) -> tuple[str, list[str]]:
        shard_id = record.get("_id")
        if not isinstance(shard_id, str):
            raise MalformedMetadataError(f"Shard record without a valid '_id': {record!r}")

        host = record.get("host")
        if not isinstance(host, str):
            return shard_id, []

        return shard_id, parse_shard_hosts(host)
