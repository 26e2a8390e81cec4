from dataclasses import dataclass, field
from typing import Any

DEFAULT_SPLIT_KEY = "_id"
DEFAULT_SPLIT_SIZE = 10
DEFAULT_CURSOR_BATCH_SIZE = 101


@dataclass(frozen=True)
class Credentials:
    """A MongoDB user bound to the database it authenticates against."""
    user: str
    database: str
    password: str


@dataclass(frozen=True)
class TLSOptions:
    """
    Client-side TLS material used when connecting to the cluster.
    Paths are kept as plain strings, the way pymongo expects them.
    """
    ca_file: str | None = None
    cert_key_file: str | None = None
    cert_key_password: str | None = None
    allow_invalid_certificates: bool = False


@dataclass(frozen=True)
class PlannerConfig:
    """
    Static configuration consumed by the partition planner.

    This is the typed lookup the planner reads its settings from. Every
    optional entry carries the default applied when the configuration
    source does not provide a value.
    """
    hosts: tuple[str, ...]
    """
    Seed list of "host:port" addresses of the cluster (routers for a
    sharded deployment).
    """

    database: str
    """
    Database holding the collection to partition.
    """

    collection: str
    """
    Collection to partition.
    """

    credentials: tuple[Credentials, ...] = ()
    """
    Credentials used to authenticate the planning client.
    """

    tls: TLSOptions | None = None
    """
    TLS options. None means a plain connection.
    """

    options: dict[str, Any] = field(default_factory=dict)
    """
    Extra keyword options forwarded verbatim to the driver client.
    """

    split_key: str = DEFAULT_SPLIT_KEY
    """
    Field along which split points are computed for unsharded collections.
    """

    split_size: int = DEFAULT_SPLIT_SIZE
    """
    Approximate size of a split, in megabytes (splitVector maxChunkSize).
    """

    cursor_batch_size: int = DEFAULT_CURSOR_BATCH_SIZE
    """
    Batch size used when iterating metadata catalog cursors.
    """

    idle_timeout: float | None = None
    """
    Idle-timeout hint (seconds) passed to the connection provider when a
    client is released. None lets the provider apply its own default.
    """

    @property
    def namespace(self) -> str:
        """Fully-qualified collection name, `database.collection`."""
        return f"{self.database}.{self.collection}"
