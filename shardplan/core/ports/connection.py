from typing import Any, Protocol, Sequence

from pymongo import MongoClient

from shardplan.core.models.config import Credentials, TLSOptions


class ConnectionProvider(Protocol):
    """
    Hands out driver clients to the planner and takes them back.

    Every acquisition returns an opaque handle together with the client.
    The handle is the only thing the caller needs to give the client back;
    implementations decide whether clients are pooled, shared between
    callers, or created on demand. Callers must not close the clients they
    receive, they release them instead.
    """

    def acquire(
        self,
        hosts: Sequence[str],
        credentials: Sequence[Credentials] = (),
        tls: TLSOptions | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[str, MongoClient]:
        """
        Return a client connected to the cluster reachable through `hosts`.

        Clients acquired with identical parameters may be shared.
        """

    def acquire_direct(self, address: str) -> tuple[str, MongoClient]:
        """
        Return a client bound to a single shard.

        `address` is the shard's seed list as "host:port[,host:port...]",
        without any replica-set prefix. The client talks to that shard
        directly, bypassing the routers.
        """

    def release(self, handle: str, idle_timeout: float | None = None) -> None:
        """
        Give a client back to the provider.

        Once released by every holder, the client may be closed after it
        stayed idle for `idle_timeout` seconds. None applies the provider's
        default. Releasing an unknown handle raises KeyError.
        """
