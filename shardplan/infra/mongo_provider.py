import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from pymongo import MongoClient

from shardplan.core.models.config import Credentials, TLSOptions
from shardplan.core.ports.connection import ConnectionProvider

DEFAULT_IDLE_TIMEOUT = 120.0


@dataclass
class PooledClient:
    client: MongoClient
    holders: int = 0
    idle_since: float | None = None
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT

    def expired(self, now: float) -> bool:
        if self.holders > 0 or self.idle_since is None:
            return False
        return now - self.idle_since >= self.idle_timeout


class MongoConnectionProvider(ConnectionProvider):
    """
    Thread-safe pool of pymongo clients keyed by connection parameters.

    Acquiring twice with the same parameters returns the same client and
    the same handle; the pool counts holders per handle. A client released
    by all of its holders is kept idle for its idle timeout so the next
    planning call can reuse it, then closed by `purge()`, which runs on
    every acquisition.

    Direct shard clients are built from `direct_options`, typically the
    credentials and TLS settings of the cluster.

    Once `close()` has been called, the pool closes every client and
    refuses new acquisitions.
    """

    def __init__(
        self,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        direct_options: dict[str, Any] | None = None,
        client_factory: Callable[..., MongoClient] = MongoClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._idle_timeout = idle_timeout
        self._direct_options = direct_options or {}
        self._client_factory = client_factory
        self._clock = clock

        self._clients: dict[str, PooledClient] = {}
        self._stopped = False
        self._lock = threading.Lock()

        self._logger = logging.getLogger("infra.mongo_provider")

    @property
    def size(self) -> int:
        """Number of clients currently held by the pool, idle ones included."""
        with self._lock:
            return len(self._clients)

    def acquire(
        self,
        hosts: Sequence[str],
        credentials: Sequence[Credentials] = (),
        tls: TLSOptions | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[str, MongoClient]:
        kwargs = {
            **client_options(credentials, tls),
            **(options or {}),
        }
        return self._acquire(list(hosts), kwargs)

    def acquire_direct(self, address: str) -> tuple[str, MongoClient]:
        hosts = [host.strip() for host in address.split(",") if host.strip()]
        kwargs = dict(self._direct_options)
        # directConnection is only valid with a single seed
        kwargs["directConnection"] = len(hosts) == 1
        return self._acquire(hosts, kwargs)

    def release(self, handle: str, idle_timeout: float | None = None) -> None:
        with self._lock:
            pooled = self._clients.get(handle)
            if pooled is None:
                raise KeyError(f"Unknown connection handle {handle}")

            pooled.holders = max(pooled.holders - 1, 0)
            if pooled.holders == 0:
                pooled.idle_since = self._clock()
                pooled.idle_timeout = self._idle_timeout if idle_timeout is None else idle_timeout
                self._logger.debug(f"Client {handle} idle, expires in {pooled.idle_timeout}s")

    def purge(self) -> int:
        """Close the idle clients whose timeout elapsed; return how many."""
        with self._lock:
            now = self._clock()
            expired = [handle for handle, pooled in self._clients.items() if pooled.expired(now)]
            clients = [self._clients.pop(handle).client for handle in expired]

        for client in clients:
            client.close()

        if clients:
            self._logger.debug(f"Closed {len(clients)} idle client(s)")

        return len(clients)

    def close(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            clients = [pooled.client for pooled in self._clients.values()]
            self._clients.clear()

        for client in clients:
            client.close()

    def _acquire(self, hosts: list[str], kwargs: dict[str, Any]) -> tuple[str, MongoClient]:
        self.purge()
        handle = client_key(hosts, kwargs)

        with self._lock:
            # close() may run between purge() and here
            if self._stopped:
                raise RuntimeError("Connection provider is shut down")

            pooled = self._clients.get(handle)
            if pooled is None:
                self._logger.info(f"Opening client {handle} to {','.join(hosts)}")
                pooled = PooledClient(self._client_factory(hosts, **kwargs))
                self._clients[handle] = pooled

            pooled.holders += 1
            pooled.idle_since = None
            return handle, pooled.client


def client_options(credentials: Sequence[Credentials], tls: TLSOptions | None) -> dict[str, Any]:
    """Translate planner credentials and TLS options into MongoClient kwargs."""
    kwargs: dict[str, Any] = {}

    # a client authenticates a single user
    if credentials:
        first = credentials[0]
        kwargs.update(username=first.user, password=first.password, authSource=first.database)

    if tls is not None:
        kwargs["tls"] = True
        if tls.ca_file:
            kwargs["tlsCAFile"] = tls.ca_file
        if tls.cert_key_file:
            kwargs["tlsCertificateKeyFile"] = tls.cert_key_file
        if tls.cert_key_password:
            kwargs["tlsCertificateKeyFilePassword"] = tls.cert_key_password
        if tls.allow_invalid_certificates:
            kwargs["tlsAllowInvalidCertificates"] = True

    return kwargs


def client_key(hosts: Sequence[str], kwargs: dict[str, Any]) -> str:
    """Stable handle identifying clients built from identical parameters."""
    raw = json.dumps({"hosts": list(hosts), "options": kwargs}, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
