from pymongo import MongoClient

ADMIN_DATABASE = "admin"
CONFIG_DATABASE = "config"
CHUNKS_COLLECTION = "chunks"
SHARDS_COLLECTION = "shards"
DATABASES_COLLECTION = "databases"


def server_addresses(client: MongoClient) -> tuple[str, ...]:
    """
    Return every "host:port" address known to the client.

    Addresses come from the client's topology description, which lists the
    configured seeds until discovery replaces them with the actual members.
    """
    servers = client.topology_description.server_descriptions()
    return tuple(f"{host}:{port}" for host, port in servers)
