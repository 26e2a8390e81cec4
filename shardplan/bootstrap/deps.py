import json
from functools import lru_cache

from pydantic import ValidationError

from shardplan.bootstrap.config.loader import get_cli_args
from shardplan.bootstrap.config.settings import ShardPlanConfig
from shardplan.core.planning.partitioner import MongoPartitioner
from shardplan.core.ports.render import Renderer
from shardplan.infra.format_renderer import JsonRenderer, YamlRenderer
from shardplan.infra.mongo_provider import MongoConnectionProvider


@lru_cache
def get_partitioner() -> MongoPartitioner:
    config = get_config()
    return MongoPartitioner(
        config=config.to_planner_config(),
        provider=get_provider()
    )


@lru_cache
def get_provider() -> MongoConnectionProvider:
    config = get_config()
    return MongoConnectionProvider(
        idle_timeout=config.connections.idle_timeout,
        direct_options=config.get_direct_options()
    )


@lru_cache
def get_renderer() -> Renderer:
    if get_cli_args().output == "json":
        return JsonRenderer()
    return YamlRenderer()


@lru_cache
def get_config() -> ShardPlanConfig:
    try:
        return ShardPlanConfig()  # type: ignore[call-arg]
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))
