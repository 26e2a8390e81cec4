import os

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from shardplan.bootstrap.config.settings import ShardPlanConfig


class FakeShardPlanConfig(ShardPlanConfig, BaseSettings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_SHARDPLANCONFIG"]),)


def chunk(ns: str, lower: int, upper: int, shard: str | None) -> dict:
    record = {"ns": ns, "min": {"_id": lower}, "max": {"_id": upper}}
    if shard is not None:
        record["shard"] = shard
    return record
