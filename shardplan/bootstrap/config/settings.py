from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_core.core_schema import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from shardplan.bootstrap.config.loader import get_configfile
from shardplan.core.models.config import (
    DEFAULT_CURSOR_BATCH_SIZE,
    DEFAULT_SPLIT_KEY,
    DEFAULT_SPLIT_SIZE,
    Credentials,
    PlannerConfig,
    TLSOptions,
)
from shardplan.infra.mongo_provider import DEFAULT_IDLE_TIMEOUT, client_options


class CredentialSettings(BaseModel):
    user: Annotated[
        str,
        Field(description="Name of the MongoDB user.")
    ]

    database: Annotated[
        str,
        Field(
            description="Database the user authenticates against (authSource).",
            default="admin"
        )
    ]

    password: Annotated[
        str,
        Field(description="Password of the MongoDB user.")
    ]


class TLSSettings(BaseModel):
    cafile: Annotated[
        Path | None,
        Field(
            description="Path to the CA certificate (PEM) used to verify the servers.",
            default=None
        )
    ]

    certkeyfile: Annotated[
        Path | None,
        Field(
            description=(
                "Path to the client certificate and its private key (PEM).\n"
                "Required when the cluster enforces x.509 client authentication.\n"
            ),
            default=None
        )
    ]

    certkeyfile_password: Annotated[
        str | None,
        Field(
            description="Password protecting the client private key, if any.",
            default=None
        )
    ]

    allow_invalid_certificates: Annotated[
        bool,
        Field(
            description="Skip server certificate validation. Never enable in production.",
            default=False
        )
    ]

    @field_validator("cafile", "certkeyfile")
    @classmethod
    def validate_path(cls, v: Path | None, _: ValidationInfo) -> Path | None:
        if v is not None and not v.exists():
            raise ValueError(f"Path {v} does not exist.")
        return v


class MongoSettings(BaseModel):
    hosts: Annotated[
        list[str],
        Field(
            description=(
                "Seed list of the cluster as host:port addresses.\n"
                "For a sharded cluster these are the router (mongos) addresses."
            ),
            min_length=1
        )
    ]

    database: Annotated[
        str,
        Field(description="Database holding the collection to partition.")
    ]

    collection: Annotated[
        str,
        Field(description="Collection to partition.")
    ]

    credentials: Annotated[
        list[CredentialSettings],
        Field(
            description="Credentials used by the planning client.",
            default_factory=list
        )
    ]

    tls: Annotated[
        TLSSettings | None,
        Field(
            description="TLS configuration. Omit for plain connections.",
            default=None
        )
    ]

    options: Annotated[
        dict[str, Any],
        Field(
            description=(
                "Extra MongoClient keyword options, forwarded verbatim\n"
                "(e.g. readPreference, serverSelectionTimeoutMS)."
            ),
            default_factory=dict
        )
    ]


class SplitSettings(BaseModel):
    key: Annotated[
        str,
        Field(
            description=(
                "Field along which unsharded collections are split.\n"
                "It must be the prefix of an index; the primary identifier is always indexed."
            ),
            default=DEFAULT_SPLIT_KEY
        )
    ]

    size: Annotated[
        int,
        Field(
            description=(
                "Approximate size of a partition in megabytes, passed as the\n"
                "splitVector maxChunkSize."
            ),
            default=DEFAULT_SPLIT_SIZE,
            gt=0
        )
    ]


class CursorSettings(BaseModel):
    batch_size: Annotated[
        int,
        Field(
            description="Batch size used when reading the metadata catalogs.",
            default=DEFAULT_CURSOR_BATCH_SIZE,
            gt=0
        )
    ]


class ConnectionsSettings(BaseModel):
    idle_timeout: Annotated[
        float,
        Field(
            description=(
                "Seconds a released client stays open before being closed.\n"
                "Applies to the planning client and to direct shard clients."
            ),
            default=DEFAULT_IDLE_TIMEOUT,
            ge=0
        )
    ]


class ShardPlanConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHARDPLAN_",
        extra="allow"
    )

    mongo: Annotated[
        MongoSettings,
        Field(
            description=(
                "Cluster and collection configuration.\n"
                "Defines where the planner connects, how it authenticates, and which\n"
                "collection it partitions."
            )
        )
    ]

    split: Annotated[
        SplitSettings,
        Field(
            description=(
                "Split point configuration for unsharded collections.\n"
                "Ignored for sharded collections, which are planned from their chunks."
            ),
            default_factory=SplitSettings
        )
    ]

    cursor: Annotated[
        CursorSettings,
        Field(
            description="Metadata cursor configuration.",
            default_factory=CursorSettings
        )
    ]

    connections: Annotated[
        ConnectionsSettings,
        Field(
            description="Client lifecycle configuration.",
            default_factory=ConnectionsSettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (YamlConfigSettingsSource(settings_cls, yaml_file=get_configfile()),)

    def get_credentials(self) -> tuple[Credentials, ...]:
        return tuple(
            Credentials(user=c.user, database=c.database, password=c.password)
            for c in self.mongo.credentials
        )

    def get_tls_options(self) -> TLSOptions | None:
        tls = self.mongo.tls
        if tls is None:
            return None

        return TLSOptions(
            ca_file=str(tls.cafile) if tls.cafile else None,
            cert_key_file=str(tls.certkeyfile) if tls.certkeyfile else None,
            cert_key_password=tls.certkeyfile_password,
            allow_invalid_certificates=tls.allow_invalid_certificates,
        )

    def get_direct_options(self) -> dict[str, Any]:
        """
        MongoClient kwargs used for direct shard connections: the cluster
        credentials and TLS settings, plus the extra client options.
        """
        # a shard belongs to its own replica set, not the router's
        options = {k: v for k, v in self.mongo.options.items() if k != "replicaSet"}
        return {
            **client_options(self.get_credentials(), self.get_tls_options()),
            **options,
        }

    def to_planner_config(self) -> PlannerConfig:
        return PlannerConfig(
            hosts=tuple(self.mongo.hosts),
            database=self.mongo.database,
            collection=self.mongo.collection,
            credentials=self.get_credentials(),
            tls=self.get_tls_options(),
            options=dict(self.mongo.options),
            split_key=self.split.key,
            split_size=self.split.size,
            cursor_batch_size=self.cursor.batch_size,
            idle_timeout=self.connections.idle_timeout,
        )
