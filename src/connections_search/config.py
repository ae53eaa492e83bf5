"""Centralized configuration for connections-search using Pydantic Settings."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    All environment variables are validated at startup with proper types.
    Cassandra settings mirror the ``CASSANDRA_*`` variables operators already
    export for the cluster.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Cluster connection
    cassandra_hosts: str = Field(default="127.0.0.1", description="Comma-separated Cassandra contact points")
    cassandra_port: int = Field(default=9042, ge=1, le=65535, description="Native protocol port")
    cassandra_user: str = Field(default="", description="Username for plain-text authentication")
    cassandra_password: str = Field(default="", description="Password for plain-text authentication")
    cassandra_keyspace: str = Field(
        default="connections", pattern=r"^[A-Za-z][A-Za-z0-9_]*$", description="Keyspace holding the index"
    )
    cassandra_replication_class: str = Field(
        default="SimpleStrategy", description="Replication class used when the keyspace is created"
    )
    cassandra_replication_factor: int = Field(
        default=1, ge=1, description="Replication factor used when the keyspace is created"
    )
    cassandra_local_dc: str = Field(default="", description="Local datacenter for DC-aware load balancing")
    cassandra_ssl_ca_path: str = Field(default="", description="CA bundle path; enables TLS when set")
    cassandra_request_timeout: float = Field(default=10.0, gt=0, description="Driver request timeout in seconds")

    # Index layout
    search_table: str = Field(
        default="search_entry", pattern=r"^[A-Za-z][A-Za-z0-9_]*$", description="Inverted index table name"
    )
    storage_backend: Literal["cassandra", "memory"] = Field(
        default="cassandra", description="Storage backend: cassandra (cluster) or memory (local/testing)"
    )

    # Search behaviour
    search_fetch_limit: int = Field(default=1000, ge=1, description="Maximum rows fetched per prefix scan")
    search_result_limit: int = Field(default=10, ge=1, description="Maximum hits returned per query")
    index_write_concurrency: int = Field(default=8, ge=1, description="Concurrent upserts per ingested document")

    # Compaction guard
    compaction_poll_attempts: int = Field(default=6, ge=1, description="Catalog polls before giving up")
    compaction_poll_interval_ms: int = Field(default=500, ge=0, description="Delay between catalog polls")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON log lines")

    # Tracing export
    otlp_endpoint: str = Field(default="", description="OTLP collector endpoint; empty disables export")
    otlp_protocol: Literal["http", "grpc"] = Field(default="http", description="OTLP transport protocol")

    @model_validator(mode="after")
    def _check_hosts(self) -> "Settings":
        if self.storage_backend == "cassandra" and not self.get_cassandra_hosts():
            raise ValueError("CASSANDRA_HOSTS must list at least one contact point when STORAGE_BACKEND=cassandra")
        return self

    def get_cassandra_hosts(self) -> list[str]:
        """Get list of contact points (comma-separated)."""
        if not self.cassandra_hosts:
            return []
        return [host.strip() for host in self.cassandra_hosts.split(",") if host.strip()]

    @property
    def compaction_poll_interval_seconds(self) -> float:
        return self.compaction_poll_interval_ms / 1000.0

    def is_memory_backend(self) -> bool:
        """Check if the in-process storage backend is selected."""
        return self.storage_backend == "memory"
