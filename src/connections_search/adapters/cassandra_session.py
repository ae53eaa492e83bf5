"""Cluster and session construction from ``Settings``."""

from __future__ import annotations

import logging
import ssl

from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import EXEC_PROFILE_DEFAULT, Cluster, ExecutionProfile, Session
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra.query import dict_factory

from connections_search.adapters.cassandra_repository import DRIVER_ERRORS, CassandraIndexRepository
from connections_search.config import Settings
from connections_search.domain.errors import StorageUnavailableError


logger = logging.getLogger(__name__)


def build_ssl_context(ca_path: str) -> ssl.SSLContext:
    """TLS context trusting only ``ca_path``.

    Host names are not checked: contact points are often plain IPs while the
    certificates name the cluster.
    """
    context = ssl.create_default_context(cafile=ca_path)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_REQUIRED
    return context


def create_cluster(settings: Settings) -> Cluster:
    """Build a ``Cluster`` with token-aware, DC-aware routing."""
    auth_provider = None
    if settings.cassandra_user:
        auth_provider = PlainTextAuthProvider(username=settings.cassandra_user, password=settings.cassandra_password)

    profile = ExecutionProfile(
        load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy(local_dc=settings.cassandra_local_dc)),
        request_timeout=settings.cassandra_request_timeout,
        row_factory=dict_factory,
    )
    ssl_context = build_ssl_context(settings.cassandra_ssl_ca_path) if settings.cassandra_ssl_ca_path else None

    return Cluster(
        contact_points=settings.get_cassandra_hosts(),
        port=settings.cassandra_port,
        auth_provider=auth_provider,
        execution_profiles={EXEC_PROFILE_DEFAULT: profile},
        ssl_context=ssl_context,
    )


def connect(settings: Settings) -> Session:
    """Open a session without a keyspace; the repository provisions and selects it.

    Raises ``StorageUnavailableError`` when no contact point answers.
    """
    logger.info(
        "Connecting to Cassandra hosts %s (keyspace %s, user %s, tls=%s)",
        ",".join(settings.get_cassandra_hosts()),
        settings.cassandra_keyspace,
        settings.cassandra_user or "<anonymous>",
        bool(settings.cassandra_ssl_ca_path),
    )
    cluster = create_cluster(settings)
    try:
        return cluster.connect()
    except DRIVER_ERRORS as exc:
        cluster.shutdown()
        raise StorageUnavailableError("connect", str(exc)) from exc


def create_repository(settings: Settings, session: Session | None = None) -> CassandraIndexRepository:
    """Wire a ``CassandraIndexRepository`` for the configured keyspace and table."""
    return CassandraIndexRepository(
        session if session is not None else connect(settings),
        keyspace=settings.cassandra_keyspace,
        table=settings.search_table,
        replication_class=settings.cassandra_replication_class,
        replication_factor=settings.cassandra_replication_factor,
    )
